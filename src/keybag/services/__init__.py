"""HTTP pipeline and token services."""

from .http_client import HttpClient, RequestConfig, RequestDecorator, ResponseHandler
from .request_auth import AuthHeaderDecorator
from .token_fetcher import TokenFetcher

__all__ = [
    "AuthHeaderDecorator",
    "HttpClient",
    "RequestConfig",
    "RequestDecorator",
    "ResponseHandler",
    "TokenFetcher",
]
