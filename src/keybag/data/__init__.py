"""Session-scoped credential storage."""

from .credential_store import CredentialStore, parse_cookie_header

__all__ = ["CredentialStore", "parse_cookie_header"]
