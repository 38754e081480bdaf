from typing import Iterable, Optional


class GlpiError(Exception):
    """Base exception for GLPI API errors."""
    pass


class AuthenticationError(GlpiError):
    """Raised when initSession fails (bad token, redirect chain, non-success status)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class QueryError(GlpiError):
    """Raised when a search or schema query fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SchemaResolutionError(GlpiError):
    """Raised when a mandatory ticket field cannot be found in listSearchOptions."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Mandatory field(s) not found: {', '.join(self.missing)}")
