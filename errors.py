from typing import Optional


class CodeforcesError(Exception):
    """Base exception for failures talking to the Codeforces API."""

    def __init__(self, detail: str, url: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.url = url


class TransportError(CodeforcesError):
    """The request never produced a usable envelope (connection, HTTP or decoding failure)."""


class ApiError(CodeforcesError):
    """The envelope status was not OK."""

    def __init__(self, comment: Optional[str], url: Optional[str] = None):
        super().__init__(comment or "API request failed", url=url)
        self.comment = comment


class NotFoundError(ApiError):
    """The requested handle does not exist."""

    def __init__(self, handle: str, comment: Optional[str] = None, url: Optional[str] = None):
        super().__init__(comment or f"User with handle {handle} not found", url=url)
        self.handle = handle
