"""
Exceptions raised by the MWS client.

Remote failures (bad HTTP status, MWS error documents, network errors) are
not raised: operations log them and return ``False``. Exceptions are kept for
problems the caller has to fix in code or configuration.
"""
from typing import Optional


class MwsError(Exception):
    """Generic MWS client error."""


class MwsConfigError(MwsError):
    """Raised when store credentials or service options are missing or invalid."""


class InvalidParameterError(MwsError, ValueError):
    """Raised when a setter receives a value MWS would reject."""


class MwsParseError(MwsError):
    """Raised when a response body is not a well-formed XML document."""

    def __init__(self, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.body = body
