"""
Edge auth error classes
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag carried by every EdgeAuthError so callers can branch on kind"""
    MALFORMED_TOKEN = "malformed_token"
    FETCH_ERROR = "fetch_error"
    KEY_ENCODING_ERROR = "key_encoding_error"


class EdgeAuthError(Exception):
    """Base exception for all edge auth errors"""
    kind: ErrorKind


class MalformedToken(EdgeAuthError):
    """
    Raised when a token cannot be structurally decoded:
    wrong segment count, an empty segment, or bad base64url/JSON content.
    """
    kind = ErrorKind.MALFORMED_TOKEN

    def __init__(self, message: str, segment_count: Optional[int] = None, position: Optional[int] = None):
        super().__init__(message)
        self.segment_count = segment_count
        self.position = position


class FetchError(EdgeAuthError):
    """
    Raised when the key set cannot be retrieved from the discovery endpoint.
    Never used to signal an unknown kid.
    """
    kind = ErrorKind.FETCH_ERROR

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class KeyEncodingError(EdgeAuthError):
    """
    Raised when a key set entry cannot be converted to a PEM public key.
    Aborts the whole fetch.
    """
    kind = ErrorKind.KEY_ENCODING_ERROR

    def __init__(self, message: str, kid: Optional[str] = None):
        super().__init__(message)
        self.kid = kid
