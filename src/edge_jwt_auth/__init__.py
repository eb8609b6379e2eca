"""
Edge ID Token Validator

Validates identity provider ID tokens against the provider's published
signing keys, caching keys in a shared key-value store.
"""

from .config import AuthSettings
from .errors import (
    EdgeAuthError,
    ErrorKind,
    FetchError,
    KeyEncodingError,
    MalformedToken
)
from .handler import extract_token, handle_request
from .jwks import KeySetFetcher, SigningKey, fetch_key_set, jwk_to_pem
from .key_cache import KeyCache, KeyLock
from .logging import configure_logging, get_logger
from .store import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore
from .token import DecodedToken, RawSegments, decode_token
from .validator import EXPECTED_TOKEN_USE, validate

__version__ = "0.1.0"

__all__ = [
    "AuthSettings",
    "EdgeAuthError",
    "ErrorKind",
    "FetchError",
    "KeyEncodingError",
    "MalformedToken",
    "extract_token",
    "handle_request",
    "KeySetFetcher",
    "SigningKey",
    "fetch_key_set",
    "jwk_to_pem",
    "KeyCache",
    "KeyLock",
    "configure_logging",
    "get_logger",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "DecodedToken",
    "RawSegments",
    "decode_token",
    "EXPECTED_TOKEN_USE",
    "validate"
]
