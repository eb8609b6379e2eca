"""
Edge request handler.

Takes an incoming request plus an injected key cache and settings, validates
the bearer ID token it carries, and answers with a JSON verdict.
"""

from typing import Optional

import httpx

from .config import AuthSettings
from .errors import FetchError, KeyEncodingError, MalformedToken
from .key_cache import KeyCache
from .logging import get_logger
from .validator import validate

BEARER_SCHEME = "bearer"

logger = get_logger(__name__)


def extract_token(request: httpx.Request, query_param: str) -> Optional[str]:
    """Return the token from 'Authorization: Bearer ...', else from the query string"""
    authorization = request.headers.get("authorization")
    if authorization:
        # auth scheme names are case-insensitive
        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() == BEARER_SCHEME and token.strip():
            return token.strip()

    token = request.url.params.get(query_param)
    return token or None


def _verdict(status_code: int, valid: bool, error: Optional[str] = None) -> httpx.Response:
    body = {"valid": valid}
    if error is not None:
        body["error"] = error
    return httpx.Response(status_code, json=body)


async def handle_request(request: httpx.Request, cache: KeyCache, settings: AuthSettings) -> httpx.Response:
    """
    Validate the request's ID token.

    200 valid, 401 missing or invalid token, 400 malformed token,
    502 key set could not be fetched or encoded.
    """
    token = extract_token(request, settings.token_query_param)
    if token is None:
        return _verdict(401, False, "missing_token")

    try:
        valid = await validate(settings.endpoint_url, settings.app_client_id, cache, token)
    except MalformedToken as e:
        logger.info(
            "malformed token",
            error=str(e),
            segment_count=e.segment_count,
            position=e.position,
        )
        return _verdict(400, False, e.kind.value)
    except (FetchError, KeyEncodingError) as e:
        logger.error("key set unavailable", kind=e.kind.value, error=str(e))
        return _verdict(502, False, "key_set_unavailable")

    if not valid:
        return _verdict(401, False)
    return _verdict(200, True)
