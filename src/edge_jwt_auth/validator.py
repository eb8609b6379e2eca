"""
ID Token Validator - Core Implementation

Turns a raw token into a single boolean verdict.
"""

import time
from typing import Any, Dict, Optional

from jose import jws
from jose.constants import ALGORITHMS
from jose.exceptions import JWSError

from .key_cache import KeyCache
from .logging import get_logger
from .token import decode_token

EXPECTED_TOKEN_USE = "id"

logger = get_logger(__name__)


def _check_claims(payload: Dict[str, Any], endpoint_url: str, expected_audience: str) -> Optional[str]:
    """Return the name of the first failing claim check, or None if all pass"""

    # expired (equality and NaN count as expired)
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return "exp_not_numeric"
    seconds_since_epoch_now = round(time.time())
    if not exp > seconds_since_epoch_now:
        return "expired"

    # iss (issuer) - should be the provider endpoint
    if payload.get("iss") != endpoint_url:
        return "issuer_mismatch"

    # aud (audience) - should be the app client id
    if payload.get("aud") != expected_audience:
        return "audience_mismatch"

    if payload.get("token_use") != EXPECTED_TOKEN_USE:
        return "token_use_mismatch"

    return None


async def validate(endpoint_url: str, expected_audience: str, cache: KeyCache, token: str) -> bool:
    """
    Validate an ID token.

    Returns True only if the token:
     - has 3 non-zero length sections
     - carries a kid the provider publishes a key for
     - has a valid RS256 signature over header.payload
     - has not expired
     - was issued by endpoint_url
     - is for expected_audience
     - has token_use "id"

    Returns False for every other outcome. MalformedToken, FetchError and
    KeyEncodingError are raised, not folded into False.
    """

    # STEP 1: Decode every segment before any I/O (MalformedToken propagates)
    decoded = decode_token(token).decode_segments()

    # STEP 2: Resolve the signing key by kid
    kid = decoded.kid
    if kid is None:
        logger.info("token rejected", reason="missing_kid")
        return False

    signing_key = await cache.get_key_for_kid(endpoint_url, kid)
    if signing_key is None:
        logger.info("token rejected", reason="unknown_kid", kid=kid)
        return False

    # STEP 3: Verify signature
    try:
        jws.verify(token, signing_key.public_key_pem, algorithms=[ALGORITHMS.RS256])
    except JWSError as e:
        logger.info("token rejected", reason="bad_signature", kid=kid, error=str(e))
        return False

    # STEP 4: Claim checks
    failed = _check_claims(decoded.payload, endpoint_url, expected_audience)
    if failed is not None:
        logger.info("token rejected", reason=failed, kid=kid)
        return False

    # got all the way through, token is ok
    return True
