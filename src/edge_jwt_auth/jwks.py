"""
Key set fetching.

Retrieves the identity provider's signing keys from
{endpoint}/.well-known/jwks.json and converts each RSA entry to PEM text.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from jose import jwk
from jose.constants import ALGORITHMS
from jose.exceptions import JWKError

from .errors import FetchError, KeyEncodingError
from .logging import get_logger

JWKS_PATH = "/.well-known/jwks.json"
DEFAULT_TIMEOUT = 10.0

logger = get_logger(__name__)


@dataclass(frozen=True)
class SigningKey:
    """A provider signing key, identified by kid, in PEM form"""
    kid: str
    public_key_pem: str


def jwks_url_for(endpoint_url: str) -> str:
    """Convert 'https://idp.example.com/pool' to 'https://idp.example.com/pool/.well-known/jwks.json'"""
    return endpoint_url.rstrip("/") + JWKS_PATH


def jwk_to_pem(entry: Any) -> str:
    """
    Build an RSA public key from a key set entry's kty/n/e fields and
    return it as PEM text. Raises KeyEncodingError for anything unusable.
    """
    if not isinstance(entry, dict):
        raise KeyEncodingError(f"Key set entry is not an object: {entry!r}")

    kid = entry.get("kid")
    if entry.get("kty") != "RSA":
        raise KeyEncodingError(f"Unsupported key type: {entry.get('kty')!r}", kid=kid)

    for field in ("n", "e"):
        if not isinstance(entry.get(field), str) or not entry[field]:
            raise KeyEncodingError(f"Key set entry missing '{field}'", kid=kid)

    # Only the public RSA components go into the key
    key_data = {"kty": entry["kty"], "n": entry["n"], "e": entry["e"]}
    try:
        pem = jwk.construct(key_data, ALGORITHMS.RS256).to_pem()
    except (JWKError, ValueError, TypeError) as e:
        raise KeyEncodingError(f"Failed to encode key '{kid}' as PEM: {e}", kid=kid) from e

    return pem.decode("utf-8") if isinstance(pem, bytes) else pem


class KeySetFetcher:
    """
    Fetches the full current key set from a discovery endpoint.

    Returns {kid: SigningKey}. Fails loudly rather than returning an empty
    or partial map.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT):
        self.client = client
        self.timeout = timeout

    async def fetch_key_set(self, endpoint_url: str) -> Dict[str, SigningKey]:
        jwks_url = jwks_url_for(endpoint_url)
        logger.debug("fetching key set", url=jwks_url)

        document = await self._get_document(jwks_url)

        keys = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(keys, list):
            raise FetchError(f"Key set from '{jwks_url}' has no 'keys' list", url=jwks_url)

        signing_keys: Dict[str, SigningKey] = {}
        for entry in keys:
            pem = jwk_to_pem(entry)
            kid = entry.get("kid")
            if not isinstance(kid, str) or not kid:
                raise KeyEncodingError("Key set entry missing 'kid'")
            signing_keys[kid] = SigningKey(kid=kid, public_key_pem=pem)
            logger.debug("processed key set entry", kid=kid)

        return signing_keys

    async def _get_document(self, jwks_url: str) -> Any:
        headers = {"content-type": "application/json;charset=UTF-8"}
        try:
            if self.client is not None:
                response = await self.client.get(jwks_url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(jwks_url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Failed to fetch key set from '{jwks_url}': HTTP {e.response.status_code}",
                url=jwks_url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch key set from '{jwks_url}': {e}", url=jwks_url) from e

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                f"Key set from '{jwks_url}' is not JSON: {e}",
                url=jwks_url,
                status_code=response.status_code,
            ) from e


async def fetch_key_set(endpoint_url: str, client: Optional[httpx.AsyncClient] = None) -> Dict[str, SigningKey]:
    """Fetch the key set with a default KeySetFetcher"""
    return await KeySetFetcher(client=client).fetch_key_set(endpoint_url)
