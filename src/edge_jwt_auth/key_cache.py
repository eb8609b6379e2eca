"""
Cache-aside signing key resolution with a soft lock.

Keys live in a shared key-value store under
    <prefix><kid>.data  -> JSON-encoded PEM string, long TTL
    <prefix><kid>.lock  -> JSON {"lockCreated": epochMillis}, short TTL

The lock is only a hint that another caller is fetching. It is not a mutex:
it is never released, may not be visible yet, and concurrent fetches for the
same kid are allowed. Writes are idempotent since a kid always maps to the
same PEM.
"""

import json
import time
from dataclasses import dataclass
from typing import Optional

from .jwks import KeySetFetcher, SigningKey
from .logging import get_logger
from .store import KeyValueStore

DEFAULT_KEY_PREFIX = "edge.jwt.validate.pem."
DATA_SUFFIX = ".data"
LOCK_SUFFIX = ".lock"

DEFAULT_KEY_TTL = 1209600  # 14 days
DEFAULT_LOCK_TTL = 62

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeyLock:
    """Advisory marker written before a fetch; self-expires"""
    kid: str
    lock_created: int

    def to_json(self) -> str:
        return json.dumps({"lockCreated": self.lock_created})


class KeyCache:
    """
    Resolves a kid to a SigningKey, checking the store first and falling back
    to the key set fetcher on a miss.

    Unknown kids are never cached, so a repeated unknown kid re-triggers a
    fetch every time.
    """

    def __init__(
        self,
        store: KeyValueStore,
        fetcher: Optional[KeySetFetcher] = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        key_ttl_seconds: int = DEFAULT_KEY_TTL,
        lock_ttl_seconds: int = DEFAULT_LOCK_TTL,
    ):
        self.store = store
        self.fetcher = fetcher or KeySetFetcher()
        self.key_prefix = key_prefix
        self.key_ttl_seconds = key_ttl_seconds
        self.lock_ttl_seconds = lock_ttl_seconds

    def data_key(self, kid: str) -> str:
        return f"{self.key_prefix}{kid}{DATA_SUFFIX}"

    def lock_key(self, kid: str) -> str:
        return f"{self.key_prefix}{kid}{LOCK_SUFFIX}"

    async def get_key_for_kid(self, endpoint_url: str, kid: str) -> Optional[SigningKey]:
        """
        Return the signing key for kid, or None if the provider does not
        publish it. FetchError and KeyEncodingError propagate.
        """

        # Check cache first
        cached = await self.store.get(self.data_key(kid))
        if cached is not None:
            return SigningKey(kid=kid, public_key_pem=json.loads(cached))

        lock = await self.store.get(self.lock_key(kid))
        if lock is not None:
            # Someone else may be mid-fetch and their write may not be visible
            # yet. Fetch directly instead of waiting on them.
            logger.debug("key lock present, fetching without caching", kid=kid)
            return await self._fetch_kid(endpoint_url, kid)

        # First in: mark the fetch as in flight before going upstream
        key_lock = KeyLock(kid=kid, lock_created=int(time.time() * 1000))
        await self.store.put(self.lock_key(kid), key_lock.to_json(), self.lock_ttl_seconds)

        signing_key = await self._fetch_kid(endpoint_url, kid)
        if signing_key is None:
            return None

        await self.store.put(self.data_key(kid), json.dumps(signing_key.public_key_pem), self.key_ttl_seconds)
        logger.info("cached signing key", kid=kid, ttl_seconds=self.key_ttl_seconds)
        return signing_key

    async def _fetch_kid(self, endpoint_url: str, kid: str) -> Optional[SigningKey]:
        signing_keys = await self.fetcher.fetch_key_set(endpoint_url)
        signing_key = signing_keys.get(kid)
        if signing_key is None:
            logger.info("kid not in provider key set", kid=kid, available=sorted(signing_keys))
        return signing_key
