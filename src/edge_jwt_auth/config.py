"""
Configuration for the edge auth handler.

Values come from EDGE_AUTH_* environment variables or a .env file. Only the
handler reads settings; the validator and key cache take everything as
explicit arguments.
"""

from typing import Optional

import httpx
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .jwks import DEFAULT_TIMEOUT, KeySetFetcher
from .key_cache import DEFAULT_KEY_PREFIX, DEFAULT_KEY_TTL, DEFAULT_LOCK_TTL, KeyCache
from .logging import configure_logging
from .store import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore


class AuthSettings(BaseSettings):
    """Settings for validating provider ID tokens at the edge."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_AUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Identity provider
    endpoint_url: str = Field(description="Provider endpoint, also the expected 'iss' claim")
    app_client_id: str = Field(description="App client id, the expected 'aud' claim")

    # Key cache
    key_ttl_seconds: int = Field(default=DEFAULT_KEY_TTL, gt=0)
    lock_ttl_seconds: int = Field(default=DEFAULT_LOCK_TTL, gt=0)
    cache_key_prefix: str = DEFAULT_KEY_PREFIX
    redis_url: Optional[str] = None

    # Upstream fetch
    http_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    # Request handling
    token_query_param: str = "id_token"
    log_level: str = "info"

    @field_validator("endpoint_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def setup_logging(self, json_output: bool = True) -> None:
        """Configure structured logging at log_level"""
        configure_logging(self.log_level, json_output=json_output)

    def build_store(self) -> KeyValueStore:
        """Redis when redis_url is set, otherwise an in-process store"""
        if self.redis_url:
            return RedisKeyValueStore.from_url(self.redis_url)
        return MemoryKeyValueStore()

    def build_key_cache(self, store: KeyValueStore, client: Optional[httpx.AsyncClient] = None) -> KeyCache:
        """Create a KeyCache over store using these settings"""
        return KeyCache(
            store,
            fetcher=KeySetFetcher(client=client, timeout=self.http_timeout_seconds),
            key_prefix=self.cache_key_prefix,
            key_ttl_seconds=self.key_ttl_seconds,
            lock_ttl_seconds=self.lock_ttl_seconds,
        )
