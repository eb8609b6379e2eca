"""
Shared fixtures: locally generated RSA key pairs, token signing helpers,
and a counting key set fetcher so no test touches the network.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from edge_jwt_auth import KeyCache, MemoryKeyValueStore, SigningKey

ENDPOINT_URL = "https://cognito-idp.eu-west-1.amazonaws.com/eu-west-1_TestPool"
CLIENT_ID = "3n4b5urk1ft4fl3mg5e62d9ado"
KID = "test-kid-1"


class KeyPair:
    def __init__(self):
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("utf-8")
        self.public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("utf-8")

    def jwk_entry(self, kid: str) -> Dict[str, Any]:
        entry = jwk.construct(self.public_pem, "RS256").to_dict()
        entry["kid"] = kid
        entry["use"] = "sig"
        return entry

    def sign(self, claims: Dict[str, Any], kid: Optional[str] = KID) -> str:
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(claims, self.private_pem, algorithm="RS256", headers=headers)


class CountingFetcher:
    """Stands in for KeySetFetcher; records how often it is asked for the key set"""

    def __init__(self, keys: Optional[Dict[str, SigningKey]] = None, error: Optional[Exception] = None):
        self.keys = keys or {}
        self.error = error
        self.calls = 0

    async def fetch_key_set(self, endpoint_url: str) -> Dict[str, SigningKey]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return dict(self.keys)


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    return KeyPair()


@pytest.fixture(scope="session")
def other_key_pair() -> KeyPair:
    return KeyPair()


@pytest.fixture
def claims() -> Dict[str, Any]:
    return {
        "sub": "aaaaaaaa-bbbb-cccc-dddd-example",
        "iss": ENDPOINT_URL,
        "aud": CLIENT_ID,
        "token_use": "id",
        "auth_time": int(time.time()),
        "iat": int(time.time()),
        "exp": int(time.time()) + 3600,
    }


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def fetcher(key_pair) -> CountingFetcher:
    return CountingFetcher({KID: SigningKey(kid=KID, public_key_pem=key_pair.public_pem)})


@pytest.fixture
def cache(store, fetcher) -> KeyCache:
    return KeyCache(store, fetcher=fetcher)
