"""
Compact token parsing.

Splits a token into its header, payload and signature segments. The split is
checked eagerly; segment contents are base64url-decoded on first access.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Optional

from .errors import MalformedToken

SEGMENT_SEPARATOR = "."
SEGMENT_NAMES = ("header", "payload", "signature")


def _b64url_decode(segment: str, name: str, position: int) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError) as e:
        raise MalformedToken(
            f"Token {name} is not valid base64url: {e}", segment_count=3, position=position
        ) from e


def _decode_json_segment(segment: str, name: str, position: int) -> Dict[str, Any]:
    data = _b64url_decode(segment, name, position)
    try:
        decoded = json.loads(data)
    except ValueError as e:
        raise MalformedToken(
            f"Token {name} is not valid JSON: {e}", segment_count=3, position=position
        ) from e
    if not isinstance(decoded, dict):
        raise MalformedToken(f"Token {name} is not a JSON object", segment_count=3, position=position)
    return decoded


@dataclass(frozen=True)
class RawSegments:
    """The token split on the separator, segments kept exactly as received"""
    header: str
    payload: str
    signature: str


@dataclass(frozen=True)
class DecodedToken:
    """
    A structurally valid token.

    header and payload are parsed as JSON objects, signature is decoded to
    raw bytes only. Each raises MalformedToken on first access if its
    segment is not decodable.
    """
    raw: RawSegments

    @cached_property
    def header(self) -> Dict[str, Any]:
        return _decode_json_segment(self.raw.header, "header", 0)

    @cached_property
    def payload(self) -> Dict[str, Any]:
        return _decode_json_segment(self.raw.payload, "payload", 1)

    @cached_property
    def signature(self) -> bytes:
        return _b64url_decode(self.raw.signature, "signature", 2)

    def decode_segments(self) -> "DecodedToken":
        """Decode all three segments now, raising MalformedToken for the first bad one"""
        self.header, self.payload, self.signature
        return self

    @property
    def kid(self) -> Optional[str]:
        kid = self.header.get("kid")
        if isinstance(kid, str) and kid:
            return kid
        return None

    @property
    def signing_input(self) -> str:
        return f"{self.raw.header}{SEGMENT_SEPARATOR}{self.raw.payload}"


def decode_token(token: str) -> DecodedToken:
    """
    Split a compact token into its three segments.

    Raises MalformedToken unless the token has exactly 3 segments and none is
    empty. A trailing separator counts as an extra (empty) segment.
    """
    parts = token.split(SEGMENT_SEPARATOR)

    # there should be 2 separators, meaning 3 parts
    if len(parts) != 3:
        raise MalformedToken(
            f"Wrong number of sections in token, should be 3, got: {len(parts)}",
            segment_count=len(parts),
        )

    for position, part in enumerate(parts):
        if not part:
            raise MalformedToken(
                f"Zero length {SEGMENT_NAMES[position]} section in token at position: {position}",
                segment_count=len(parts),
                position=position,
            )

    return DecodedToken(raw=RawSegments(header=parts[0], payload=parts[1], signature=parts[2]))
