"""
Token parser tests
"""

import pytest

from edge_jwt_auth import ErrorKind, MalformedToken, decode_token


def test_decode_splits_raw_segments():
    decoded = decode_token("abc.def.ghi")

    assert decoded.raw.header == "abc"
    assert decoded.raw.payload == "def"
    assert decoded.raw.signature == "ghi"


def test_decode_is_idempotent(key_pair, claims):
    token = key_pair.sign(claims)

    first = decode_token(token)
    second = decode_token(token)

    assert first == second
    assert first.header == second.header
    assert first.payload == second.payload
    assert first.signature == second.signature


def test_decode_parses_header_and_payload(key_pair, claims):
    token = key_pair.sign(claims, kid="kid-42")
    decoded = decode_token(token)

    assert decoded.header["alg"] == "RS256"
    assert decoded.kid == "kid-42"
    assert decoded.payload == claims
    assert isinstance(decoded.signature, bytes)
    assert len(decoded.signature) == 256  # 2048-bit RSA
    assert decoded.signing_input == token.rsplit(".", 1)[0]


@pytest.mark.parametrize(
    "token, segment_count",
    [
        ("", 1),
        ("abc", 1),
        ("abc.def", 2),
        ("a.b.c.d", 4),
        ("....", 5),
    ],
)
def test_decode_rejects_wrong_segment_count(token, segment_count):
    with pytest.raises(MalformedToken) as exc_info:
        decode_token(token)

    assert exc_info.value.segment_count == segment_count
    assert exc_info.value.kind is ErrorKind.MALFORMED_TOKEN
    assert str(exc_info.value) == f"Wrong number of sections in token, should be 3, got: {segment_count}"


def test_decode_rejects_trailing_empty_segment():
    # the trailing separator counts, so this is 3 segments with the last one empty
    with pytest.raises(MalformedToken) as exc_info:
        decode_token("abc.def.")

    assert exc_info.value.segment_count == 3
    assert exc_info.value.position == 2


@pytest.mark.parametrize("token, position", [(".def.ghi", 0), ("abc..ghi", 1), ("..", 0)])
def test_decode_rejects_empty_segment(token, position):
    with pytest.raises(MalformedToken) as exc_info:
        decode_token(token)

    assert exc_info.value.position == position


def test_real_token_with_signature_removed(key_pair, claims):
    token = key_pair.sign(claims)

    without_signature = token[:token.rindex(".")]
    with pytest.raises(MalformedToken) as exc_info:
        decode_token(without_signature)
    assert exc_info.value.segment_count == 2

    with pytest.raises(MalformedToken) as exc_info:
        decode_token(without_signature + ".")
    assert exc_info.value.position == 2


def test_undecodable_header_raises_on_access():
    decoded = decode_token("abc.def.ghi")

    with pytest.raises(MalformedToken) as exc_info:
        decoded.header
    assert exc_info.value.position == 0

    with pytest.raises(MalformedToken) as exc_info:
        decoded.payload
    assert exc_info.value.position == 1


def test_json_array_header_is_malformed():
    # base64url of '[1]'
    decoded = decode_token("WzFd.e30.c2ln")

    with pytest.raises(MalformedToken):
        decoded.header
    assert decoded.payload == {}
    assert decoded.signature == b"sig"


def test_kid_must_be_a_non_empty_string():
    # {"alg":"RS256","kid":7}
    assert decode_token("eyJhbGciOiJSUzI1NiIsImtpZCI6N30.e30.c2ln").kid is None
    # {"alg":"RS256"}
    assert decode_token("eyJhbGciOiJSUzI1NiJ9.e30.c2ln").kid is None
