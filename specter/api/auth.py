"""Admin API authentication: key parsing and short-lived JWT issuance."""

from __future__ import annotations

import hashlib
import hmac
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Final

from jose import jwt
from jose.exceptions import JOSEError

from specter.exceptions import AuthError, BadKeyFormatError, BadSecretError, MalformedInputError

ALGORITHM: Final = "HS256"
AUDIENCE: Final = "/admin/"
TOKEN_LIFETIME: Final = timedelta(minutes=5)

_NON_HEX = re.compile(r"[^0-9a-fA-F]")


def hex_decode(value: str) -> bytes:
    """Decode a hex string, rejecting odd lengths and non-hex characters.

    ``bytes.fromhex`` alone tolerates embedded whitespace, so the input is
    validated first.
    """
    if len(value) % 2 != 0:
        msg = "hex string has odd length"
        raise MalformedInputError(msg)
    bad = _NON_HEX.search(value)
    if bad is not None:
        msg = f"invalid hex character: {bad.group()!r}"
        raise MalformedInputError(msg)
    return bytes.fromhex(value)


def hex_encode(data: bytes) -> str:
    return data.hex()


def hmac_sha256(key: bytes, message: bytes) -> bytes:
    """Compute an HMAC-SHA256 digest."""
    return hmac.new(key, message, hashlib.sha256).digest()


@dataclass(frozen=True)
class ApiKey:
    """Composite admin key ``<id>:<hex-secret>``."""

    key_id: str
    secret: bytes = field(repr=False)


def parse_api_key(raw_key: str) -> ApiKey:
    """Split an admin key on the first ``:`` and decode the secret."""
    key_id, sep, secret_hex = raw_key.partition(":")
    if not sep:
        msg = "invalid admin key format: expected 'id:secret'"
        raise BadKeyFormatError(msg)
    try:
        secret = hex_decode(secret_hex)
    except MalformedInputError as exc:
        msg = f"decoding secret: {exc}"
        raise BadSecretError(msg) from exc
    return ApiKey(key_id=key_id, secret=secret)


def _unix_seconds(now: datetime | int) -> int:
    """Naive datetimes are taken as UTC."""
    if isinstance(now, datetime):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return int(now.timestamp())
    return int(now)


def build_claims(now: datetime | int) -> dict[str, int | str]:
    """Build the token claims for an issue time."""
    iat = _unix_seconds(now)
    return {
        "iat": iat,
        "exp": iat + int(TOKEN_LIFETIME.total_seconds()),
        "aud": AUDIENCE,
    }


def issue_token(api_key: str, now: datetime | int) -> str:
    """Create a signed admin token valid for five minutes from ``now``.

    The result depends only on the key and ``now``: python-jose serializes the
    header with sorted keys and the claims in insertion order, so identical
    inputs always yield an identical token.
    """
    key = parse_api_key(api_key)
    try:
        token = jwt.encode(
            build_claims(now),
            key.secret,
            algorithm=ALGORITHM,
            headers={"kid": key.key_id},
        )
    except JOSEError as exc:
        msg = f"signing token: {exc}"
        raise AuthError(msg) from exc
    return str(token)
