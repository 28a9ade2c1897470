"""Password hashing, bearer tokens and password-reset credentials."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Tuple

import bcrypt
import jwt
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from .config import Settings

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what PyMongo hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_seconds(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class PasswordHasher:
    """Salted bcrypt hashing with a fixed work factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds
        self._dummy_digest = self.hash(secrets.token_hex(16))

    @staticmethod
    def _encode(plaintext: str) -> bytes:
        return str(plaintext).encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, plaintext: str) -> str:
        digest = bcrypt.hashpw(self._encode(plaintext), bcrypt.gensalt(rounds=self._rounds))
        return digest.decode("utf-8")

    def verify(self, plaintext: str, digest) -> bool:
        if not plaintext or not digest:
            return False
        if isinstance(digest, str):
            digest = digest.encode("utf-8")
        try:
            return bcrypt.checkpw(self._encode(plaintext), digest)
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        """Spend one verification on a throwaway digest.

        Used when no account matched so the caller cannot tell the two
        outcomes apart by timing.
        """
        self.verify(plaintext or "-", self._dummy_digest)
        return False


@dataclass(frozen=True)
class TokenClaims:
    account_id: str
    issued_at: int
    expires_at: int


class TokenRejected(Exception):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TokenCodec:
    """Issues and verifies signed access tokens.

    Tokens carry only the account identifier (``sub``) and the standard
    ``iat``/``exp`` claims; they say nothing about roles. Both operations need
    an active Flask application context with ``JWTManager`` initialised.
    """

    def __init__(self, ttl_seconds: int = 3600) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)

    def issue(self, account_id) -> str:
        return create_access_token(identity=str(account_id), expires_delta=self._ttl)

    def verify(self, token: str) -> TokenClaims:
        if not token:
            raise TokenRejected(TokenRejected.MALFORMED)
        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError as exc:
            raise TokenRejected(TokenRejected.EXPIRED) from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenRejected(TokenRejected.INVALID_SIGNATURE) from exc
        except (jwt.InvalidTokenError, JWTExtendedException) as exc:
            raise TokenRejected(TokenRejected.MALFORMED) from exc

        account_id = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not account_id or not isinstance(issued_at, int) or not isinstance(expires_at, int):
            raise TokenRejected(TokenRejected.MALFORMED)
        return TokenClaims(
            account_id=str(account_id), issued_at=issued_at, expires_at=expires_at
        )


class ResetTokenGenerator:
    """Single-use password reset credentials.

    The raw token goes to the user; only its SHA-256 digest is stored.
    """

    def __init__(self, num_bytes: int = 32, ttl_minutes: int = 10) -> None:
        self._num_bytes = max(32, num_bytes)
        self._ttl = timedelta(minutes=ttl_minutes)

    @staticmethod
    def digest(raw_token: str) -> str:
        return hashlib.sha256(str(raw_token).encode("utf-8")).hexdigest()

    def generate(self) -> Tuple[str, str, datetime]:
        raw_token = secrets.token_hex(self._num_bytes)
        return raw_token, self.digest(raw_token), utcnow() + self._ttl


def build_security(settings: Settings) -> Tuple[PasswordHasher, TokenCodec, ResetTokenGenerator]:
    return (
        PasswordHasher(rounds=settings.bcrypt_rounds),
        TokenCodec(ttl_seconds=settings.jwt_ttl_seconds),
        ResetTokenGenerator(
            num_bytes=settings.reset_token_bytes,
            ttl_minutes=settings.reset_token_ttl_minutes,
        ),
    )
