"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT, configured by an explicit TokenConfig
- JTI generation for token identifiers
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

logger = logging.getLogger(__name__)

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """ Verify a plaintext password using argon2 (constant time)
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenConfig:
    access_secret: str
    access_ttl: timedelta
    refresh_secret: str
    refresh_ttl: timedelta
    algorithm: str = "HS256"
    issuer: str = "session-auth-api"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "TokenConfig":
        """Build from a Flask config (or any mapping with the same keys)."""
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "session-auth-api"),
        )


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime
    jti: str


class TokenCodec:
    """
    Mints and verifies access/refresh JWTs. Each token type has its own
    secret and lifetime; a token of one type never verifies as the other.
    """

    def __init__(self, config: TokenConfig):
        self.config = config

    def _settings(self, token_type: str) -> tuple[str, timedelta]:
        if token_type == ACCESS:
            return self.config.access_secret, self.config.access_ttl
        if token_type == REFRESH:
            return self.config.refresh_secret, self.config.refresh_ttl
        raise ValueError(f"unknown token type: {token_type}")

    def mint(self, user_id: str, token_type: str) -> str:
        secret, ttl = self._settings(token_type)
        now = _now()
        payload = {
            "iss": self.config.issuer,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, secret, algorithm=self.config.algorithm)

    def verify(self, token: str | None, token_type: str) -> TokenClaims | None:
        """
        Decode and validate a JWT. Returns None on a bad signature, expiry,
        malformed input or wrong token type.
        """
        if not token:
            return None
        secret, _ = self._settings(token_type)
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("%s token expired", token_type)
            return None
        except jwt.InvalidTokenError as exc:
            logger.debug("invalid %s token: %s", token_type, exc)
            return None

        if decoded.get("type") != token_type or not decoded.get("sub"):
            logger.debug("wrong token type, expected %s", token_type)
            return None
        return TokenClaims(
            user_id=str(decoded["sub"]),
            issued_at=datetime.fromtimestamp(decoded["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(decoded["exp"], tz=timezone.utc),
            jti=decoded.get("jti", ""),
        )

    def mint_access(self, user_id: str) -> str:
        return self.mint(user_id, ACCESS)

    def mint_refresh(self, user_id: str) -> str:
        return self.mint(user_id, REFRESH)

    def verify_access(self, token: str | None) -> TokenClaims | None:
        return self.verify(token, ACCESS)

    def verify_refresh(self, token: str | None) -> TokenClaims | None:
        return self.verify(token, REFRESH)
