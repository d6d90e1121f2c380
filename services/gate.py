"""
AuthorizationGate: resolve the calling principal from an access token.

Token source: the `access_token` cookie wins over an `Authorization: Bearer`
header when both are present. Every failure (no token, bad signature,
expired, malformed, principal gone) collapses into the same UNAUTHORIZED
result so callers cannot tell which check failed.
"""
from __future__ import annotations

import logging

from models.credential_store import CredentialStore
from services.results import ErrorKind, Result
from services.session import sanitize
from utils.security import TokenCodec

logger = logging.getLogger(__name__)

REJECTED = "Invalid access token or request"


def extract_token(cookie_token: str | None, authorization: str | None) -> str | None:
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()
    parts = (authorization or "").split(None, 1)
    # auth scheme is case-insensitive (RFC 6750)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip() or None
    return None


class AuthorizationGate:
    def __init__(self, store: CredentialStore, codec: TokenCodec):
        self.store = store
        self.codec = codec

    def _reject(self, reason: str) -> Result[dict]:
        logger.debug("request rejected: %s", reason)
        return Result.failure(ErrorKind.UNAUTHORIZED, REJECTED)

    def authenticate(self, cookie_token: str | None = None, authorization: str | None = None) -> Result[dict]:
        token = extract_token(cookie_token, authorization)
        if token is None:
            return self._reject("no token")

        claims = self.codec.verify_access(token)
        if claims is None:
            return self._reject("token failed verification")

        user = self.store.find_by_id(claims.user_id)
        if user is None:
            return self._reject(f"principal {claims.user_id} no longer exists")

        return Result.success(sanitize(user))
