"""
SessionService: login, registration, refresh-token rotation, logout and
password change on top of the CredentialStore, the password hasher and the
TokenCodec.

Every public method returns a Result. Expected failures never raise.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from models.credential_store import CredentialStore, normalize_identity
from models.schemas.user import UserOutSchema
from services.results import ErrorKind, LoginResult, Result, TokenPair
from utils.security import TokenCodec, hash_password, verify_password
from utils.uploads import AssetUploader

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()


def sanitize(user) -> dict:
    """Outward view of a principal (no password hash, no refresh token)."""
    return user_out_schema.dump(user)


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


class SessionService:
    def __init__(self, store: CredentialStore, codec: TokenCodec, uploader: AssetUploader):
        self.store = store
        self.codec = codec
        self.uploader = uploader

    # registration

    def register(self, username, email, full_name, password, avatar=None, cover_image=None) -> Result[dict]:
        if any(not _clean(v) for v in (username, email, full_name, password)):
            return Result.failure(ErrorKind.VALIDATION, "All fields are required")

        if self.store.exists(username=username, email=email):
            return Result.failure(ErrorKind.CONFLICT, "User with email or username already exists")

        avatar_asset = self.uploader.upload(avatar) if avatar is not None else None
        if avatar_asset is None:
            return Result.failure(ErrorKind.VALIDATION, "Avatar file is required")
        cover_asset = self.uploader.upload(cover_image) if cover_image is not None else None

        try:
            created = self.store.create(
                username=normalize_identity(username),
                email=normalize_identity(email),
                full_name=_clean(full_name),
                avatar=avatar_asset.url,
                cover_image=cover_asset.url if cover_asset else "",
                password_hash=hash_password(password),
            )
        except IntegrityError:
            # lost a race with a concurrent registration for the same identity
            self.store.storage.rollback()
            return Result.failure(ErrorKind.CONFLICT, "User with email or username already exists")

        user = self.store.find_by_id(created.id)
        if user is None:
            logger.error("principal %s missing right after create", created.id)
            return Result.failure(ErrorKind.INTERNAL, "Something went wrong while registering the user")

        logger.info("registered user %s", user.id)
        return Result.success(sanitize(user))

    # login / logout

    def login(self, password, username=None, email=None) -> Result[LoginResult]:
        if not (_clean(username) or _clean(email)):
            return Result.failure(ErrorKind.VALIDATION, "username or email is required")
        if not password:
            return Result.failure(ErrorKind.VALIDATION, "password is required")

        user = self.store.find_by_identity(username=username, email=email)
        if user is None:
            logger.info("login for unknown identity %s", normalize_identity(username) or normalize_identity(email))
            return Result.failure(ErrorKind.NOT_FOUND, "User does not exist")

        if not verify_password(password, user.password_hash):
            logger.info("bad password for user %s", user.id)
            return Result.failure(ErrorKind.INVALID_CREDENTIALS, "Invalid user credentials")

        access_token = self.codec.mint_access(user.id)
        refresh_token = self.codec.mint_refresh(user.id)
        # overwriting the slot revokes whatever session existed before
        self.store.update_by_id(user.id, refresh_token=refresh_token)

        logger.info("user %s logged in", user.id)
        return Result.success(LoginResult(access_token, refresh_token, sanitize(user)))

    def logout(self, user_id: str) -> Result[None]:
        self.store.clear_refresh_token(user_id)
        logger.info("user %s logged out", user_id)
        return Result.success(None)

    # rotation

    def refresh(self, token: str | None) -> Result[TokenPair]:
        token = _clean(token)
        if not token:
            return Result.failure(ErrorKind.UNAUTHORIZED, "Unauthorized request")

        claims = self.codec.verify_refresh(token)
        if claims is None:
            return Result.failure(ErrorKind.UNAUTHORIZED, "Invalid refresh token")

        user = self.store.find_by_id(claims.user_id)
        if user is None:
            return Result.failure(ErrorKind.UNAUTHORIZED, "Invalid refresh token")

        if user.refresh_token != token:
            return self._reject_replay(user.id)

        pair = TokenPair(self.codec.mint_access(user.id), self.codec.mint_refresh(user.id))
        if not self.store.swap_refresh_token(user.id, expected=token, new=pair.refresh_token):
            return self._reject_replay(user.id)

        logger.info("rotated refresh token for user %s", user.id)
        return Result.success(pair)

    def _reject_replay(self, user_id: str) -> Result[TokenPair]:
        logger.warning("refresh token replay for user %s; session revoked", user_id)
        self.store.clear_refresh_token(user_id)
        return Result.failure(ErrorKind.UNAUTHORIZED, "Refresh token is expired or already used")

    # account

    def change_password(self, user_id: str, old_password, new_password) -> Result[None]:
        if not old_password or not new_password:
            return Result.failure(ErrorKind.VALIDATION, "old_password and new_password are required")

        user = self.store.find_by_id(user_id)
        if user is None:
            return Result.failure(ErrorKind.NOT_FOUND, "User does not exist")
        if not verify_password(old_password, user.password_hash):
            return Result.failure(ErrorKind.INVALID_CREDENTIALS, "Invalid old password")

        # refresh tokens issued under the old password stop working
        self.store.update_by_id(user.id, password_hash=hash_password(new_password), refresh_token=None)
        logger.info("password changed for user %s", user.id)
        return Result.success(None)

    def current_user(self, user_id: str) -> Result[dict]:
        user = self.store.find_by_id(user_id)
        if user is None:
            return Result.failure(ErrorKind.NOT_FOUND, "User does not exist")
        return Result.success(sanitize(user))

    def update_account(self, user_id: str, full_name=None, email=None) -> Result[dict]:
        changes = {}
        if full_name is not None:
            if not _clean(full_name):
                return Result.failure(ErrorKind.VALIDATION, "full_name cannot be empty")
            changes["full_name"] = _clean(full_name)
        if email is not None:
            if not normalize_identity(email):
                return Result.failure(ErrorKind.VALIDATION, "email cannot be empty")
            changes["email"] = normalize_identity(email)
        if not changes:
            return Result.failure(ErrorKind.VALIDATION, "full_name or email is required")

        if "email" in changes and self.store.exists(email=changes["email"], exclude_id=user_id):
            return Result.failure(ErrorKind.CONFLICT, "Email already registered")

        try:
            user = self.store.update_by_id(user_id, **changes)
        except IntegrityError:
            self.store.storage.rollback()
            return Result.failure(ErrorKind.CONFLICT, "Email already registered")
        if user is None:
            return Result.failure(ErrorKind.NOT_FOUND, "User does not exist")
        return Result.success(sanitize(user))

    def update_avatar(self, user_id: str, file) -> Result[dict]:
        return self._replace_asset(user_id, file, "avatar", "Avatar")

    def update_cover_image(self, user_id: str, file) -> Result[dict]:
        return self._replace_asset(user_id, file, "cover_image", "Cover image")

    def _replace_asset(self, user_id: str, file, field_name: str, label: str) -> Result[dict]:
        if file is None or not getattr(file, "filename", ""):
            return Result.failure(ErrorKind.VALIDATION, f"{label} file is missing")
        if self.store.find_by_id(user_id) is None:
            return Result.failure(ErrorKind.NOT_FOUND, "User does not exist")

        asset = self.uploader.upload(file)
        if asset is None:
            return Result.failure(ErrorKind.VALIDATION, f"Error while uploading {label.lower()}")

        user = self.store.update_by_id(user_id, **{field_name: asset.url})
        return Result.success(sanitize(user))
