"""
CredentialStore: the durable record of principals.

Thin layer over DBStorage that exposes exactly what the session core needs:
lookup by identity or id, create, partial update and an atomic
compare-and-swap on the refresh-token slot.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from models.db_storage import DBStorage
from models.user import User

logger = logging.getLogger(__name__)


def normalize_identity(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


class CredentialStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _query(self):
        return self.storage.get_session().query(User)

    def find_by_identity(self, username: str | None = None, email: str | None = None) -> User | None:
        """Return the principal whose username OR email matches."""
        clauses = []
        username = normalize_identity(username)
        email = normalize_identity(email)
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return None
        return self._query().filter(or_(*clauses)).first()

    def exists(self, username: str | None = None, email: str | None = None, exclude_id: str | None = None) -> bool:
        clauses = []
        username = normalize_identity(username)
        email = normalize_identity(email)
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return False
        query = self._query().filter(or_(*clauses))
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def find_by_id(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self.storage.get(User, user_id)

    def create(self, **fields) -> User:
        user = User(**fields)
        self.storage.new(user)
        self.storage.save()
        logger.debug("created principal %s", user.id)
        return user

    def update_by_id(self, user_id: str, **fields) -> User | None:
        """
        Apply a partial update. Passing None for a field clears it.
        Returns the updated principal, or None if it does not exist.
        """
        user = self.find_by_id(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        self.storage.new(user)
        self.storage.save()
        return user

    def swap_refresh_token(self, user_id: str, expected: str, new: str | None) -> bool:
        """
        Replace the stored refresh token only if it still equals `expected`.
        Runs as a single conditional UPDATE so two concurrent rotations of the
        same token cannot both win.
        """
        updated = (
            self._query()
            .filter(User.id == user_id, User.refresh_token == expected)
            .update({User.refresh_token: new}, synchronize_session="fetch")
        )
        self.storage.save()
        return updated == 1

    def clear_refresh_token(self, user_id: str) -> None:
        self._query().filter(User.id == user_id).update(
            {User.refresh_token: None}, synchronize_session="fetch"
        )
        self.storage.save()
