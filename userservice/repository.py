"""Thread-safe in-memory storage for user records."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List

from .locks import ReadWriteLock
from .models import User


class RepositoryError(Exception):
    """Base class for repository failures."""

    def __init__(self, message: str, user_id: str) -> None:
        super().__init__(message)
        self.user_id = user_id


class UserNotFoundError(RepositoryError):
    """Raised when the requested user id is not stored."""

    def __init__(self, user_id: str) -> None:
        super().__init__("User not found", user_id)


class UserConflictError(RepositoryError):
    """Raised when creating a user whose id is already taken."""

    def __init__(self, user_id: str) -> None:
        super().__init__("User already exists", user_id)


class UserRepository:
    """Map user ids to :class:`User` records behind a readers/writer lock.

    Stored users are immutable, so the values handed back to callers can never
    be used to change repository state without going through :meth:`update`.
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        with self._lock.read_locked():
            return user_id in self._users

    def get_all(self) -> List[User]:
        """Return a snapshot of every stored user in no particular order."""

        with self._lock.read_locked():
            return list(self._users.values())

    def get_by_id(self, user_id: str) -> User:
        with self._lock.read_locked():
            user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def create(self, user: User) -> User:
        """Insert ``user``; the caller assigns its id and both timestamps."""

        with self._lock.write_locked():
            if user.id in self._users:
                raise UserConflictError(user.id)
            self._users[user.id] = user
        return user

    def update(self, user: User, *, preserve_created_at: bool = False) -> User:
        """Replace the stored record for ``user.id`` and return what was stored.

        With ``preserve_created_at`` the existing creation timestamp is kept
        instead of the one carried by ``user``.
        """

        with self._lock.write_locked():
            existing = self._users.get(user.id)
            if existing is None:
                raise UserNotFoundError(user.id)
            if preserve_created_at:
                user = replace(user, created_at=existing.created_at)
            self._users[user.id] = user
        return user

    def delete(self, user_id: str) -> None:
        with self._lock.write_locked():
            if self._users.pop(user_id, None) is None:
                raise UserNotFoundError(user_id)


__all__ = [
    "RepositoryError",
    "UserConflictError",
    "UserNotFoundError",
    "UserRepository",
]
