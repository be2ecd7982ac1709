"""Core of the in-memory user service."""

from __future__ import annotations

from typing import Any

from .models import User
from .repository import UserConflictError, UserNotFoundError, UserRepository


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "User",
    "UserConflictError",
    "UserNotFoundError",
    "UserRepository",
    "create_app",
]
