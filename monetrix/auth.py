"""
Session State.

Provides an injectable ``SessionManager`` that holds the authenticated
user (``User`` model) whose id scopes every service call.  Sign-in itself
happens outside this package; callers hand over the resulting profile.

Usage::

    from monetrix.auth import SessionManager
    from monetrix.models.user import User

    session = SessionManager()
    session.set_current_user(User(id="9b6c...", email="ana@example.com"))
    services["transaction_service"].list_transactions(session.get_current_user())
"""

from __future__ import annotations

import threading
from typing import Optional

from monetrix.models.user import User


class SessionManager:
    """Injectable holder for the current authenticated user.

    Each instance maintains its own session state.  Pass a single
    ``SessionManager`` through the composition root so every component
    shares the same session.
    """

    def __init__(self) -> None:
        self._lock: threading.RLock = threading.RLock()
        self._current_user: Optional[User] = None

    def set_current_user(self, user: User) -> None:
        """Record *user* as the authenticated session user."""
        with self._lock:
            self._current_user = user

    def get_current_user(self) -> User:
        """Return the authenticated user.

        Raises:
            RuntimeError: If no user is currently authenticated.
        """
        with self._lock:
            if self._current_user is None:
                raise RuntimeError(
                    "No user is currently authenticated. Login required."
                )
            return self._current_user

    def clear(self) -> None:
        """Remove the current user, ending the session."""
        with self._lock:
            self._current_user = None

    @property
    def is_authenticated(self) -> bool:
        """``True`` when a user is currently logged in."""
        with self._lock:
            return self._current_user is not None
