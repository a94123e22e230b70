"""
Authentication & Session State.

Provides an injectable ``SessionManager`` that holds the sign-in state
and the cached profile of the signed-in user.

The state machine is ``UNKNOWN -> AUTHENTICATED(user) | ANONYMOUS``.  It
starts ``UNKNOWN`` (still loading) and only moves when the identity
provider reports a change, via :meth:`SessionManager.apply_provider_user`.
Record-store responses never change it.

Usage::

    from qcheck.auth import SessionManager

    session = SessionManager()
    unsubscribe = session.subscribe(lambda user: print(user))
    session.apply_provider_user(user)      # -> AUTHENTICATED
    session.apply_provider_user(None)      # -> ANONYMOUS
    unsubscribe()
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from qcheck.models.enums import AuthState
from qcheck.models.user import User

SessionListener = Callable[[Optional[User]], None]


class SessionManager:
    """Injectable holder for the current sign-in state.

    Pass a single ``SessionManager`` through the composition root so
    every controller observes the same session.
    """

    def __init__(self) -> None:
        self._lock: threading.RLock = threading.RLock()
        self._state: AuthState = AuthState.UNKNOWN
        self._current_user: Optional[User] = None
        self._listeners: list[SessionListener] = []

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def apply_provider_user(self, user: Optional[User]) -> bool:
        """Record what the identity provider reported.

        Listeners are notified (outside the lock) only when the state or
        the signed-in account actually changed.

        Returns:
            ``True`` when the session changed.
        """
        new_state = AuthState.AUTHENTICATED if user is not None else AuthState.ANONYMOUS
        with self._lock:
            previous_id = self._current_user.id if self._current_user else None
            new_id = user.id if user else None
            changed = new_state != self._state or previous_id != new_id
            self._state = new_state
            self._current_user = user
            listeners = list(self._listeners)

        if changed:
            for listener in listeners:
                listener(user)
        return changed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        with self._lock:
            return self._state

    @property
    def current_user(self) -> Optional[User]:
        """The signed-in user, or ``None``."""
        with self._lock:
            return self._current_user

    @property
    def is_authenticated(self) -> bool:
        """``True`` when a user is currently signed in."""
        with self._lock:
            return self._state == AuthState.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        """``True`` until the provider has reported for the first time."""
        with self._lock:
            return self._state == AuthState.UNKNOWN

    # ------------------------------------------------------------------
    # Local observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call *listener* on every session change; returns an unsubscribe handle."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe
