# utils/auth_state.py
"""
Session state for one request.

The backend client publishes auth events (sign in, sign out, initial
session check) on an AuthChannel it owns. A SessionContext subscribes to that
channel and moves through three states:

    loading -> unauthenticated | authenticated

`gate()` turns the state into a routing decision for a view.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from backend.base import AuthSession, AuthUser

logger = structlog.get_logger(__name__)

AuthListener = Callable[["AuthEvent", Optional["AuthSession"]], None]

LOGIN_VIEW = "/login"
HOME_VIEW = "/dashboard"
PUBLIC_VIEWS = frozenset({"/login", "/signup"})


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class GateState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class AuthChannel:
    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, event: AuthEvent, session: Optional["AuthSession"]) -> None:
        for listener in list(self._listeners):
            listener(event, session)


class SessionContext:
    def __init__(self, channel: AuthChannel) -> None:
        self.state = GateState.LOADING
        self.session: Optional["AuthSession"] = None
        self._unsubscribe = channel.subscribe(self._on_auth_change)

    @property
    def user(self) -> Optional["AuthUser"]:
        return self.session.user if self.session else None

    @property
    def loading(self) -> bool:
        return self.state is GateState.LOADING

    def _on_auth_change(self, event: AuthEvent, session: Optional["AuthSession"]) -> None:
        self.session = session
        self.state = GateState.AUTHENTICATED if session else GateState.UNAUTHENTICATED
        logger.debug("auth_state_changed", auth_event=event.value, state=self.state.value)

    def close(self) -> None:
        self._unsubscribe()


@dataclass(frozen=True)
class GateDecision:
    action: str  # "wait" | "admit" | "redirect"
    target: Optional[str] = None


def gate(state: GateState, view: str) -> GateDecision:
    # the approved flag is not part of the gate
    if view in PUBLIC_VIEWS:
        if state is GateState.AUTHENTICATED:
            return GateDecision("redirect", HOME_VIEW)
        return GateDecision("admit")

    if state is GateState.LOADING:
        return GateDecision("wait")
    if state is GateState.UNAUTHENTICATED:
        return GateDecision("redirect", LOGIN_VIEW)
    return GateDecision("admit")
