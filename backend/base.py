# backend/base.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from utils.auth_state import AuthChannel, AuthEvent, AuthListener

Row = dict[str, Any]


@dataclass
class AuthUser:
    id: str
    email: str
    user_metadata: dict = field(default_factory=dict)


@dataclass
class AuthSession:
    access_token: str
    user: AuthUser
    expires_at: Optional[datetime] = None
    refresh_token: Optional[str] = None


class Backend:
    """
    Provider surface: auth, tables and buckets. Every call that acts on
    behalf of a user takes that user's access token, so one provider instance
    serves all requests.
    """

    # ---- auth ----
    def sign_in(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> AuthSession:
        """Creates the identity. `access_token` is empty while email confirmation is pending."""
        raise NotImplementedError

    def sign_out(self, access_token: str) -> None:
        raise NotImplementedError

    def get_session(self, access_token: str) -> Optional[AuthSession]:
        raise NotImplementedError

    def delete_user(self, user_id: str) -> None:
        raise NotImplementedError

    # ---- tables ----
    def select(
        self,
        token: Optional[str],
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        single: bool = False,
    ) -> Union[list[Row], Row]:
        raise NotImplementedError

    def insert(self, token: Optional[str], table: str, rows: list[Row]) -> list[Row]:
        raise NotImplementedError

    def update(self, token: Optional[str], table: str, values: Row, filters: Mapping[str, Any]) -> list[Row]:
        raise NotImplementedError

    def delete(self, token: Optional[str], table: str, filters: Mapping[str, Any]) -> list[Row]:
        raise NotImplementedError

    # ---- storage ----
    def upload(self, token: Optional[str], bucket: str, path: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    def get_public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    def remove(self, token: Optional[str], bucket: str, paths: Iterable[str]) -> None:
        raise NotImplementedError

    # ---- lifecycle ----
    def init(self) -> None:
        """Called once on startup."""


class BackendClient:
    """
    Thin per-request wrapper: binds a provider to one caller's access token
    and publishes auth changes on its own channel.
    """

    def __init__(self, backend: Backend, access_token: Optional[str] = None):
        self.backend = backend
        self.access_token = access_token
        self.channel = AuthChannel()

    # ---- auth ----
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        return self.channel.subscribe(listener)

    def get_session(self) -> Optional[AuthSession]:
        session = self.backend.get_session(self.access_token) if self.access_token else None
        self.channel.publish(AuthEvent.INITIAL_SESSION, session)
        return session

    def sign_in(self, email: str, password: str) -> AuthSession:
        session = self.backend.sign_in(email, password)
        self.access_token = session.access_token
        self.channel.publish(AuthEvent.SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> AuthSession:
        session = self.backend.sign_up(email, password, metadata)
        if session is not None and session.access_token:
            self.access_token = session.access_token
            self.channel.publish(AuthEvent.SIGNED_IN, session)
        return session

    def sign_out(self) -> None:
        if self.access_token:
            self.backend.sign_out(self.access_token)
        self.access_token = None
        self.channel.publish(AuthEvent.SIGNED_OUT, None)

    def delete_user(self, user_id: str) -> None:
        self.backend.delete_user(user_id)

    # ---- tables ----
    def select(self, table: str, columns: str = "*", filters: Optional[Mapping[str, Any]] = None, **kw):
        return self.backend.select(self.access_token, table, columns, filters, **kw)

    def insert(self, table: str, rows: Union[Row, list[Row]]) -> list[Row]:
        if isinstance(rows, dict):
            rows = [rows]
        return self.backend.insert(self.access_token, table, rows)

    def update(self, table: str, values: Row, filters: Mapping[str, Any]) -> list[Row]:
        return self.backend.update(self.access_token, table, values, filters)

    def delete(self, table: str, filters: Mapping[str, Any]) -> list[Row]:
        return self.backend.delete(self.access_token, table, filters)

    # ---- storage ----
    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        return self.backend.upload(self.access_token, bucket, path, data, content_type)

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.backend.get_public_url(bucket, path)

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        self.backend.remove(self.access_token, bucket, list(paths))
