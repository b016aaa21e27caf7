# backend/hosted.py
"""
Hosted provider: Supabase auth, PostgREST tables and storage buckets.

A fresh client is built per call with the caller's access token in the
Authorization header, so the database's row-level-security policies see the
right user and no auth state is shared between requests.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

import structlog
from postgrest.exceptions import APIError
from storage3.utils import StorageException
from supabase import AuthError, Client, ClientOptions, create_client

from .base import AuthSession, AuthUser, Backend, Row
from .errors import ROW_NOT_FOUND, BackendError

logger = structlog.get_logger(__name__)


def _api_error(e: APIError) -> BackendError:
    return BackendError(e.message or str(e), code=e.code, status=404 if e.code == ROW_NOT_FOUND else 400)


def _storage_error(e: StorageException) -> BackendError:
    detail = e.args[0] if e.args else e
    if isinstance(detail, dict):
        return BackendError(str(detail.get("message") or detail), code=str(detail.get("error") or ""), status=400)
    return BackendError(str(detail), status=400)


def _auth_error(e: AuthError) -> BackendError:
    return BackendError(e.message, code=getattr(e, "code", None), status=getattr(e, "status", None) or 400)


def _to_session(s, u) -> AuthSession:
    expires = datetime.fromtimestamp(s.expires_at, tz=timezone.utc) if s.expires_at else None
    return AuthSession(
        access_token=s.access_token,
        refresh_token=s.refresh_token,
        expires_at=expires,
        user=AuthUser(id=u.id, email=u.email or "", user_metadata=dict(u.user_metadata or {})),
    )


class SupabaseBackend(Backend):
    def __init__(self, url: str, key: str, service_key: Optional[str] = None):
        if not url or not key:
            raise BackendError("SUPABASE_URL and SUPABASE_KEY must be set", code="config")
        self.url = url.rstrip("/")
        self.key = key
        self.service_key = service_key

    def _client(self, token: Optional[str] = None, key: Optional[str] = None) -> Client:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        options = ClientOptions(headers=headers, auto_refresh_token=False, persist_session=False)
        return create_client(self.url, key or self.key, options=options)

    # ---------- auth ----------
    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            res = self._client().auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            raise _auth_error(e)
        return _to_session(res.session, res.user)

    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> AuthSession:
        try:
            res = self._client().auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata or {}}}
            )
        except AuthError as e:
            raise _auth_error(e)
        if res.user is None:
            raise BackendError("Sign up did not return a user", code="signup_failed")
        if res.session is None:
            # email confirmation pending; the identity exists but nobody is signed in
            logger.info("auth_signup_unconfirmed", user_id=res.user.id)
            return AuthSession(
                access_token="",
                user=AuthUser(id=res.user.id, email=res.user.email or email, user_metadata=dict(metadata or {})),
            )
        return _to_session(res.session, res.user)

    def sign_out(self, access_token: str) -> None:
        try:
            self._client().auth.admin.sign_out(access_token)
        except AuthError as e:
            raise _auth_error(e)

    def get_session(self, access_token: str) -> Optional[AuthSession]:
        try:
            res = self._client().auth.get_user(access_token)
        except AuthError as e:
            logger.info("auth_session_rejected", error=str(e))
            return None
        if not res or not res.user:
            return None
        u = res.user
        return AuthSession(
            access_token=access_token,
            user=AuthUser(id=u.id, email=u.email or "", user_metadata=dict(u.user_metadata or {})),
        )

    def delete_user(self, user_id: str) -> None:
        if not self.service_key:
            raise BackendError("Deleting auth users requires SUPABASE_SERVICE_KEY", code="service_key_missing")
        try:
            self._client(key=self.service_key).auth.admin.delete_user(user_id)
        except AuthError as e:
            raise _auth_error(e)

    # ---------- tables ----------
    @staticmethod
    def _filtered(query, filters: Optional[Mapping[str, Any]]):
        for key, value in (filters or {}).items():
            query = query.is_(key, "null") if value is None else query.eq(key, value)
        return query

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
        query = self._filtered(self._client(token).table(table).select(columns), filters)
        if order:
            query = query.order(order, desc=desc)
        if limit is not None:
            query = query.limit(limit)
        if single:
            query = query.single()
        try:
            return query.execute().data
        except APIError as e:
            raise _api_error(e)

    def insert(self, token: Optional[str], table: str, rows: list[Row]) -> list[Row]:
        try:
            return self._client(token).table(table).insert(rows).execute().data
        except APIError as e:
            raise _api_error(e)

    def update(self, token: Optional[str], table: str, values: Row, filters: Mapping[str, Any]) -> list[Row]:
        query = self._filtered(self._client(token).table(table).update(values), filters)
        try:
            return query.execute().data
        except APIError as e:
            raise _api_error(e)

    def delete(self, token: Optional[str], table: str, filters: Mapping[str, Any]) -> list[Row]:
        query = self._filtered(self._client(token).table(table).delete(), filters)
        try:
            return query.execute().data
        except APIError as e:
            raise _api_error(e)

    # ---------- storage ----------
    def upload(self, token: Optional[str], bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            self._client(token).storage.from_(bucket).upload(path, data, {"content-type": content_type})
        except StorageException as e:
            raise _storage_error(e)
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return self._client().storage.from_(bucket).get_public_url(path)

    def remove(self, token: Optional[str], bucket: str, paths: Iterable[str]) -> None:
        try:
            self._client(token).storage.from_(bucket).remove(list(paths))
        except StorageException as e:
            raise _storage_error(e)
