# backend/sql.py
"""
Self-hosted provider: the backend surface implemented over SQLAlchemy tables,
passlib/PyJWT sessions and a local filesystem bucket.

Table calls mimic PostgREST: `columns` is a comma projection, `filters` are
equality matches, and `single=True` on zero rows raises ROW_NOT_FOUND.
Row-level-security policies are not reproduced.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import structlog
from sqlalchemy import Boolean, Date, DateTime, Float, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db import Base
from models import TABLES, AuthAccount, AuthToken
from utils.security import (
    access_exp,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from .base import AuthSession, AuthUser, Backend, Row
from .errors import ROW_NOT_FOUND, BackendError
from .local_storage import LocalBucketStorage

logger = structlog.get_logger(__name__)


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _as_aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class SqlBackend(Backend):
    def __init__(self, session_factory: Callable[[], Session], storage: LocalBucketStorage, engine: Optional[Engine] = None):
        self._session_factory = session_factory
        self.storage = storage
        self.engine = engine

    def init(self) -> None:
        if self.engine is not None:
            url = self.engine.url
            if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            Base.metadata.create_all(bind=self.engine)
        self.storage.base_dir.mkdir(parents=True, exist_ok=True)

    # ---------- helpers ----------
    @staticmethod
    def _model(table: str):
        model = TABLES.get(table)
        if model is None:
            raise BackendError(f'relation "public.{table}" does not exist', code="42P01", status=404)
        return model

    @staticmethod
    def _column_names(model, table: str, names: Iterable[str]) -> list[str]:
        known = model.__table__.columns
        out = []
        for name in names:
            if name not in known:
                raise BackendError(
                    f"Could not find the '{name}' column of '{table}' in the schema cache",
                    code="PGRST204",
                    status=400,
                )
            out.append(name)
        return out

    def _projection(self, model, table: str, columns: str) -> list[str]:
        wanted = [c.strip() for c in (columns or "*").split(",") if c.strip()]
        if not wanted or wanted == ["*"]:
            return [c.name for c in model.__table__.columns]
        return self._column_names(model, table, wanted)

    def _coerce(self, model, table: str, values: Mapping[str, Any]) -> dict:
        self._column_names(model, table, values.keys())
        cols = model.__table__.columns
        out = {}
        for key, value in values.items():
            ctype = cols[key].type
            try:
                if isinstance(value, str):
                    if isinstance(ctype, DateTime):
                        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
                    elif isinstance(ctype, Date):
                        value = date.fromisoformat(value[:10]) if value else None
                    elif isinstance(ctype, Float):
                        value = float(value)
                    elif isinstance(ctype, Boolean):
                        value = value.strip().lower() in {"true", "t", "1"}
            except ValueError:
                raise BackendError(
                    f'invalid input syntax for type {ctype.__class__.__name__.lower()}: "{value}"',
                    code="22P02",
                    status=400,
                )
            out[key] = value
        return out

    def _where(self, model, table: str, filters: Optional[Mapping[str, Any]]):
        stmt = select(model)
        if not filters:
            return stmt
        coerced = self._coerce(model, table, filters)
        for key, value in coerced.items():
            col = getattr(model, key)
            stmt = stmt.where(col.is_(None) if value is None else col == value)
        return stmt

    @staticmethod
    def _to_row(obj, names: Iterable[str]) -> Row:
        return {n: _serialize(getattr(obj, n)) for n in names}

    def _all_columns(self, model) -> list[str]:
        return [c.name for c in model.__table__.columns]

    @staticmethod
    def _db_error(db: Session, e: SQLAlchemyError) -> BackendError:
        db.rollback()
        orig = getattr(e, "orig", None)
        code = "23000" if isinstance(e, IntegrityError) else None
        return BackendError(str(orig or e), code=code, status=409 if code else 400)

    # ---------- tables ----------
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
        model = self._model(table)
        names = self._projection(model, table, columns)
        stmt = self._where(model, table, filters)
        if order:
            self._column_names(model, table, [order])
            col = getattr(model, order)
            stmt = stmt.order_by(col.desc() if desc else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._session_factory() as db:
            try:
                objs = db.scalars(stmt).all()
            except SQLAlchemyError as e:
                raise self._db_error(db, e)
            rows = [self._to_row(o, names) for o in objs]

        if single:
            if len(rows) != 1:
                raise BackendError(
                    "JSON object requested, multiple (or no) rows returned",
                    code=ROW_NOT_FOUND,
                    status=406,
                )
            return rows[0]
        return rows

    def insert(self, token: Optional[str], table: str, rows: list[Row]) -> list[Row]:
        model = self._model(table)
        names = self._all_columns(model)
        objs = [model(**self._coerce(model, table, r)) for r in rows]
        with self._session_factory() as db:
            db.add_all(objs)
            try:
                db.commit()
            except SQLAlchemyError as e:
                raise self._db_error(db, e)
            for o in objs:
                db.refresh(o)
            return [self._to_row(o, names) for o in objs]

    def update(self, token: Optional[str], table: str, values: Row, filters: Mapping[str, Any]) -> list[Row]:
        model = self._model(table)
        names = self._all_columns(model)
        patch = self._coerce(model, table, values)
        stmt = self._where(model, table, filters)
        with self._session_factory() as db:
            try:
                objs = db.scalars(stmt).all()
                for o in objs:
                    for k, v in patch.items():
                        setattr(o, k, v)
                db.commit()
            except SQLAlchemyError as e:
                raise self._db_error(db, e)
            for o in objs:
                db.refresh(o)
            return [self._to_row(o, names) for o in objs]

    def delete(self, token: Optional[str], table: str, filters: Mapping[str, Any]) -> list[Row]:
        model = self._model(table)
        names = self._all_columns(model)
        stmt = self._where(model, table, filters)
        with self._session_factory() as db:
            try:
                objs = db.scalars(stmt).all()
                out = [self._to_row(o, names) for o in objs]
                for o in objs:
                    db.delete(o)
                db.commit()
            except SQLAlchemyError as e:
                raise self._db_error(db, e)
            return out

    # ---------- auth ----------
    def _issue(self, db: Session, account: AuthAccount) -> AuthSession:
        expires_at = access_exp()
        token, jti = create_access_token(account.id, account.email, expires_at)
        db.add(AuthToken(jti=jti, user_id=account.id, expires_at=expires_at))
        account.last_sign_in_at = datetime.now(timezone.utc)
        db.commit()
        return AuthSession(
            access_token=token,
            user=AuthUser(id=account.id, email=account.email, user_metadata=dict(account.user_metadata or {})),
            expires_at=expires_at,
        )

    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> AuthSession:
        email = (email or "").strip().lower()
        if not email or not password:
            raise BackendError("Signup requires a valid password", code="validation_failed", status=400)
        with self._session_factory() as db:
            if db.scalar(select(AuthAccount).where(AuthAccount.email == email)):
                raise BackendError("User already registered", code="user_already_exists", status=422)
            account = AuthAccount(email=email, password_hash=hash_password(password), user_metadata=metadata or {})
            db.add(account)
            try:
                db.commit()
            except SQLAlchemyError as e:
                raise self._db_error(db, e)
            db.refresh(account)
            logger.info("auth_signed_up", user_id=account.id)
            return self._issue(db, account)

    def sign_in(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        with self._session_factory() as db:
            account = db.scalar(select(AuthAccount).where(AuthAccount.email == email))
            if not account or not verify_password(password, account.password_hash):
                raise BackendError("Invalid login credentials", code="invalid_credentials", status=400)
            return self._issue(db, account)

    def sign_out(self, access_token: str) -> None:
        payload = decode_access_token(access_token)
        if not payload:
            return
        with self._session_factory() as db:
            tok = db.get(AuthToken, payload.get("jti"))
            if tok and not tok.revoked:
                tok.revoked = True
                db.commit()

    def get_session(self, access_token: str) -> Optional[AuthSession]:
        payload = decode_access_token(access_token)
        if not payload:
            return None
        with self._session_factory() as db:
            tok = db.get(AuthToken, payload.get("jti"))
            if not tok or tok.revoked or _as_aware(tok.expires_at) <= datetime.now(timezone.utc):
                return None
            account = db.get(AuthAccount, payload.get("sub"))
            if not account:
                return None
            return AuthSession(
                access_token=access_token,
                user=AuthUser(id=account.id, email=account.email, user_metadata=dict(account.user_metadata or {})),
                expires_at=_as_aware(tok.expires_at),
            )

    def delete_user(self, user_id: str) -> None:
        with self._session_factory() as db:
            account = db.get(AuthAccount, user_id)
            if not account:
                return
            db.delete(account)
            try:
                db.commit()
            except SQLAlchemyError as e:
                raise self._db_error(db, e)

    # ---------- storage ----------
    def upload(self, token: Optional[str], bucket: str, path: str, data: bytes, content_type: str) -> str:
        return self.storage.upload(bucket, path, data)

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.storage.get_public_url(bucket, path)

    def remove(self, token: Optional[str], bucket: str, paths: Iterable[str]) -> None:
        self.storage.remove(bucket, paths)
