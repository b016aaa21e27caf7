# db.py
from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import settings


def make_engine(url: str, **kwargs) -> Engine:
    """
    Engine for the self-hosted provider. SQLite gets foreign keys switched on
    so ON DELETE CASCADE behaves like the hosted Postgres schema.
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_recycle", 1800)

    eng = create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.DB_ENABLE_LOG,
        future=True,
        **kwargs,
    )

    if is_sqlite:
        @event.listens_for(eng, "connect")
        def _sqlite_fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return eng


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()
