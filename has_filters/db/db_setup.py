from collections.abc import Generator
from contextlib import contextmanager

import sqlalchemy as sa
from sqlalchemy import orm
from sqlalchemy.pool import StaticPool


def sql_global_init(db_url: str) -> tuple[orm.sessionmaker, sa.Engine]:
    """
    Creates the engine and session factory for a database url.

    In-memory SQLite databases share a single connection, otherwise each new
    connection would see an empty database.
    """
    connect_args = {}
    engine_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            engine_args["poolclass"] = StaticPool

    engine = sa.create_engine(db_url, echo=False, connect_args=connect_args, pool_pre_ping=True, **engine_args)

    SessionLocal = orm.sessionmaker(autocommit=False, autoflush=False, bind=engine)

    return SessionLocal, engine


@contextmanager
def session_context(session_factory: orm.sessionmaker) -> Generator[orm.Session, None, None]:
    """
    session_context() provides a managed session from `session_factory` that is
    automatically closed when the context is exited.
    """
    sess = session_factory()
    try:
        yield sess
    finally:
        sess.close()
