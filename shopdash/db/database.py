from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from shopdash.core.config import settings


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str, echo: bool = False, sslmode: str | None = None) -> Engine:
    """Builds the engine for ``url``.

    SQLite connections are shared across request threads, and an in-memory
    database is pinned to a single connection so every session sees the same
    tables. Server databases are pinged before use and connect with ``sslmode``.
    """
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **options)

    connect_args = {"sslmode": sslmode} if sslmode else {}
    return create_engine(
        url,
        connect_args=connect_args,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


engine = create_db_engine(settings.database_url, echo=settings.database_echo, sslmode=settings.database_sslmode)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
