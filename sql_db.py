from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Base


def make_engine(db_url: str) -> Engine:
    """SQLite locally (in-memory for tests), Postgres in production."""
    if db_url.startswith("sqlite") and (":memory:" in db_url or db_url in ("sqlite://", "sqlite:///")):
        # one shared connection so every session sees the same in-memory DB
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(db_url, echo=False, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    # objects handed back by the store are read after their session closes
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
