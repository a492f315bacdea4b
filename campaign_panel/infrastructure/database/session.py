# campaign_panel/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Any, Iterator

from psycogreen.eventlet import patch_psycopg
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from campaign_panel.config.settings import settings
from campaign_panel.infrastructure.database.base_model import BaseModel

_engine: Engine | None = None

_SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def configure_engine(url: str, **engine_kwargs: Any) -> Engine:
    global _engine

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(url, **engine_kwargs)
    _SessionLocal.configure(bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        configure_engine(settings.database_url, echo=settings.debug, pool_pre_ping=True)
    return _engine


def make_psycopg_green() -> None:
    """Let psycopg2 wait on the eventlet hub instead of blocking inside libpq."""
    patch_psycopg()


def create_all() -> None:
    import campaign_panel.infrastructure.database.models  # noqa: F401

    BaseModel.metadata.create_all(get_engine())


def drop_all() -> None:
    BaseModel.metadata.drop_all(get_engine())


@contextmanager
def db_session() -> Iterator[Session]:
    get_engine()
    session: Session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
