from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from order_pricing.core.config import get_settings
from order_pricing.persistence.catalog import ReferenceCatalog
from order_pricing.persistence.models import Base


def create_engine_from_url(url: str, echo: bool = False):
    if url.startswith("sqlite"):
        # TestClient and uvicorn workers share the connection across threads
        return create_engine(url, future=True, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(url, future=True, echo=echo, pool_pre_ping=True)


settings = get_settings()
engine = create_engine_from_url(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def catalog_scope() -> Generator[ReferenceCatalog, None, None]:
    with session_scope() as session:
        yield ReferenceCatalog(session)


def get_catalog() -> Generator[ReferenceCatalog, None, None]:
    with catalog_scope() as catalog:
        yield catalog
