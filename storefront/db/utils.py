from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session as DbSession

from .database import Database


@contextmanager
def get_db(database: Database) -> Generator[DbSession, None, None]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def transaction_scope(database: Database) -> Generator[DbSession, None, None]:
    session = database.session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["get_db", "transaction_scope"]
