"""Helpers and Flask application integration."""

from typing import Generator, Optional
from datetime import datetime, timedelta
from contextlib import contextmanager
import logging

from pytz import UTC
from flask import Flask
from sqlalchemy.orm.session import Session

from .models import db

logger = logging.getLogger(__name__)

EPOCH = datetime.fromtimestamp(0, tz=UTC)
MICROSECOND = timedelta(microseconds=1)


def epoch(t: datetime) -> int:
    """Convert a :class:`.datetime` to UNIX time in microseconds."""
    return (t - EPOCH) // MICROSECOND


def from_epoch(t: Optional[int]) -> Optional[datetime]:
    """Get a :class:`datetime` from an UNIX timestamp in microseconds."""
    if t is None:
        return None
    return EPOCH + t * MICROSECOND


@contextmanager
def transaction() -> Generator:
    """Context manager for database transaction."""
    try:
        yield db.session
        # The caller may have explicitly committed already, in order to
        # implement exception handling logic. We only want to commit here if
        # there is anything remaining that is not flushed.
        if db.session.new or db.session.dirty or db.session.deleted:
            db.session.commit()
    except Exception as e:
        logger.warning('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def init_app(app: Flask) -> None:
    """Set configuration defaults and attach session to the application."""
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite://')
    app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
    db.init_app(app)


def current_session() -> Session:
    """Get/create database session for this context."""
    return db.session


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()
