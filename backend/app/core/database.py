import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from .errors import ApiError, InternalError

logger = logging.getLogger(__name__)


class Database:
    """
    Store handle owning the SQLAlchemy engine.
    Built once at process start, initialised with init() and released with dispose().
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not initialised")
        return self._engine

    def init(self) -> "Database":
        if self._engine is not None:
            return self

        url = make_url(self.url)
        connect_args = {}
        if url.get_backend_name() == "sqlite":
            # check_same_thread=False is needed only for SQLite
            connect_args = {"check_same_thread": False, "timeout": 15}
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_engine(self.url, echo=self.echo, connect_args=connect_args)
        if url.get_backend_name() == "sqlite":
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)

        # Import models to register them with SQLModel
        from ..models.User import User  # noqa: F401
        from ..models.RefreshToken import RefreshToken  # noqa: F401
        from ..models.Audit import AuditLog  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialised (%s)", url.get_backend_name())
        return self

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection closed")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ON DELETE CASCADE on refresh_tokens.user_id is only honoured with this pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_session(request: Request):
    with request.app.state.database.session() as session:
        yield session


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Timestamps are always written as UTC, but SQLite returns them without
    tzinfo. Attach UTC to naive values read back from the store.
    """
    if not isinstance(value, datetime) or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@contextmanager
def unit_of_work(session: Session):
    """
    Commits once when the block succeeds, rolls back otherwise.
    Raw storage errors leave as InternalError; typed ApiErrors pass through unchanged.
    """
    try:
        yield session
        session.commit()
    except ApiError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Storage error, transaction rolled back")
        raise InternalError() from exc
