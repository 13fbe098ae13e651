"""Database handle and unit of work.

Components never reach for a module-level engine: a ``Database`` is built
once by the container and passed into every constructor that needs storage.
"""

from contextlib import contextmanager
from pathlib import Path

import structlog
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from shared.exceptions import ConcurrencyConflict, PersistenceError

logger = structlog.get_logger(__name__)

Base = declarative_base()


def _ensure_sqlite_parent(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if url.startswith("sqlite:///") and ":memory:" not in url:
        db_path = url.split("sqlite:///")[-1]
        Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


class Database:
    """Owns the engine and session factory for one database URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory data
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            _ensure_sqlite_parent(url)
            self.engine = create_engine(url)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=True, expire_on_commit=False)

    def create_all(self) -> None:
        # Import models so they register on Base.metadata
        import notifications.notification.notification  # noqa: F401
        import ordering.order.order  # noqa: F401
        import settlements.audit.printer_action  # noqa: F401
        import settlements.settlement.settlement  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session(self):
        """Unit of work: commit on success, roll back on any error.

        SQLAlchemy failures surface as ``PersistenceError`` (or
        ``ConcurrencyConflict`` for a failed version check); domain errors
        raised inside the block propagate unchanged after the rollback.
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except StaleDataError as exc:
            session.rollback()
            logger.warning("Concurrent modification detected", error=str(exc))
            raise ConcurrencyConflict("The record was modified concurrently, retry the request") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Unit of work failed", error=str(exc))
            raise PersistenceError("Storage operation failed") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
