"""
SQLite key-value store for saved-job state.

Uses SQLAlchemy; each key maps to one row holding an opaque byte value.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, Column, String, DateTime, LargeBinary
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .errors import PersistenceError

Base = declarative_base()


class KVEntry(Base):
    """One stored value."""

    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def init_database(db_path: Path) -> Engine:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Engine bound to the database; the caller disposes of it
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError:
        engine.dispose()
        raise
    return engine


class SqliteKeyValueStore:
    """
    Byte store backed by the ``kv_entries`` table.

    The engine and session factory are created on first use and reused for
    every call; ``close`` releases the pooled connections.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._engine: Optional[Engine] = None
        self._Session = None

    def _session(self):
        if self._engine is None:
            self._engine = init_database(self.db_path)
            self._Session = sessionmaker(bind=self._engine)
        return self._Session()

    def close(self) -> None:
        """Dispose of the engine. The store reconnects on its next call."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._Session = None

    def get(self, key: str) -> Optional[bytes]:
        try:
            session = self._session()
            try:
                entry = session.get(KVEntry, key)
                return bytes(entry.value) if entry is not None else None
            finally:
                session.close()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Failed to read {key!r} from {self.db_path}: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        try:
            session = self._session()
            try:
                entry = session.get(KVEntry, key)
                if entry is None:
                    session.add(KVEntry(key=key, value=value))
                else:
                    entry.value = value
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
            finally:
                session.close()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Failed to write {key!r} to {self.db_path}: {e}") from e
