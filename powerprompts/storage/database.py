"""Database session management and initialization."""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from powerprompts.storage.models import Base

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign keys for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database connection and session management."""

    def __init__(self, db_path: str | Path = "data/powerprompts.db"):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,  # Set to True for SQL query logging
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

        Base.metadata.create_all(bind=self.engine)
        self._create_indexes()

        logger.info(f"Database initialized at {self.db_path}")

    def _create_indexes(self) -> None:
        """Create additional indexes for common lookups."""
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE INDEX IF NOT EXISTS idx_versions_run "
                    "ON prompt_versions(run_id, iteration_number)"
                )
            )
            conn.execute(text("CREATE INDEX IF NOT EXISTS idx_datasets_run ON datasets(run_id)"))
            conn.execute(
                text("CREATE INDEX IF NOT EXISTS idx_examples_dataset ON examples(dataset_id)")
            )
            conn.execute(
                text("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)")
            )

    def get_session(self) -> Session:
        """
        Get a new database session.

        Returns:
            SQLAlchemy session instance
        """
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Generator[Session]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with db.session_scope() as session:
                session.add(obj)
                # commit happens automatically
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connection."""
        self.engine.dispose()
