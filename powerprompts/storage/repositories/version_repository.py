"""Repository for prompt Version data access."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from powerprompts.storage.models import Version


class VersionRepository:
    """Data access layer for prompt versions."""

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    def save(self, version: Version) -> Version:
        """
        Save a prompt version.

        Args:
            version: Version instance to save

        Returns:
            Saved version instance
        """
        self.session.add(version)
        self.session.commit()
        return version

    def last_iteration(self, run_id: str) -> int:
        """
        Highest iteration number stored for a run.

        Args:
            run_id: Run ID

        Returns:
            Iteration number, 0 when the run has no versions
        """
        value = (
            self.session.query(func.max(Version.iteration_number))
            .filter(Version.run_id == run_id)
            .scalar()
        )
        return value or 0

    def get_by_run(self, run_id: str) -> list[Version]:
        """
        Get all versions of a run.

        Args:
            run_id: Run ID

        Returns:
            List of versions ordered by iteration
        """
        return (
            self.session.query(Version)
            .filter(Version.run_id == run_id)
            .order_by(Version.iteration_number)
            .all()
        )
