"""Repository for PromptRun data access."""

from datetime import datetime

from sqlalchemy.orm import Session

from powerprompts.storage.models import PromptRun


class RunRepository:
    """Data access layer for optimization runs."""

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    def save(self, run: PromptRun) -> PromptRun:
        """
        Save a new optimization run.

        Args:
            run: PromptRun instance to save

        Returns:
            Saved run instance
        """
        self.session.add(run)
        self.session.commit()
        return run

    def get_by_id(self, run_id: str) -> PromptRun | None:
        """
        Get run by ID.

        Args:
            run_id: Run ID

        Returns:
            PromptRun instance or None
        """
        return self.session.query(PromptRun).filter(PromptRun.id == run_id).first()

    def set_status(
        self,
        run_id: str,
        status: str,
        best_iteration: int | None = None,
        error_message: str | None = None,
    ) -> None:
        """
        Move a run to a final status.

        Args:
            run_id: Run ID
            status: One of completed, failed, cancelled
            best_iteration: Iteration of the winning version (completed runs)
            error_message: Failure description (failed runs)
        """
        run = self.get_by_id(run_id)
        if run:
            run.status = status
            run.best_iteration = best_iteration
            run.error_message = error_message
            run.completed_at = datetime.now()
            self.session.commit()

    def get_all(self, limit: int = 100) -> list[PromptRun]:
        """
        Get all runs ordered by most recent first.

        Args:
            limit: Maximum number of runs to return

        Returns:
            List of runs
        """
        return (
            self.session.query(PromptRun)
            .order_by(PromptRun.created_at.desc())
            .limit(limit)
            .all()
        )
