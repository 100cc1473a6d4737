"""Repository for Dataset data access."""

from sqlalchemy.orm import Session, selectinload

from powerprompts.storage.models import Dataset


class DatasetRepository:
    """Data access layer for generated datasets."""

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    def save(self, dataset: Dataset) -> Dataset:
        """
        Save a dataset together with its examples.

        Args:
            dataset: Dataset instance (examples attached)

        Returns:
            Saved dataset instance
        """
        self.session.add(dataset)
        self.session.commit()
        return dataset

    def get_by_id(self, dataset_id: str) -> Dataset | None:
        """Get dataset by ID with examples eagerly loaded."""
        return (
            self.session.query(Dataset)
            .filter(Dataset.id == dataset_id)
            .options(selectinload(Dataset.examples))
            .first()
        )

    def get_by_run(self, run_id: str) -> list[Dataset]:
        """Get all datasets of a run with examples eagerly loaded."""
        return (
            self.session.query(Dataset)
            .filter(Dataset.run_id == run_id)
            .options(selectinload(Dataset.examples))
            .order_by(Dataset.created_at)
            .all()
        )
