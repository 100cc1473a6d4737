"""Repository for Document data access."""

from sqlalchemy.orm import Session

from powerprompts.storage.models import Document


class DocumentRepository:
    """Data access layer for ingested documents."""

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    def save(self, document: Document) -> Document:
        """
        Save a document together with its chunks.

        Args:
            document: Document instance (chunks attached)

        Returns:
            Saved document instance
        """
        self.session.add(document)
        self.session.commit()
        return document

    def get_by_id(self, document_id: str) -> Document | None:
        """Get document by ID."""
        return self.session.query(Document).filter(Document.id == document_id).first()

    def get_by_collection(self, collection: str) -> list[Document]:
        """
        Get all documents of a collection.

        Args:
            collection: Collection name

        Returns:
            List of documents, oldest first
        """
        return (
            self.session.query(Document)
            .filter(Document.collection == collection)
            .order_by(Document.created_at)
            .all()
        )
