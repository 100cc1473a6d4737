"""SQLAlchemy ORM models for powerprompts storage."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PromptRun(Base):
    """One optimization run and its original prompt."""

    __tablename__ = "prompt_runs"

    id: Mapped[str] = mapped_column(primary_key=True)
    original_prompt: Mapped[str] = mapped_column(Text)
    selected_framework: Mapped[str]
    techniques_enabled: Mapped[str] = mapped_column(Text)  # JSON array as string
    parameters: Mapped[str] = mapped_column(Text)  # JSON object as string
    status: Mapped[str] = mapped_column(default="running")  # running, completed, failed, cancelled
    best_iteration: Mapped[int | None] = mapped_column(default=None)
    error_message: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.now)
    completed_at: Mapped[datetime | None] = mapped_column(default=None)

    # Relationships
    versions: Mapped[list[Version]] = relationship(
        back_populates="run", order_by="Version.iteration_number"
    )
    datasets: Mapped[list[Dataset]] = relationship(back_populates="run")


class Version(Base):
    """The prompt text and metrics of one round."""

    __tablename__ = "prompt_versions"
    __table_args__ = (UniqueConstraint("run_id", "iteration_number"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(ForeignKey("prompt_runs.id"))
    iteration_number: Mapped[int]
    prompt_text: Mapped[str] = mapped_column(Text)
    metrics_json: Mapped[str] = mapped_column(Text)
    evaluation_details: Mapped[str] = mapped_column(Text)  # JSON array as string
    techniques_applied: Mapped[str] = mapped_column(Text)  # JSON array as string
    critique: Mapped[str | None] = mapped_column(Text, default=None)
    duration_seconds: Mapped[float | None] = mapped_column(default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.now)

    # Relationships
    run: Mapped[PromptRun] = relationship(back_populates="versions")


class Dataset(Base):
    """Synthetic dataset generated for a run."""

    __tablename__ = "datasets"

    id: Mapped[str] = mapped_column(primary_key=True)
    run_id: Mapped[str] = mapped_column(ForeignKey("prompt_runs.id"))
    domain: Mapped[str] = mapped_column(Text)
    example_count: Mapped[int]
    difficulty_levels: Mapped[str] = mapped_column(Text)  # JSON array as string
    criteria_json: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=datetime.now)

    # Relationships
    run: Mapped[PromptRun] = relationship(back_populates="datasets")
    examples: Mapped[list[Example]] = relationship(
        back_populates="dataset", order_by="Example.position"
    )


class Example(Base):
    """A test example of a dataset."""

    __tablename__ = "examples"

    id: Mapped[str] = mapped_column(primary_key=True)
    dataset_id: Mapped[str] = mapped_column(ForeignKey("datasets.id"))
    position: Mapped[int]
    input_text: Mapped[str] = mapped_column(Text)
    expected_output: Mapped[str] = mapped_column(Text)
    difficulty: Mapped[str]  # easy, medium, hard
    tags: Mapped[str] = mapped_column(Text)  # JSON array as string

    # Relationships
    dataset: Mapped[Dataset] = relationship(back_populates="examples")


class Document(Base):
    """A document ingested into a retrieval collection."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(primary_key=True)
    collection: Mapped[str]
    filename: Mapped[str]
    content: Mapped[str] = mapped_column(Text)
    chunk_count: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=datetime.now)

    # Relationships
    chunks: Mapped[list[DocumentChunk]] = relationship(
        back_populates="document", order_by="DocumentChunk.chunk_index"
    )


class DocumentChunk(Base):
    """A chunk of an ingested document."""

    __tablename__ = "document_chunks"

    id: Mapped[str] = mapped_column(primary_key=True)
    document_id: Mapped[str] = mapped_column(ForeignKey("documents.id"))
    chunk_index: Mapped[int]
    text: Mapped[str] = mapped_column(Text)

    # Relationships
    document: Mapped[Document] = relationship(back_populates="chunks")
