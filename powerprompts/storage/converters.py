"""Convert between Pydantic models and SQLAlchemy models."""

import json

from powerprompts.storage.models import (
    Dataset as DbDataset,
    Example as DbExample,
    PromptRun,
    Version,
)
from powerprompts.types import (
    DIFFICULTIES,
    Criterion,
    Dataset as PydanticDataset,
    EvaluationExample,
    ExampleEvaluation,
    Metrics,
    PromptCase,
    PromptVersion,
)


class PromptRunConverter:
    """Convert a PromptCase into a SQLAlchemy PromptRun."""

    @staticmethod
    def to_db(case: PromptCase, run_id: str) -> PromptRun:
        """Convert PromptCase to a new running PromptRun."""
        return PromptRun(
            id=run_id,
            original_prompt=case.original_text,
            selected_framework=case.template,
            techniques_enabled=json.dumps(sorted(case.techniques)),
            parameters=case.parameters.model_dump_json(),
            status="running",
        )


class VersionConverter:
    """Convert between Pydantic PromptVersion and SQLAlchemy Version."""

    @staticmethod
    def to_db(version: PromptVersion, run_id: str) -> Version:
        """Convert Pydantic PromptVersion to SQLAlchemy Version."""
        return Version(
            run_id=run_id,
            iteration_number=version.iteration,
            prompt_text=version.prompt_text,
            metrics_json=version.metrics.model_dump_json(),
            evaluation_details=json.dumps(
                [detail.model_dump() for detail in version.evaluation_details]
            ),
            techniques_applied=json.dumps(version.techniques_applied),
            critique=version.critique,
            duration_seconds=version.duration_seconds,
            created_at=version.created_at,
        )

    @staticmethod
    def from_db(version: Version) -> PromptVersion:
        """Convert SQLAlchemy Version to Pydantic PromptVersion."""
        return PromptVersion(
            iteration=version.iteration_number,
            prompt_text=version.prompt_text,
            metrics=Metrics.model_validate_json(version.metrics_json),
            critique=version.critique,
            techniques_applied=json.loads(version.techniques_applied),
            evaluation_details=[
                ExampleEvaluation.model_validate(detail)
                for detail in json.loads(version.evaluation_details)
            ],
            duration_seconds=version.duration_seconds,
            created_at=version.created_at,
        )


class DatasetConverter:
    """Convert between Pydantic Dataset and SQLAlchemy Dataset/Example rows."""

    @staticmethod
    def to_db(dataset: PydanticDataset, dataset_id: str, run_id: str) -> DbDataset:
        """Convert Pydantic Dataset to SQLAlchemy Dataset (examples attached)."""
        db_dataset = DbDataset(
            id=dataset_id,
            run_id=run_id,
            domain=dataset.domain,
            example_count=len(dataset.examples),
            difficulty_levels=json.dumps(list(dataset.difficulty_levels)),
            criteria_json=json.dumps([c.model_dump() for c in dataset.criteria]),
        )
        db_dataset.examples = [
            ExampleConverter.to_db(example, dataset_id, position)
            for position, example in enumerate(dataset.examples)
        ]
        return db_dataset

    @staticmethod
    def from_db(dataset: DbDataset) -> PydanticDataset:
        """Convert SQLAlchemy Dataset to Pydantic Dataset."""
        return PydanticDataset(
            id=dataset.id,
            domain=dataset.domain,
            difficulty_levels=json.loads(dataset.difficulty_levels),
            examples=[ExampleConverter.from_db(example) for example in dataset.examples],
            criteria=[Criterion.model_validate(c) for c in json.loads(dataset.criteria_json)],
        )


class ExampleConverter:
    """Convert between Pydantic EvaluationExample and SQLAlchemy Example."""

    @staticmethod
    def to_db(example: EvaluationExample, dataset_id: str, position: int) -> DbExample:
        """Convert EvaluationExample to SQLAlchemy Example."""
        return DbExample(
            id=f"{dataset_id}-{position}",
            dataset_id=dataset_id,
            position=position,
            input_text=example.input or "No input provided",
            expected_output=example.expected_output or "No expected output provided",
            difficulty=example.difficulty if example.difficulty in DIFFICULTIES else "medium",
            tags=json.dumps(list(example.tags)),
        )

    @staticmethod
    def from_db(example: DbExample) -> EvaluationExample:
        """Convert SQLAlchemy Example to EvaluationExample."""
        return EvaluationExample(
            input=example.input_text,
            expected_output=example.expected_output,
            difficulty=example.difficulty,
            tags=tuple(json.loads(example.tags)),
        )
