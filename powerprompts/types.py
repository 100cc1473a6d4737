"""Data types and models for prompt optimization."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Framework = Literal["RACE", "COSTAR", "APE", "CREATE"]
TechniqueId = Literal["cot", "self_consistency", "tot", "rsip", "rag", "prompt_chaining"]
Difficulty = Literal["easy", "medium", "hard"]

FRAMEWORKS: tuple[str, ...] = ("RACE", "COSTAR", "APE", "CREATE")
TECHNIQUES: tuple[str, ...] = ("cot", "self_consistency", "tot", "rsip", "rag", "prompt_chaining")
DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")

# Weights of the five sub-metrics in the aggregate score
METRIC_WEIGHTS: dict[str, float] = {
    "relevance": 1.2,
    "accuracy": 1.5,
    "consistency": 0.8,
    "efficiency": 0.7,
    "readability": 1.0,
}


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 100]."""
    return max(0.0, min(100.0, float(value)))


class SamplingParameters(BaseModel):
    """Sampling options for worker completions."""

    model: str | None = Field(default=None, description="Model id (None uses the default model)")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    top_p: float = Field(default=1.0, ge=0.0, le=1.0, description="Nucleus sampling mass")
    max_tokens: int = Field(default=16000, ge=1, le=128000, description="Completion token cap")
    stop: list[str] | None = Field(default=None, description="Optional stop sequences")

    def completion_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for CompletionClient.complete."""
        return {
            "model": self.model,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "stop": self.stop,
        }


class PromptCase(BaseModel):
    """The immutable description of one optimization run's input."""

    model_config = ConfigDict(frozen=True)

    original_text: str
    template: Framework
    techniques: frozenset[TechniqueId] = Field(default_factory=frozenset)
    parameters: SamplingParameters = Field(default_factory=SamplingParameters)

    def uses(self, technique: str) -> bool:
        """Check whether a technique is enabled for this case."""
        return technique in self.techniques


class EvaluationExample(BaseModel):
    """A synthetic test example."""

    model_config = ConfigDict(frozen=True)

    input: str
    expected_output: str
    difficulty: Difficulty = "medium"
    tags: tuple[str, ...] = ()


class Criterion(BaseModel):
    """A weighted evaluation criterion."""

    name: str
    description: str = ""
    weight: float = Field(default=1.0, ge=0.0)


class Dataset(BaseModel):
    """Synthetic evaluation dataset for a run."""

    id: str | None = None
    domain: str
    difficulty_levels: list[Difficulty]
    examples: list[EvaluationExample]
    criteria: list[Criterion]


class Metrics(BaseModel):
    """Five sub-metrics plus the weighted aggregate, all in [0, 100]."""

    model_config = ConfigDict(frozen=True)

    relevance: float
    accuracy: float
    consistency: float
    efficiency: float
    readability: float
    aggregate: float

    @field_validator("relevance", "accuracy", "consistency", "efficiency", "readability", "aggregate")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return clamp_score(value)

    @classmethod
    def calculate_aggregate(
        cls,
        relevance: float,
        accuracy: float,
        consistency: float,
        efficiency: float,
        readability: float,
        weights: dict[str, float] | None = None,
    ) -> "Metrics":
        """Build Metrics from clamped sub-scores with a weighted aggregate."""
        weights = weights or METRIC_WEIGHTS
        scores = {
            "relevance": clamp_score(relevance),
            "accuracy": clamp_score(accuracy),
            "consistency": clamp_score(consistency),
            "efficiency": clamp_score(efficiency),
            "readability": clamp_score(readability),
        }
        total_weight = sum(weights[name] for name in scores)
        weighted = sum(scores[name] * weights[name] for name in scores)
        return cls(**scores, aggregate=round(weighted / total_weight, 1))

    @classmethod
    def zero(cls) -> "Metrics":
        """All-zero metrics (used for empty batches)."""
        return cls(
            relevance=0.0,
            accuracy=0.0,
            consistency=0.0,
            efficiency=0.0,
            readability=0.0,
            aggregate=0.0,
        )


class ExampleEvaluation(BaseModel):
    """Per-example scoring detail."""

    input: str
    expected_output: str
    actual_output: str
    metrics: Metrics


class PromptVersion(BaseModel):
    """The prompt text and scores produced by one round."""

    iteration: int = Field(ge=1, description="1-based round index")
    prompt_text: str
    metrics: Metrics
    critique: str | None = Field(
        default=None, description="Critique that produced this version's prompt text"
    )
    techniques_applied: list[str] = Field(default_factory=list)
    evaluation_details: list[ExampleEvaluation] = Field(default_factory=list)
    duration_seconds: float | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    def summary(self) -> dict[str, Any]:
        """Compact representation used in progress events."""
        return {
            "iteration": self.iteration,
            "prompt": self.prompt_text,
            "metrics": self.metrics.model_dump(),
        }


class DatasetConfig(BaseModel):
    """Size and difficulty mix of the synthetic dataset."""

    example_count: int = Field(default=15, ge=5, le=50)
    difficulty_levels: list[Difficulty] = Field(
        default_factory=lambda: ["easy", "medium", "hard"], min_length=1
    )


class OptimizationRequest(BaseModel):
    """Everything the caller supplies to start a run."""

    prompt: str = Field(min_length=10, max_length=100000)
    selected_framework: Framework = "RACE"
    techniques_enabled: list[TechniqueId] = Field(default_factory=list)
    parameters: SamplingParameters = Field(default_factory=SamplingParameters)
    dataset_config: DatasetConfig = Field(default_factory=DatasetConfig)
    iteration_count: int = Field(default=1, ge=1, le=3)
    rag_collection: str = Field(default="knowledge_base", min_length=1)
    rag_top_k: int = Field(default=3, ge=1, le=20)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if len(value.strip()) < 10:
            raise ValueError("Prompt must be at least 10 characters long")
        return value

    @field_validator("techniques_enabled")
    @classmethod
    def _dedupe_techniques(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    def to_prompt_case(self) -> PromptCase:
        """Freeze the request into the run's PromptCase."""
        return PromptCase(
            original_text=self.prompt,
            template=self.selected_framework,
            techniques=frozenset(self.techniques_enabled),
            parameters=self.parameters,
        )


class TokenUsage(BaseModel):
    """Running token totals for a completion client."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    requests: int = 0

    @property
    def total_tokens(self) -> int:
        """Prompt plus completion tokens."""
        return self.prompt_tokens + self.completion_tokens


class DatasetSummary(BaseModel):
    """Dataset facts reported with a result."""

    id: str | None = None
    domain: str
    example_count: int
    criteria: list[Criterion]


class OptimizationResult(BaseModel):
    """Final results from an optimization run."""

    run_id: str = Field(description="Identifier for the storage run")
    best_version: PromptVersion = Field(description="Highest aggregate score, earliest on ties")
    all_versions: list[PromptVersion] = Field(description="One version per round, in order")
    dataset: DatasetSummary
    warnings: list[str] = Field(default_factory=list)
    total_time_seconds: float
    token_usage: TokenUsage = Field(default_factory=TokenUsage)


class Chunk(BaseModel):
    """A passage stored in the similarity store."""

    id: str
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScoredChunk(Chunk):
    """A passage returned from a similarity query."""

    distance: float = 0.0
