"""Configuration for powerprompts: per-role LLM settings, pipeline knobs, provider settings."""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from powerprompts.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class LLMConfig(BaseModel):
    """Configuration for a single model role."""

    model: str | None = Field(
        default=None, description="Model name (None uses the provider's default model)"
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int | None = Field(default=None, description="Maximum tokens to generate")


class TechniqueConfig(BaseModel):
    """Tunables for the technique engine."""

    # Majority sampling
    sampling_paths: int = Field(default=3, ge=1, le=10, description="Parallel sampled paths")
    sampling_base_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    sampling_temperature_step: float = Field(default=0.2, ge=0.0, le=1.0)
    similarity_threshold: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Minimum similarity to join a vote cluster"
    )

    # Branching search
    tree_depth: int = Field(default=2, ge=1, le=4, description="Depth of the thought tree")
    tree_branches: int = Field(default=3, ge=1, le=5, description="Children per expanded node")
    tree_threshold: float = Field(
        default=50.0, ge=0.0, le=100.0, description="Minimum score to expand a node"
    )
    tree_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    tree_use_judge: bool = Field(
        default=False, description="Score thoughts with the relevance judge instead of heuristically"
    )
    tree_seed: int | None = Field(default=None, description="Seed for heuristic thought scores")

    # Retrieval
    chunk_size: int = Field(default=500, ge=50, description="Characters per document chunk")
    chunk_overlap: int = Field(default=50, ge=0, description="Overlap between chunks")


class OptimizerConfig(BaseModel):
    """Configuration for the optimization pipeline."""

    sample_size: int = Field(default=5, ge=1, description="Examples sampled per round")
    max_technique_concurrency: int = Field(
        default=3, ge=1, description="Examples executed concurrently within a round"
    )
    parallel_execution: bool = Field(
        default=True,
        description="Execute a round's examples concurrently (True) or one by one (False)",
    )
    sample_seed: int | None = Field(default=None, description="Seed for example sampling")

    # LLM configuration per role
    dataset_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.8, max_tokens=32000),
        description="Example generation (higher temp for diversity)",
    )
    domain_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.3, max_tokens=4000),
        description="Domain identification",
    )
    criteria_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.5, max_tokens=16000),
        description="Criteria generation",
    )
    structuring_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.7, max_tokens=32000),
        description="Rewrites the raw prompt into a structuring template",
    )
    judge_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.1, max_tokens=16),
        description="Judge calls (low temp for stable scores)",
    )
    critique_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.5, max_tokens=16000),
        description="Critique step of recursive improvement",
    )
    improvement_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.7, max_tokens=48000),
        description="Rewrite step of recursive improvement",
    )
    chaining_llm: LLMConfig = Field(
        default=LLMConfig(temperature=0.7, max_tokens=32000),
        description="Sequential chaining steps",
    )

    techniques: TechniqueConfig = Field(default_factory=TechniqueConfig)

    # Progress reporting
    verbose: bool = Field(default=True, description="Print progress updates")


class Settings(BaseModel):
    """Provider, credentials and storage settings, validated before any run."""

    llm_provider: Literal["openai", "openrouter"] = "openai"
    openai_api_key: str | None = None
    openrouter_api_key: str | None = None
    openrouter_max_prompt_price: float | None = Field(default=None, ge=0.0)
    openrouter_max_completion_price: float | None = Field(default=None, ge=0.0)
    openrouter_app_url: str = "http://localhost:3000"
    openrouter_app_name: str = "PowerPrompts"
    default_model: str = "gpt-4o"
    embedding_model: str = "text-embedding-3-small"
    request_timeout: float = Field(default=120.0, gt=0.0)
    database_path: str = "data/powerprompts.db"
    chroma_path: str | None = "data/chroma"
    log_level: str = "INFO"
    optimizer: OptimizerConfig = Field(default_factory=OptimizerConfig)

    @property
    def api_key(self) -> str | None:
        """API key of the selected provider."""
        if self.llm_provider == "openrouter":
            return self.openrouter_api_key
        return self.openai_api_key

    @property
    def base_url(self) -> str | None:
        """Base URL of the selected provider (None for the OpenAI default)."""
        if self.llm_provider == "openrouter":
            return OPENROUTER_BASE_URL
        return None

    def validate_provider(self) -> None:
        """Raise ConfigurationError if the selected provider cannot be used."""
        if not self.api_key:
            env_name = f"{self.llm_provider.upper()}_API_KEY"
            raise ConfigurationError(
                f"LLM provider '{self.llm_provider}' selected but {env_name} is not set"
            )
        if logging.getLevelName(self.log_level.upper()) not in (
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")


# Environment variable -> settings field
ENV_OVERRIDES: dict[str, str] = {
    "LLM_PROVIDER": "llm_provider",
    "OPENAI_API_KEY": "openai_api_key",
    "OPENROUTER_API_KEY": "openrouter_api_key",
    "OPENROUTER_MAX_PROMPT_PRICE": "openrouter_max_prompt_price",
    "OPENROUTER_MAX_COMPLETION_PRICE": "openrouter_max_completion_price",
    "DEFAULT_MODEL": "default_model",
    "EMBEDDING_MODEL": "embedding_model",
    "DATABASE_PATH": "database_path",
    "CHROMA_PATH": "chroma_path",
    "LOG_LEVEL": "log_level",
}

OPTIMIZER_ENV_OVERRIDES: dict[str, str] = {
    "SAMPLE_SIZE": "sample_size",
    "MAX_TECHNIQUE_CONCURRENCY": "max_technique_concurrency",
}


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Load a YAML mapping from disk."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
    logger.info(f"Loaded configuration from {config_path}")
    return data


def load_settings(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Load settings from an optional YAML file plus environment overrides.

    Args:
        config_path: Path to a YAML file. Missing paths raise ConfigurationError;
            None skips the file entirely.
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is unreadable, a value is out of range,
            or the selected provider has no API key
    """
    environ = dict(os.environ) if environ is None else environ
    raw: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")
        try:
            raw = _read_yaml(path)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    for env_name, field_name in ENV_OVERRIDES.items():
        if environ.get(env_name):
            raw[field_name] = environ[env_name]

    optimizer_raw = dict(raw.get("optimizer") or {})
    for env_name, field_name in OPTIMIZER_ENV_OVERRIDES.items():
        if environ.get(env_name):
            optimizer_raw[field_name] = environ[env_name]
    if optimizer_raw:
        raw["optimizer"] = optimizer_raw

    try:
        settings = Settings(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    settings.validate_provider()
    return settings


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
