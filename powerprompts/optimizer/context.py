"""Run context passed between optimization stages."""

from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from powerprompts.progress import EventType, ProgressChannel
from powerprompts.types import Dataset, OptimizationRequest, PromptCase, PromptVersion


class RunContext(BaseModel):
    """
    State of one optimization run, passed from stage to stage.

    Holds:
    - Identification (run_id)
    - The immutable input (case) and the request it came from
    - Pipeline state (dataset, current prompt text, versions so far)
    - The run's progress channel
    """

    # Run identification
    run_id: str = Field(description="Storage run ID")

    # Input
    case: PromptCase = Field(description="Immutable description of the run's input")
    request: OptimizationRequest

    # Execution metadata
    start_time: float = Field(description="When optimization started (unix timestamp)")
    warnings: list[str] = Field(default_factory=list, description="Technique compatibility warnings")

    # Pipeline state
    dataset: Dataset | None = None
    current_prompt: str = Field(default="", description="Prompt text for the next round")
    pending_critique: str | None = Field(
        default=None, description="Critique that produced current_prompt"
    )
    versions: list[PromptVersion] = Field(default_factory=list)
    best_version: PromptVersion | None = None

    _channel: Any = PrivateAttr(default=None)

    model_config = {"arbitrary_types_allowed": True}

    @property
    def channel(self) -> ProgressChannel:
        """Progress channel of this run."""
        if self._channel is None:
            raise RuntimeError("Progress channel not set on context")
        return self._channel

    def set_channel(self, channel: ProgressChannel) -> None:
        """
        Set the progress channel on this context.

        Args:
            channel: Channel receiving this run's events
        """
        self._channel = channel

    def publish(self, event_type: EventType, **data: Any) -> None:
        """Publish an event on the run's channel (no-op once closed)."""
        self.channel.emit(event_type, **data)
