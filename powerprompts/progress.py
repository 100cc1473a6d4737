"""
Progress channel: broadcasts pipeline events to any number of subscribers.

One run publishes into one channel. Subscribers receive every event published
after they subscribed; nothing is replayed. Once closed, publishing is a no-op.
"""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Progress event types."""

    OPTIMIZATION_START = "optimization_start"
    DATASET_GENERATED = "dataset_generated"
    ITERATION_START = "iteration_start"
    EXECUTING_TESTS = "executing_tests"
    TEST_PROGRESS = "test_progress"
    APPLYING_TECHNIQUE = "applying_technique"
    EVALUATING_METRICS = "evaluating_metrics"
    METRICS_CALCULATED = "metrics_calculated"
    APPLYING_RSIP = "applying_rsip"
    PROMPT_IMPROVED = "prompt_improved"
    ITERATION_COMPLETE = "iteration_complete"
    OPTIMIZATION_COMPLETE = "optimization_complete"
    ERROR = "error"


TERMINAL_EVENTS = frozenset({EventType.OPTIMIZATION_COMPLETE, EventType.ERROR})


class ProgressEvent(BaseModel):
    """One event of a run."""

    type: EventType
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)

    @property
    def is_terminal(self) -> bool:
        """True for run-complete and error events."""
        return self.type in TERMINAL_EVENTS


Listener = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Single-producer, multi-consumer event broadcaster with a closed state.

    Listeners are called synchronously from ``publish`` on the event loop
    thread, so no locking is needed by callers.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._close_hooks: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: ProgressEvent) -> None:
        """Deliver an event to every current listener (no-op once closed)."""
        if self._closed:
            return
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Progress listener failed on {event.type.value}: {e}")

    def emit(self, event_type: EventType, **data: Any) -> None:
        """Build and publish an event."""
        self.publish(ProgressEvent(type=event_type, data=data))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Called with each event published from now on

        Returns:
            Function that removes the listener (safe to call twice)
        """
        if self._closed:
            return lambda: None
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_close(self, hook: Callable[[], None]) -> Callable[[], None]:
        """
        Run ``hook`` when the channel closes (immediately if already closed).

        Returns:
            A function that removes the hook; calling it twice is harmless
        """
        if self._closed:
            hook()
        else:
            self._close_hooks.append(hook)

        def remove() -> None:
            if hook in self._close_hooks:
                self._close_hooks.remove(hook)

        return remove

    def close(self) -> None:
        """Close the channel and drop all listeners."""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        hooks, self._close_hooks = self._close_hooks, []
        for hook in hooks:
            hook()

    async def stream(self) -> AsyncIterator[ProgressEvent]:
        """
        Iterate over events as they arrive.

        The subscription starts when iteration starts. Iteration ends after a
        terminal event or when the channel closes.
        """
        queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        remove_hook = self.on_close(lambda: queue.put_nowait(None))
        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
                if event.is_terminal:
                    return
        finally:
            unsubscribe()
            remove_hook()


def format_sse_event(event: ProgressEvent) -> str:
    """Render an event as one server-sent-events record."""
    return f"event: {event.type.value}\ndata: {json.dumps(event.data, default=str)}\n\n"


async def sse_stream(channel: ProgressChannel) -> AsyncIterator[str]:
    """Server-sent-events records for every event of a channel, in arrival order."""
    async for event in channel.stream():
        yield format_sse_event(event)
