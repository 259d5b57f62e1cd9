"""Event model used for progress reporting.

A generation produces a short sequence of events, one per state transition. Callers pass an
``on_event`` callback to observe them (the CLI prints them as progress on stderr).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

from mdxai.logging import get_logger

logger = get_logger(__name__)


class GenerationStage(str, Enum):
    """State transitions of one generation request."""

    OUTLINE_REQUESTED = "outline_requested"
    OUTLINE_READY = "outline_ready"
    GENERATION_STARTED = "generation_started"
    GENERATION_DONE = "generation_done"
    SYNTHESIZED = "synthesized"
    FAILED = "failed"


class GenerationEvent(BaseModel):
    """A single event in a generation run."""

    request_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    stage: GenerationStage
    message: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


EventCallback = Callable[[GenerationEvent], None]


class EventEmitter:
    """Numbers events for one request and forwards them to a callback."""

    def __init__(self, request_id: str, callback: EventCallback | None = None) -> None:
        self.request_id = request_id
        self._callback = callback
        self._seq = 0
        self.events: list[GenerationEvent] = []

    def emit(self, stage: GenerationStage, message: str = "", **data: Any) -> GenerationEvent:
        self._seq += 1
        event = GenerationEvent(
            request_id=self.request_id,
            seq=self._seq,
            stage=stage,
            message=message,
            data=data,
        )
        self.events.append(event)
        logger.debug("Generation event", extra={"stage": stage.value, "seq": self._seq})
        if self._callback is not None:
            self._callback(event)
        return event
