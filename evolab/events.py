"""Emergence events and the bounded queue the shell drains between steps."""

from collections import deque
from typing import Any, Deque, Dict, Iterator, List, Literal, Union

from pydantic import BaseModel, Field

THRESHOLD_CROSSED = "threshold_crossed"
AGENT_EMERGED = "agent_emerged"

EventType = Literal["threshold_crossed", "agent_emerged"]


class ThresholdPayload(BaseModel):
    """Data attached to a ``threshold_crossed`` event."""

    A: float
    EI: float


class ValidationMetrics(BaseModel):
    state_bounds_violation_rate: float = 0.0
    diversity_floor_violation_fraction: float = 0.0
    control_bounds_violation_rate: float = 0.0


class EmergedAgentPayload(BaseModel):
    """Library entry candidate for the agent-capture collaborator."""

    id: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    generation: int
    score: int
    lineage_id: str
    metrics: Dict[str, float]
    parameters: Dict[str, Any]
    environmental_control: Dict[str, float]
    history_snippet: List[Dict[str, Any]] = Field(default_factory=list)
    validation_metrics: ValidationMetrics = Field(default_factory=ValidationMetrics)
    run_context: Dict[str, float] = Field(default_factory=dict)


class ScenarioEvent(BaseModel):
    """A discrete event emitted by a scenario step."""

    type: EventType
    timestamp: int
    data: Union[ThresholdPayload, EmergedAgentPayload]
    message: str


class EventQueue:
    """Append-only event queue with drain semantics.

    Holds at most ``capacity`` events; the oldest are dropped first when the
    shell stops draining.
    """

    def __init__(self, capacity: int = 1000) -> None:
        self._capacity = max(1, int(capacity))
        self._events: Deque[ScenarioEvent] = deque(maxlen=self._capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dropped(self) -> int:
        return self._dropped

    def push(self, event: ScenarioEvent) -> None:
        if len(self._events) == self._capacity:
            self._dropped += 1
        self._events.append(event)

    def peek(self) -> List[ScenarioEvent]:
        """Copy of the queued events; the queue is left untouched."""
        return list(self._events)

    def drain(self) -> List[ScenarioEvent]:
        events = list(self._events)
        self._events.clear()
        return events

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[ScenarioEvent]:
        return iter(list(self._events))
