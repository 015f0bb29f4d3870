"""Scenario interface and registry.

The control loop and the agent-library collaborators only talk to this
interface, so they work unchanged with any registered scenario.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from evolab.events import ScenarioEvent


@dataclass(frozen=True)
class ScenarioMetadata:
    id: str
    name: str
    description: str
    version: str


@dataclass(frozen=True)
class ControlSignal:
    """Environment difficulty/novelty control in [0, 1]."""

    U: float = 0.2


DEFAULT_CONTROL = ControlSignal()


@runtime_checkable
class Scenario(Protocol):
    """Interface that every scenario implementation must satisfy."""

    metadata: ScenarioMetadata

    def initialize(self, seed: int, config: Optional[Mapping[str, Any]] = None) -> None:
        ...

    def update_config(self, partial: Mapping[str, Any]) -> None:
        ...

    def step(self, control: ControlSignal) -> None:
        ...

    def get_metrics(self) -> Dict[str, float]:
        ...

    def get_events(self) -> List[ScenarioEvent]:
        ...

    def clear_events(self) -> None:
        ...

    def serialize(self) -> str:
        ...

    def deserialize(self, text: str) -> None:
        ...


# ── Registry ──────────────────────────────────

_REGISTRY: Dict[str, Callable[[], Scenario]] = {}


def register_scenario(scenario_id: str, factory: Callable[[], Scenario]) -> None:
    _REGISTRY[scenario_id] = factory


def available_scenarios() -> List[str]:
    return sorted(_REGISTRY)


def create_scenario(scenario_id: str) -> Scenario:
    """Build a fresh scenario; raises KeyError for unknown ids."""
    try:
        factory = _REGISTRY[scenario_id]
    except KeyError:
        raise KeyError(f"Unknown scenario {scenario_id!r}; known: {available_scenarios()}") from None
    return factory()
