"""Synchronous control loop around a scenario.

The runner owns the current control signal, advances the scenario one
generation at a time, publishes telemetry, and forwards drained events. An
optional advisor may propose a new control value between generations; it is
applied before the next step starts and never while one is running.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from evolab.events import ScenarioEvent
from evolab.scenario import DEFAULT_CONTROL, ControlSignal, Scenario

logger = logging.getLogger(__name__)

Advisor = Callable[[Dict[str, float]], Optional[float]]


def _noop(*_args) -> None:
    return None


@dataclass
class RunnerHooks:
    on_telemetry: Callable[[Dict[str, float]], None] = _noop
    on_event: Callable[[ScenarioEvent], None] = _noop
    on_control_change: Callable[[ControlSignal], None] = _noop


@dataclass
class RunSummary:
    steps: int = 0
    events: List[ScenarioEvent] = field(default_factory=list)
    final_metrics: Dict[str, float] = field(default_factory=dict)


class ScenarioRunner:
    def __init__(
        self,
        scenario: Scenario,
        hooks: Optional[RunnerHooks] = None,
        advisor: Optional[Advisor] = None,
        control: ControlSignal = DEFAULT_CONTROL,
    ) -> None:
        self._scenario = scenario
        self._hooks = hooks or RunnerHooks()
        self._advisor = advisor
        self._control = ControlSignal(U=self._clamp(control.U))

    @property
    def control(self) -> ControlSignal:
        return self._control

    @property
    def scenario(self) -> Scenario:
        return self._scenario

    @staticmethod
    def _clamp(value: float) -> float:
        return max(0.0, min(1.0, float(value)))

    def set_control(self, u: float) -> None:
        """Replace the control signal used from the next step on."""
        try:
            value = float(u)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric control value %r", u)
            return
        if not math.isfinite(value):
            logger.warning("Ignoring non-finite control value %r", u)
            return
        new_control = ControlSignal(U=self._clamp(value))
        if new_control != self._control:
            self._control = new_control
            self._hooks.on_control_change(new_control)

    def tick(self) -> List[ScenarioEvent]:
        """Run one generation and return the events it produced."""
        self._scenario.step(self._control)
        metrics = self._scenario.get_metrics()

        events = self._scenario.get_events()
        if events:
            self._scenario.clear_events()
            for event in events:
                self._hooks.on_event(event)

        self._hooks.on_telemetry(metrics)

        if self._advisor is not None:
            proposal = self._advisor(dict(metrics))
            if proposal is not None:
                logger.info(
                    "Advisor proposed U=%r at generation %s",
                    proposal, metrics.get("generation"),
                )
                self.set_control(proposal)
        return events

    def run(self, steps: int) -> RunSummary:
        summary = RunSummary()
        for _ in range(max(0, int(steps))):
            summary.events.extend(self.tick())
            summary.steps += 1
        summary.final_metrics = self._scenario.get_metrics()
        return summary
