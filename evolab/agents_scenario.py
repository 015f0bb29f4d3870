"""Emergent Task Decomposition scenario: the generation stepping engine.

One ``step`` call advances exactly one generation:

1. repopulate an empty population
2. drift one task-requirement baseline
3. sample this generation's tasks
4. evaluate every agent on every task and push trace records
5. keep the top 40% by score
6. refill the population with mutated children of survivors
7. aggregate metrics
8. emit emergence events when EI crosses its threshold

All randomness comes from the engine's own ``PRNG``; given the same seed,
config and control sequence, two engines end in identical states.
"""

import copy
import json
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Union

from evolab import agency_metrics
from evolab.agent_logic import AgentLogic
from evolab.config import sanitize_config
from evolab.digest import canonical_json, compute_state_hash
from evolab.events import (
    AGENT_EMERGED,
    THRESHOLD_CROSSED,
    EmergedAgentPayload,
    EventQueue,
    ScenarioEvent,
    ThresholdPayload,
)
from evolab.prng import PRNG
from evolab.run_context import RunContext
from evolab.scenario import DEFAULT_CONTROL, ControlSignal, ScenarioMetadata, register_scenario
from evolab.schemas import (
    ACTION_TYPES,
    ActionType,
    Agent,
    MetricsBundle,
    ScenarioConfig,
    ScenarioState,
    Task,
)
from evolab.trace import TraceBuffer, TraceRecord, TraceSink

logger = logging.getLogger(__name__)

SERIALIZATION_VERSION = 1

# Baseline requirements at the default difficulty; scaled by difficulty / 20.
_BASE_REQUIREMENTS = {
    ActionType.NAVIGATE: 30.0,
    ActionType.COMPUTE: 10.0,
    ActionType.MANIPULATE: 20.0,
    ActionType.COMMUNICATE: 5.0,
}
_REFERENCE_DIFFICULTY = 20.0

_DRIFT_CHANCE = 0.2
_DRIFT_SCALE = 20.0
_TASK_JITTER = 10.0                 # full width of the uniform jitter
_TASK_DEADLINE = 100
_SURVIVOR_FRACTION = 0.4
_AGENCY_SMOOTHING = 0.1
_FALLBACK_SUCCESS_RATE = 0.01
_EMERGENCE_THRESHOLD = 0.8


class StateDecodeError(ValueError):
    """Serialized scenario text parsed as JSON but is not a valid state."""


ControlInput = Union[ControlSignal, Mapping[str, Any], float]


def _control_value(control: ControlInput) -> float:
    if isinstance(control, ControlSignal):
        raw = control.U
    elif isinstance(control, Mapping):
        raw = control.get("U", DEFAULT_CONTROL.U)
    else:
        raw = control
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_CONTROL.U
    if not math.isfinite(value):
        return DEFAULT_CONTROL.U
    return max(0.0, min(1.0, value))


class AgentsScenario:
    """Population of skill-learning agents facing drifting tasks."""

    metadata = ScenarioMetadata(
        id="agents",
        name="Emergent Task Decomposition",
        description="Agents evolve hierarchical plans and reusable skills to solve shifting tasks.",
        version="0.1.0",
    )

    def __init__(
        self,
        seed: int = 0,
        trace_sink: Optional[TraceSink] = None,
        event_capacity: int = 1000,
    ) -> None:
        self._prng = PRNG(seed)
        self._ids = RunContext(seed)
        self._config = ScenarioConfig()
        self._state = self._empty_state()
        self._events = EventQueue(event_capacity)
        self._trace = trace_sink if trace_sink is not None else TraceBuffer()
        self._best_agency = 0.0

    # ── Properties ────────────────────────────────

    @property
    def config(self) -> ScenarioConfig:
        return copy.copy(self._config)

    @property
    def trace_sink(self) -> TraceSink:
        return self._trace

    @property
    def generation(self) -> int:
        return self._state.generation

    # ── Lifecycle ─────────────────────────────────

    def initialize(self, seed: int, config: Optional[Mapping[str, Any]] = None) -> None:
        """Reseed, reset all state and spawn the founding population.

        A ``config`` is merged over the defaults, not over the current config.
        """
        self._prng.set_seed(seed)
        self._ids = RunContext(seed)
        if config is not None:
            self._config = sanitize_config(ScenarioConfig(), config)
        self._state = self._empty_state()
        self._events.clear()
        self._best_agency = 0.0

        for _ in range(self._config.population_size):
            self._state.agents.append(AgentLogic.random(self._prng, self._ids, 0))

        logger.info(
            "Initialized agents scenario seed=%d population=%d tasks_per_gen=%d",
            seed, self._config.population_size, self._config.tasks_per_gen,
        )

    def update_config(self, partial: Mapping[str, Any]) -> None:
        """Sanitize and merge ``partial`` into the current config.

        Population and task counts apply from the next step. The difficulty
        only rescales baselines on the next ``initialize``.
        """
        self._config = sanitize_config(self._config, partial)

    def _empty_state(self) -> ScenarioState:
        return ScenarioState(
            generation=0,
            agents=[],
            current_tasks=[],
            metrics=MetricsBundle(),
            current_requirements=self._default_requirements(),
        )

    def _default_requirements(self) -> Dict[ActionType, float]:
        scale = self._config.base_task_difficulty / _REFERENCE_DIFFICULTY
        return {t: _BASE_REQUIREMENTS[t] * scale for t in ACTION_TYPES}

    # ── Step ──────────────────────────────────────

    def step(self, control: ControlInput = DEFAULT_CONTROL) -> None:
        """Advance exactly one generation under difficulty control ``U``."""
        u = _control_value(control)
        state = self._state
        state.generation += 1
        generation = state.generation
        population_size = self._config.population_size

        if not state.agents:
            logger.warning("Population empty at generation %d; repopulating", generation)
            for _ in range(population_size):
                state.agents.append(AgentLogic.random(self._prng, self._ids, generation))

        drift = u * self._config.drift_rate
        self._drift_requirements(drift)
        state.current_tasks = self._generate_tasks(generation, drift)

        # Evaluation
        total_success = 0
        total_skill_usage = 0
        total_actions = 0
        evaluated: List[AgentLogic] = []
        for entity in state.agents:
            logic = AgentLogic(entity)
            score = 0
            agent_cost = 0.0
            for task in state.current_tasks:
                result = logic.solve(task, self._prng, self._ids)
                if result.success:
                    score += 1
                agent_cost += result.cost
                total_actions += 1
                total_skill_usage += result.used_skill_count
            entity.score = score
            total_success += score

            novelty = agency_metrics.compute_behavioral_variance(
                entity.previous_policy_state, logic.get_policy_state()
            )
            self._trace.log_agent(TraceRecord(
                generation=generation,
                agent_id=entity.id,
                lineage_id=entity.lineage_id,
                energy=agent_cost,
                novelty=novelty,
                fitness=float(score),
            ))
            evaluated.append(logic)

        # Selection: stable sort keeps original order among equal scores.
        ranked = sorted(evaluated, key=lambda logic: logic.entity.score, reverse=True)
        survivor_count = max(1, math.floor(population_size * _SURVIVOR_FRACTION))
        survivors = ranked[:min(survivor_count, len(ranked))]
        champion = ranked[0].entity
        champion_score = champion.score

        next_gen: List[Agent] = [logic.entity for logic in survivors]
        for entity in next_gen:
            entity.score = 0

        # Reproduction
        while len(next_gen) < population_size:
            parent = survivors[self._prng.next_int(0, len(survivors))]
            next_gen.append(parent.mutate(self._prng, self._ids, generation))
        state.agents = next_gen

        self._update_metrics(u, total_success, total_skill_usage, total_actions)
        self._check_emergence(u, champion, champion_score)

        logger.debug(
            "Generation %d: success=%.3f reuse=%.3f A=%.4f EI=%.4f",
            generation,
            state.metrics.task_success_rate,
            state.metrics.skill_reuse_rate,
            state.metrics.A,
            state.metrics.EI,
        )

    def _drift_requirements(self, drift: float) -> None:
        if self._prng.next() < _DRIFT_CHANCE:
            requirements = self._state.current_requirements
            target = ACTION_TYPES[self._prng.next_int(0, len(ACTION_TYPES))]
            change = (self._prng.next() - 0.5) * _DRIFT_SCALE * drift
            requirements[target] = max(0.0, requirements[target] + change)

    def _generate_tasks(self, generation: int, drift: float) -> List[Task]:
        baseline = self._state.current_requirements
        tasks = []
        for i in range(self._config.tasks_per_gen):
            requirements = {}
            for action_type in ACTION_TYPES:
                jitter = (self._prng.next() - 0.5) * _TASK_JITTER
                requirements[action_type] = max(0.0, baseline[action_type] + jitter)
            tasks.append(Task(
                id=f"task-{generation}-{i}",
                requirements=requirements,
                deadline=_TASK_DEADLINE,
                drift_factor=drift,
            ))
        return tasks

    def _update_metrics(self, u: float, total_success: int, total_skill_usage: int, total_actions: int) -> None:
        state = self._state
        metrics = state.metrics
        agents = state.agents

        success_rate = total_success / max(1, total_actions)
        # Skills used per solve attempt, not per requirement.
        reuse = total_skill_usage / total_actions if total_actions > 0 else 0.0
        avg_toolbox = sum(len(a.skills) for a in agents) / len(agents) if agents else 0.0
        new_a = max(0.0, min(1.0, success_rate * (0.5 + 1.5 * reuse)))

        entropy = agency_metrics.compute_entropy(state.current_tasks)
        energy = float(total_actions)

        total_bv = 0.0
        for agent in agents:
            total_bv += agency_metrics.compute_behavioral_variance(
                agent.previous_policy_state, AgentLogic(agent).get_policy_state()
            )
        avg_bv = total_bv / len(agents) if agents else 0.0

        prev_success_rate = metrics.task_success_rate or _FALLBACK_SUCCESS_RATE
        feedback_gain = agency_metrics.compute_feedback_gain(avg_bv, success_rate - prev_success_rate)
        prev_entropy = metrics.H or entropy
        efficiency = agency_metrics.compute_energy_efficiency(prev_entropy, entropy, energy)
        intention = agency_metrics.compute_emergent_intention(efficiency, feedback_gain, avg_bv, success_rate)

        metrics.A = metrics.A * (1 - _AGENCY_SMOOTHING) + new_a * _AGENCY_SMOOTHING
        metrics.U = u
        metrics.skill_reuse_rate = reuse
        metrics.average_toolbox_size = avg_toolbox
        metrics.task_success_rate = success_rate
        metrics.H = entropy
        metrics.E = energy
        metrics.BV = avg_bv
        metrics.AFG = feedback_gain
        metrics.EI = intention
        self._best_agency = max(self._best_agency, metrics.A)

    def _check_emergence(self, u: float, champion: Agent, champion_score: int) -> None:
        metrics = self._state.metrics
        if metrics.EI <= _EMERGENCE_THRESHOLD:
            return
        generation = self._state.generation

        self._events.push(ScenarioEvent(
            type=THRESHOLD_CROSSED,
            timestamp=generation,
            data=ThresholdPayload(A=metrics.A, EI=metrics.EI),
            message="High Agency: Efficient Skill Reuse Detected",
        ))

        payload = EmergedAgentPayload(
            id=champion.id,
            name=f"Agent-{champion.id.split('-', 1)[-1]}",
            description=(
                f"High Agency Agent (A={metrics.A:.2f}) from Emergent Task "
                f"Decomposition Scenario."
            ),
            tags=["High-Agency", "Agents-Scenario"],
            generation=generation,
            score=champion_score,
            lineage_id=champion.lineage_id,
            metrics={
                "A": metrics.A,
                "C": metrics.C,
                "D": metrics.D,
                "alert_rate": metrics.alert_rate,
                "EI": metrics.EI,
                "task_success_rate": metrics.task_success_rate,
                "skill_reuse_rate": metrics.skill_reuse_rate,
            },
            parameters=self._config.to_dict(),
            environmental_control={"U": u},
            run_context={"best_agency_so_far": self._best_agency},
        )
        self._events.push(ScenarioEvent(
            type=AGENT_EMERGED,
            timestamp=generation,
            data=payload,
            message="New Agent Added to Library",
        ))
        logger.info(
            "Emergence at generation %d: EI=%.4f champion=%s score=%d",
            generation, metrics.EI, champion.id, champion_score,
        )

    # ── Read API ──────────────────────────────────

    def get_metrics(self) -> Dict[str, float]:
        metrics = self._state.metrics
        return {
            "generation": self._state.generation,
            "C": metrics.C,
            "D": metrics.D,
            "A": metrics.A,
            "U": metrics.U,
            "alert_rate": metrics.alert_rate,
        }

    def get_state(self) -> ScenarioState:
        """Deep copy of the current state; edits do not reach the engine."""
        return copy.deepcopy(self._state)

    def get_events(self) -> List[ScenarioEvent]:
        return self._events.peek()

    def clear_events(self) -> None:
        self._events.clear()

    def drain_events(self) -> List[ScenarioEvent]:
        return self._events.drain()

    @property
    def dropped_events(self) -> int:
        """Events pushed out of the full queue before anyone read them."""
        return self._events.dropped

    # ── Serialization ─────────────────────────────

    def _document(self) -> Dict[str, Any]:
        return {
            "version": SERIALIZATION_VERSION,
            "scenario": self.metadata.id,
            "config": self._config.to_dict(),
            "prng_state": self._prng.get_state(),
            "run_context": self._ids.to_dict(),
            "best_agency": self._best_agency,
            "state": self._state.to_dict(),
        }

    def serialize(self) -> str:
        return canonical_json(self._document())

    def state_hash(self) -> str:
        return compute_state_hash(self._document())

    def deserialize(self, text: str) -> None:
        """Replace the engine state with a serialized one.

        Raises ``json.JSONDecodeError`` for malformed JSON and
        ``StateDecodeError`` for a well-formed document that is not a state.
        The engine is left untouched when either is raised.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise StateDecodeError("Serialized scenario must be a JSON object")
        if data.get("version") != SERIALIZATION_VERSION:
            raise StateDecodeError(f"Unsupported serialization version {data.get('version')!r}")
        if data.get("scenario") != self.metadata.id:
            raise StateDecodeError(f"Serialized scenario {data.get('scenario')!r} is not {self.metadata.id!r}")
        try:
            config = ScenarioConfig.from_dict(data["config"])
            prng_state = int(data["prng_state"])
            ids = RunContext.from_dict(data["run_context"])
            best_agency = float(data["best_agency"])
            state = ScenarioState.from_dict(data["state"])
        except (KeyError, TypeError, ValueError) as exc:
            raise StateDecodeError(f"Invalid scenario state: {exc}") from exc
        if sanitize_config(ScenarioConfig(), config.to_dict()) != config:
            raise StateDecodeError(f"Out-of-range scenario config: {config.to_dict()!r}")

        self._config = config
        self._prng.set_seed(prng_state)
        self._ids = ids
        self._best_agency = best_agency
        self._state = state


register_scenario(AgentsScenario.metadata.id, AgentsScenario)
