"""Canonical data objects for the agents scenario.

Plain value structures with no behavior beyond conversion to and from
JSON-compatible dicts. Behavior lives in ``evolab.agent_logic`` and the
stepping engine in ``evolab.agents_scenario``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ActionType(str, Enum):
    """Primitive action or sub-problem type a task can require."""

    NAVIGATE = "NAVIGATE"
    COMPUTE = "COMPUTE"
    MANIPULATE = "MANIPULATE"
    COMMUNICATE = "COMMUNICATE"


# Fixed order used for policy vectors and requirement iteration.
ACTION_TYPES: List[ActionType] = [
    ActionType.NAVIGATE,
    ActionType.COMPUTE,
    ActionType.MANIPULATE,
    ActionType.COMMUNICATE,
]


def _requirements_to_dict(requirements: Dict[ActionType, float]) -> Dict[str, float]:
    return {t.value: float(v) for t, v in requirements.items()}


def _requirements_from_dict(data: Dict[str, Any]) -> Dict[ActionType, float]:
    # Rebuild in ACTION_TYPES order; canonical JSON sorts keys alphabetically.
    parsed = {ActionType(k): float(v) for k, v in data.items()}
    return {t: parsed[t] for t in ACTION_TYPES if t in parsed}


# ── Agents ─────────────────────────────────────


@dataclass(frozen=True)
class Genome:
    """Strategy parameters; replaced, never edited, on mutation."""

    id: str
    plan_depth: int
    skill_creation_threshold: float
    toolbox_size_limit: int
    learning_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "plan_depth": self.plan_depth,
            "skill_creation_threshold": self.skill_creation_threshold,
            "toolbox_size_limit": self.toolbox_size_limit,
            "learning_rate": self.learning_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Genome":
        return cls(
            id=str(data["id"]),
            plan_depth=int(data["plan_depth"]),
            skill_creation_threshold=float(data["skill_creation_threshold"]),
            toolbox_size_limit=int(data["toolbox_size_limit"]),
            learning_rate=float(data["learning_rate"]),
        )


@dataclass
class Skill:
    """A stored procedure that discounts the cost of its target types.

    ``efficiency`` is a cost multiplier: 0.5 halves the raw cost, 1.0 is the
    same as having no skill.
    """

    id: str
    name: str
    target_types: List[ActionType]
    efficiency: float
    complexity: float
    usage_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target_types": [t.value for t in self.target_types],
            "efficiency": self.efficiency,
            "complexity": self.complexity,
            "usage_count": self.usage_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Skill":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            target_types=[ActionType(t) for t in data["target_types"]],
            efficiency=float(data["efficiency"]),
            complexity=float(data["complexity"]),
            usage_count=int(data["usage_count"]),
        )


@dataclass
class Agent:
    """One member of the population.

    ``skills`` keeps insertion order. ``previous_policy_state`` holds one
    efficiency per ``ACTION_TYPES`` entry, or is empty for founders.
    """

    id: str
    lineage_id: str
    birth_generation: int
    genome: Genome
    skills: List[Skill] = field(default_factory=list)
    energy: float = 100.0
    score: int = 0
    previous_policy_state: List[float] = field(default_factory=list)
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lineage_id": self.lineage_id,
            "parent_id": self.parent_id,
            "birth_generation": self.birth_generation,
            "genome": self.genome.to_dict(),
            "skills": [s.to_dict() for s in self.skills],
            "energy": self.energy,
            "score": self.score,
            "previous_policy_state": list(self.previous_policy_state),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Agent":
        parent_id = data.get("parent_id")
        return cls(
            id=str(data["id"]),
            lineage_id=str(data["lineage_id"]),
            parent_id=str(parent_id) if parent_id is not None else None,
            birth_generation=int(data["birth_generation"]),
            genome=Genome.from_dict(data["genome"]),
            skills=[Skill.from_dict(s) for s in data["skills"]],
            energy=float(data["energy"]),
            score=int(data["score"]),
            previous_policy_state=[float(v) for v in data["previous_policy_state"]],
        )


# ── Tasks ──────────────────────────────────────


@dataclass
class Task:
    """A bundle of requirements, regenerated every generation."""

    id: str
    requirements: Dict[ActionType, float]
    deadline: int
    drift_factor: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "requirements": _requirements_to_dict(self.requirements),
            "deadline": self.deadline,
            "drift_factor": self.drift_factor,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            requirements=_requirements_from_dict(data["requirements"]),
            deadline=int(data["deadline"]),
            drift_factor=float(data["drift_factor"]),
        )


# ── Scenario ───────────────────────────────────


@dataclass
class MetricsBundle:
    """Macro and agency metrics for the latest generation.

    ``C``, ``D`` and ``alert_rate`` are populated by the SDE scenario and stay
    at zero here. ``A`` is an exponentially smoothed legacy agency signal.
    """

    C: float = 0.0
    D: float = 0.0
    A: float = 0.0
    U: float = 0.0
    alert_rate: float = 0.0
    skill_reuse_rate: float = 0.0
    average_toolbox_size: float = 0.0
    task_success_rate: float = 0.0
    H: float = 0.0
    E: float = 0.0
    BV: float = 0.0
    AFG: float = 0.0
    EI: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "C": self.C,
            "D": self.D,
            "A": self.A,
            "U": self.U,
            "alert_rate": self.alert_rate,
            "skill_reuse_rate": self.skill_reuse_rate,
            "average_toolbox_size": self.average_toolbox_size,
            "task_success_rate": self.task_success_rate,
            "H": self.H,
            "E": self.E,
            "BV": self.BV,
            "AFG": self.AFG,
            "EI": self.EI,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricsBundle":
        return cls(**{k: float(data[k]) for k in cls().to_dict()})


@dataclass
class ScenarioConfig:
    """Tunable parameters of the agents scenario."""

    population_size: int = 30
    tasks_per_gen: int = 10
    base_task_difficulty: float = 20.0
    drift_rate: float = 0.1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "population_size": self.population_size,
            "tasks_per_gen": self.tasks_per_gen,
            "base_task_difficulty": self.base_task_difficulty,
            "drift_rate": self.drift_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioConfig":
        return cls(
            population_size=int(data["population_size"]),
            tasks_per_gen=int(data["tasks_per_gen"]),
            base_task_difficulty=float(data["base_task_difficulty"]),
            drift_rate=float(data["drift_rate"]),
        )


@dataclass
class ScenarioState:
    """The single mutable aggregate owned by a scenario engine."""

    generation: int = 0
    agents: List[Agent] = field(default_factory=list)
    current_tasks: List[Task] = field(default_factory=list)
    metrics: MetricsBundle = field(default_factory=MetricsBundle)
    current_requirements: Dict[ActionType, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "agents": [a.to_dict() for a in self.agents],
            "current_tasks": [t.to_dict() for t in self.current_tasks],
            "metrics": self.metrics.to_dict(),
            "current_requirements": _requirements_to_dict(self.current_requirements),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioState":
        return cls(
            generation=int(data["generation"]),
            agents=[Agent.from_dict(a) for a in data["agents"]],
            current_tasks=[Task.from_dict(t) for t in data["current_tasks"]],
            metrics=MetricsBundle.from_dict(data["metrics"]),
            current_requirements=_requirements_from_dict(data["current_requirements"]),
        )
