"""Evolab -- deterministic open-ended evolution scenarios and agency metrics."""

from evolab.prng import PRNG
from evolab.run_context import RunContext
from evolab.schemas import (
    ACTION_TYPES,
    ActionType,
    Agent,
    Genome,
    MetricsBundle,
    ScenarioConfig,
    ScenarioState,
    Skill,
    Task,
)
from evolab.agent_logic import AgentLogic, SolveResult
from evolab.events import EventQueue, ScenarioEvent
from evolab.trace import TraceBuffer, TraceRecord, TraceSink
from evolab.config import load_config, sanitize_config
from evolab.scenario import (
    ControlSignal,
    Scenario,
    ScenarioMetadata,
    available_scenarios,
    create_scenario,
    register_scenario,
)
from evolab.agents_scenario import AgentsScenario, StateDecodeError
from evolab.runner import RunnerHooks, RunSummary, ScenarioRunner

__all__ = [
    "ACTION_TYPES",
    "ActionType",
    "Agent",
    "AgentLogic",
    "AgentsScenario",
    "ControlSignal",
    "EventQueue",
    "Genome",
    "MetricsBundle",
    "PRNG",
    "RunContext",
    "RunnerHooks",
    "RunSummary",
    "Scenario",
    "ScenarioConfig",
    "ScenarioEvent",
    "ScenarioMetadata",
    "ScenarioRunner",
    "ScenarioState",
    "Skill",
    "SolveResult",
    "StateDecodeError",
    "Task",
    "TraceBuffer",
    "TraceRecord",
    "TraceSink",
    "available_scenarios",
    "create_scenario",
    "load_config",
    "register_scenario",
    "sanitize_config",
]
