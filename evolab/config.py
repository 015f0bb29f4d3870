"""Configuration loading and sanitization for the agents scenario.

Bad values are clamped, never rejected: a non-finite or too-small number
becomes the field's minimum, integer fields are then floored, and the drift
rate is kept within [0, 1].
"""

import logging
import math
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from evolab.schemas import ScenarioConfig

logger = logging.getLogger(__name__)

_DEFAULT_YAML = Path(__file__).parent / "scenario_default.yaml"

# The desktop shell sends camelCase keys.
_KEY_ALIASES = {
    "populationSize": "population_size",
    "tasksPerGen": "tasks_per_gen",
    "baseTaskDifficulty": "base_task_difficulty",
    "driftRate": "drift_rate",
}

_MIN_POPULATION = 1
_MIN_TASKS = 1
_MIN_DIFFICULTY = 1.0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _at_least(value: Any, minimum: float) -> float:
    number = _as_float(value)
    if not math.isfinite(number) or number < minimum:
        return minimum
    return number


def normalize_keys(partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Map shell-style keys to field names and drop unknown keys."""
    fields = set(ScenarioConfig().to_dict())
    normalized = {}
    for key, value in partial.items():
        name = _KEY_ALIASES.get(key, key)
        if name in fields:
            normalized[name] = value
        else:
            logger.debug("Ignoring unknown config key %r", key)
    return normalized


def sanitize_config(
    current: Optional[ScenarioConfig] = None,
    partial: Optional[Mapping[str, Any]] = None,
) -> ScenarioConfig:
    """Merge ``partial`` over ``current`` (or defaults) and clamp every field."""
    merged = (current or ScenarioConfig()).to_dict()
    merged.update(normalize_keys(partial or {}))

    drift = _as_float(merged["drift_rate"])
    if not math.isfinite(drift):
        drift = 0.0

    return ScenarioConfig(
        population_size=int(math.floor(_at_least(merged["population_size"], _MIN_POPULATION))),
        tasks_per_gen=int(math.floor(_at_least(merged["tasks_per_gen"], _MIN_TASKS))),
        base_task_difficulty=_at_least(merged["base_task_difficulty"], _MIN_DIFFICULTY),
        drift_rate=max(0.0, min(1.0, drift)),
    )


def load_config(path: Optional[str] = None) -> ScenarioConfig:
    """Read a YAML config file (the packaged defaults when ``path`` is None)."""
    config_path = Path(path) if path else _DEFAULT_YAML
    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return sanitize_config(ScenarioConfig(), data)
