#!/usr/bin/env python3
"""Run the agents scenario headless and report metrics and the state hash."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from evolab.agents_scenario import AgentsScenario
from evolab.config import load_config
from evolab.runner import RunnerHooks, ScenarioRunner
from evolab.scenario import ControlSignal

logger = logging.getLogger(__name__)


def build_scenario(
    seed: int,
    config_path: Optional[str] = None,
    population: Optional[int] = None,
    tasks: Optional[int] = None,
) -> AgentsScenario:
    """Create and initialize a scenario from a YAML config plus overrides."""
    config = load_config(config_path).to_dict()
    if population is not None:
        config["population_size"] = population
    if tasks is not None:
        config["tasks_per_gen"] = tasks
    scenario = AgentsScenario(seed=seed)
    scenario.initialize(seed, config)
    return scenario


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the Emergent Task Decomposition scenario")
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--steps", type=int, default=100)
    parser.add_argument("--control", type=float, default=0.2, help="Difficulty control U in [0, 1]")
    parser.add_argument("--population", type=int, default=None)
    parser.add_argument("--tasks", type=int, default=None)
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--trace-summary", action="store_true",
                        help="Print a per-column summary of the behavioral trace")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    scenario = build_scenario(args.seed, args.config, args.population, args.tasks)
    hooks = RunnerHooks(
        on_event=lambda e: logger.info("[gen %d] %s: %s", e.timestamp, e.type, e.message),
    )
    runner = ScenarioRunner(scenario, hooks=hooks, control=ControlSignal(U=args.control))
    summary = runner.run(args.steps)

    state = scenario.get_state()
    print(f"generation:     {summary.final_metrics['generation']}")
    for key in ("A", "U"):
        print(f"{key + ':':<16}{summary.final_metrics[key]:.6f}")
    for key, value in state.metrics.to_dict().items():
        if key in ("C", "D", "A", "U", "alert_rate"):
            continue
        print(f"{key + ':':<16}{value:.6f}")
    print(f"events:         {len(summary.events)}")
    print(f"events dropped: {scenario.dropped_events}")
    print(f"state_hash:     {scenario.state_hash()}")

    if args.trace_summary:
        frame = scenario.trace_sink.to_frame()
        print(frame[["energy", "novelty", "fitness"]].describe().to_string())
    return 0


if __name__ == "__main__":
    sys.exit(main())
