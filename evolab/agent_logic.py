"""Agent behavior: solving tasks, learning skills, and reproducing.

``AgentLogic`` wraps an ``Agent`` value and mutates it in place. Every random
decision draws from the ``PRNG`` passed in by the scenario engine.
"""

from dataclasses import dataclass, replace
from typing import List, Optional

from evolab.prng import PRNG
from evolab.run_context import RunContext
from evolab.schemas import ACTION_TYPES, ActionType, Agent, Genome, Skill, Task

# Founders
_INIT_ENERGY = 100.0
_INIT_LEARNING_RATE = 0.1
_MIN_PLAN_DEPTH, _MAX_PLAN_DEPTH = 1, 3               # upper bound exclusive
_MIN_TOOLBOX, _MAX_TOOLBOX = 5, 20                    # upper bound exclusive
_MIN_CREATION_THRESHOLD = 0.5

# Skill economy
_FOCUS_CAPACITY = 100.0                               # cost at which success probability hits 0
_MAINTENANCE_FACTOR = 0.1                             # per-use cost as a fraction of complexity
_NEW_SKILL_EFFICIENCY = 0.7
_NEW_SKILL_COMPLEXITY = 1.0

# Reproduction
_THRESHOLD_NOISE = 0.1                                # full width of the uniform perturbation
_SPECIATION_CHANCE = 0.01
_INHERITED_SKILLS = 2


@dataclass
class SolveResult:
    success: bool
    cost: float
    used_skill_count: int


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class AgentLogic:
    def __init__(self, entity: Agent) -> None:
        self.entity = entity

    @staticmethod
    def random(prng: PRNG, ids: RunContext, generation: int = 0) -> Agent:
        """Create a founder with a random genome and an empty toolbox."""
        agent_id = ids.next_id("agent")
        genome = Genome(
            id=ids.next_id("genome"),
            plan_depth=prng.next_int(_MIN_PLAN_DEPTH, _MAX_PLAN_DEPTH),
            skill_creation_threshold=_MIN_CREATION_THRESHOLD + prng.next() * (1 - _MIN_CREATION_THRESHOLD),
            toolbox_size_limit=prng.next_int(_MIN_TOOLBOX, _MAX_TOOLBOX),
            learning_rate=_INIT_LEARNING_RATE,
        )
        return Agent(
            id=agent_id,
            lineage_id=f"lineage-{agent_id}",
            birth_generation=generation,
            genome=genome,
            skills=[],
            energy=_INIT_ENERGY,
            score=0,
            previous_policy_state=[],
        )

    # ── Task solving ──────────────────────────────

    def solve(self, task: Task, prng: PRNG, ids: RunContext) -> SolveResult:
        """Attempt a task with the best skill per requirement, or raw effort."""
        total_cost = 0.0
        used_skill_count = 0

        for action_type in self._required_types(task):
            amount = task.requirements[action_type]
            best = self.find_best_skill(action_type)
            if best is not None:
                total_cost += amount * best.efficiency
                total_cost += best.complexity * _MAINTENANCE_FACTOR
                best.usage_count += 1
                used_skill_count += 1
            else:
                total_cost += amount

        success_probability = max(0.0, 1.0 - total_cost / _FOCUS_CAPACITY)
        success = prng.next() < success_probability

        if success:
            self.maybe_learn_skill(task, prng, ids)

        return SolveResult(success=success, cost=total_cost, used_skill_count=used_skill_count)

    def find_best_skill(self, action_type: ActionType) -> Optional[Skill]:
        """Lowest-efficiency skill targeting ``action_type``; first one wins ties."""
        best = None
        for skill in self.entity.skills:
            if action_type not in skill.target_types:
                continue
            if best is None or skill.efficiency < best.efficiency:
                best = skill
        return best

    def maybe_learn_skill(self, task: Task, prng: PRNG, ids: RunContext) -> Optional[Skill]:
        """Crystallize a skill for one randomly chosen requirement type.

        Returns the new skill, or None when nothing was learned. A full
        toolbox forgets its least-used skill first.
        """
        types = self._required_types(task)
        if not types:
            return None
        target = types[prng.next_int(0, len(types))]

        if prng.next() <= self.entity.genome.skill_creation_threshold:
            return None
        if any(target in s.target_types for s in self.entity.skills):
            return None

        skill = Skill(
            id=ids.next_id("skill"),
            name=f"{target.value}-Optim",
            target_types=[target],
            efficiency=_NEW_SKILL_EFFICIENCY,
            complexity=_NEW_SKILL_COMPLEXITY,
            usage_count=0,
        )

        skills = self.entity.skills
        while skills and len(skills) >= self.entity.genome.toolbox_size_limit:
            least_used = min(range(len(skills)), key=lambda i: skills[i].usage_count)
            del skills[least_used]

        skills.append(skill)
        return skill

    # ── Reproduction ──────────────────────────────

    def mutate(self, prng: PRNG, ids: RunContext, generation: int) -> Agent:
        """Produce one offspring with a perturbed genome and inherited skills."""
        parent = self.entity
        gene = parent.genome

        new_threshold = gene.skill_creation_threshold + (prng.next() - 0.5) * _THRESHOLD_NOISE

        lineage_id = parent.lineage_id
        if prng.next() < _SPECIATION_CHANCE:
            lineage_id = ids.next_id("lineage-mut")

        body = AgentLogic.random(prng, ids, generation)

        # Cultural transmission: most-used skills first, stable on ties.
        by_usage = sorted(parent.skills, key=lambda s: s.usage_count, reverse=True)
        inherited = [replace(s, target_types=list(s.target_types), usage_count=0)
                     for s in by_usage[:_INHERITED_SKILLS]]

        body.lineage_id = lineage_id
        body.parent_id = parent.id
        body.birth_generation = generation
        body.genome = replace(
            gene,
            id=ids.next_id("genome"),
            skill_creation_threshold=_clamp01(new_threshold),
        )
        body.skills = inherited[:body.genome.toolbox_size_limit]
        body.previous_policy_state = self.get_policy_state()
        return body

    # ── Policy fingerprint ────────────────────────

    def get_policy_state(self) -> List[float]:
        """Best efficiency per action type, 1.0 where the agent has no skill."""
        policy = []
        for action_type in ACTION_TYPES:
            best = self.find_best_skill(action_type)
            policy.append(best.efficiency if best is not None else 1.0)
        return policy

    @staticmethod
    def _required_types(task: Task) -> List[ActionType]:
        return [t for t in ACTION_TYPES if t in task.requirements]
