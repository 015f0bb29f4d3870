"""Tests for task solving, skill learning and reproduction."""

import pytest

from evolab.agent_logic import AgentLogic
from evolab.prng import PRNG
from evolab.run_context import RunContext
from evolab.schemas import ACTION_TYPES, ActionType, Agent, Genome, Skill, Task


# ── Helpers ──────────────────────────────────────

def make_agent(skills=None, threshold=0.6, toolbox=5):
    return Agent(
        id="agent-p",
        lineage_id="lineage-p",
        birth_generation=0,
        genome=Genome(
            id="genome-p",
            plan_depth=2,
            skill_creation_threshold=threshold,
            toolbox_size_limit=toolbox,
            learning_rate=0.1,
        ),
        skills=list(skills or []),
    )


def make_skill(skill_id, target, efficiency=0.7, usage=0, complexity=1.0):
    return Skill(
        id=skill_id,
        name=f"{target.value}-Optim",
        target_types=[target],
        efficiency=efficiency,
        complexity=complexity,
        usage_count=usage,
    )


def make_task(requirements):
    return Task(id="task", requirements=requirements, deadline=100, drift_factor=0.0)


# ── Founders ─────────────────────────────────────

class TestRandomAgent:
    def test_genome_ranges(self):
        prng = PRNG(5)
        ids = RunContext(5)
        for _ in range(200):
            agent = AgentLogic.random(prng, ids, generation=3)
            assert 1 <= agent.genome.plan_depth <= 3
            assert 0.5 <= agent.genome.skill_creation_threshold <= 1.0
            assert 5 <= agent.genome.toolbox_size_limit <= 20
            assert agent.birth_generation == 3
            assert agent.skills == []
            assert agent.energy == 100.0
            assert agent.lineage_id == f"lineage-{agent.id}"
            assert agent.parent_id is None

    def test_unique_ids(self):
        prng, ids = PRNG(1), RunContext(1)
        agents = [AgentLogic.random(prng, ids) for _ in range(50)]
        assert len({a.id for a in agents}) == 50


# ── Solving ──────────────────────────────────────

class TestSolve:
    def test_skill_discounts_cost_and_counts_usage(self, fake_prng):
        skill = make_skill("s1", ActionType.NAVIGATE, efficiency=0.5)
        logic = AgentLogic(make_agent([skill]))
        task = make_task({ActionType.NAVIGATE: 10.0, ActionType.COMPUTE: 20.0})

        result = logic.solve(task, fake_prng([0.9]), RunContext(0))

        assert result.cost == pytest.approx(10 * 0.5 + 1.0 * 0.1 + 20.0)
        assert result.success is False
        assert result.used_skill_count == 1
        assert skill.usage_count == 1

    def test_best_skill_is_lowest_efficiency(self, fake_prng):
        worse = make_skill("worse", ActionType.COMPUTE, efficiency=0.9)
        better = make_skill("better", ActionType.COMPUTE, efficiency=0.4)
        logic = AgentLogic(make_agent([worse, better]))

        result = logic.solve(make_task({ActionType.COMPUTE: 10.0}), fake_prng([0.99]), RunContext(0))

        assert result.cost == pytest.approx(10 * 0.4 + 0.1)
        assert better.usage_count == 1
        assert worse.usage_count == 0

    def test_efficiency_ties_pick_first_inserted(self):
        first = make_skill("first", ActionType.COMPUTE, efficiency=0.5)
        second = make_skill("second", ActionType.COMPUTE, efficiency=0.5)
        assert AgentLogic(make_agent([first, second])).find_best_skill(ActionType.COMPUTE) is first

    def test_success_triggers_learning(self, fake_prng):
        logic = AgentLogic(make_agent(threshold=0.6))
        task = make_task({ActionType.NAVIGATE: 10.0, ActionType.COMPUTE: 20.0})
        # success draw, target index draw (-> COMPUTE), threshold draw
        prng = fake_prng([0.1, 0.6, 0.95])

        result = logic.solve(task, prng, RunContext(0))

        assert result.success is True
        assert result.cost == pytest.approx(30.0)
        assert [s.target_types for s in logic.entity.skills] == [[ActionType.COMPUTE]]
        assert logic.entity.skills[0].efficiency == 0.7
        assert logic.entity.skills[0].complexity == 1.0
        assert prng.remaining == 0

    def test_impossible_task_always_fails(self, fake_prng):
        logic = AgentLogic(make_agent())
        task = make_task({t: 40.0 for t in ACTION_TYPES})
        result = logic.solve(task, fake_prng([0.0]), RunContext(0))
        assert result.success is False
        assert logic.entity.skills == []


# ── Skill learning ───────────────────────────────

class TestMaybeLearnSkill:
    def test_below_threshold_learns_nothing(self, fake_prng):
        logic = AgentLogic(make_agent(threshold=0.6))
        learned = logic.maybe_learn_skill(make_task({ActionType.COMPUTE: 1.0}), fake_prng([0.0, 0.6]), RunContext(0))
        assert learned is None
        assert logic.entity.skills == []

    def test_existing_skill_blocks_duplicate(self, fake_prng):
        existing = make_skill("s", ActionType.COMPUTE)
        logic = AgentLogic(make_agent([existing], threshold=0.1))
        learned = logic.maybe_learn_skill(make_task({ActionType.COMPUTE: 1.0}), fake_prng([0.0, 0.9]), RunContext(0))
        assert learned is None
        assert logic.entity.skills == [existing]

    def test_full_toolbox_evicts_least_used_first_inserted(self, fake_prng):
        skills = [
            make_skill("a", ActionType.NAVIGATE, usage=3),
            make_skill("b", ActionType.NAVIGATE, usage=1),
            make_skill("c", ActionType.COMPUTE, usage=1),
            make_skill("d", ActionType.COMPUTE, usage=2),
            make_skill("e", ActionType.MANIPULATE, usage=4),
        ]
        logic = AgentLogic(make_agent(skills, threshold=0.5, toolbox=5))

        learned = logic.maybe_learn_skill(
            make_task({ActionType.COMMUNICATE: 5.0}), fake_prng([0.0, 0.99]), RunContext(0)
        )

        assert learned is not None
        assert [s.id for s in logic.entity.skills] == ["a", "c", "d", "e", learned.id]
        assert len(logic.entity.skills) <= logic.entity.genome.toolbox_size_limit


# ── Reproduction ─────────────────────────────────

class TestMutate:
    def _parent(self):
        skills = [
            make_skill("low", ActionType.NAVIGATE, efficiency=0.7, usage=1),
            make_skill("high", ActionType.COMPUTE, efficiency=0.6, usage=9),
            make_skill("mid", ActionType.MANIPULATE, efficiency=0.5, usage=4),
        ]
        return make_agent(skills, threshold=0.6, toolbox=7)

    def test_child_inherits_genome_and_top_skills(self, fake_prng):
        parent = self._parent()
        parent_policy = AgentLogic(parent).get_policy_state()
        # threshold noise, speciation, body: plan depth, threshold, toolbox
        prng = fake_prng([0.75, 0.5, 0.0, 0.0, 0.0])

        child = AgentLogic(parent).mutate(prng, RunContext(9), generation=4)

        assert child.parent_id == parent.id
        assert child.lineage_id == parent.lineage_id
        assert child.birth_generation == 4
        assert child.id != parent.id
        assert child.genome.id != parent.genome.id
        assert child.genome.plan_depth == parent.genome.plan_depth
        assert child.genome.toolbox_size_limit == parent.genome.toolbox_size_limit
        assert child.genome.skill_creation_threshold == pytest.approx(0.625)
        assert [s.id for s in child.skills] == ["high", "mid"]
        assert all(s.usage_count == 0 for s in child.skills)
        assert child.previous_policy_state == parent_policy
        assert child.score == 0

    def test_parent_is_untouched(self, fake_prng):
        parent = self._parent()
        AgentLogic(parent).mutate(fake_prng([0.75, 0.5, 0.0, 0.0, 0.0]), RunContext(9), generation=1)
        assert [s.id for s in parent.skills] == ["low", "high", "mid"]
        assert [s.usage_count for s in parent.skills] == [1, 9, 4]
        assert parent.genome.skill_creation_threshold == 0.6

    def test_inherited_skills_are_copies(self, fake_prng):
        parent = self._parent()
        child = AgentLogic(parent).mutate(fake_prng([0.5, 0.5, 0.0, 0.0, 0.0]), RunContext(9), generation=1)
        child.skills[0].usage_count = 100
        assert parent.skills[1].usage_count == 9

    def test_speciation_forks_lineage(self, fake_prng):
        parent = self._parent()
        child = AgentLogic(parent).mutate(fake_prng([0.5, 0.005, 0.0, 0.0, 0.0]), RunContext(9), generation=1)
        assert child.lineage_id != parent.lineage_id
        assert child.lineage_id.startswith("lineage-mut-")

    def test_threshold_clamped(self, fake_prng):
        parent = make_agent(threshold=0.99)
        child = AgentLogic(parent).mutate(fake_prng([0.99, 0.5, 0.0, 0.0, 0.0]), RunContext(9), generation=1)
        assert child.genome.skill_creation_threshold == 1.0

        parent = make_agent(threshold=0.01)
        child = AgentLogic(parent).mutate(fake_prng([0.0, 0.5, 0.0, 0.0, 0.0]), RunContext(9), generation=1)
        assert child.genome.skill_creation_threshold == 0.0


# ── Policy fingerprint ───────────────────────────

class TestPolicyState:
    def test_no_skills_is_all_ones(self):
        assert AgentLogic(make_agent()).get_policy_state() == [1.0, 1.0, 1.0, 1.0]

    def test_best_efficiency_per_type(self):
        skills = [
            make_skill("a", ActionType.COMPUTE, efficiency=0.7),
            make_skill("b", ActionType.COMPUTE, efficiency=0.3),
            make_skill("c", ActionType.COMMUNICATE, efficiency=0.8),
        ]
        assert AgentLogic(make_agent(skills)).get_policy_state() == [1.0, 0.3, 1.0, 0.8]
