"""Agency metrics: the "Emergent Intention" family of scores.

H   world uncertainty, entropy of the task requirement distribution
EE  energy efficiency, uncertainty reduced per unit of energy
BV  behavioral variance, distance between successive policy vectors
AFG adaptive feedback gain, policy change per unit of performance change
EI  emergent intention, a sigmoid over the four signals above
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from evolab.schemas import Task

FEEDBACK_EPSILON = 1e-6
MIN_ENERGY = 1e-4


@dataclass(frozen=True)
class IntentionWeights:
    alpha: float = 1.0   # energy efficiency
    beta: float = 0.5    # feedback gain
    delta: float = 1.0   # behavioral variance (penalty)
    gamma: float = 1.0   # task progress


DEFAULT_WEIGHTS = IntentionWeights()


def compute_entropy(tasks: Iterable[Task]) -> float:
    """Shannon entropy in bits over all positive requirement magnitudes.

    Every positive requirement value of every task is one outcome; the
    outcome probabilities are the values normalized by their sum.
    """
    values = [v for task in tasks for v in task.requirements.values() if v > 0]
    if not values:
        return 0.0
    arr = np.asarray(values, dtype=float)
    pdf = arr / arr.sum()
    pdf = pdf[pdf > 0]
    return float(-np.sum(pdf * np.log2(pdf)))


def compute_energy_efficiency(entropy_prev: float, entropy_current: float, energy_spent: float) -> float:
    """Uncertainty reduced per unit of energy; negative when entropy grew."""
    return (entropy_prev - entropy_current) / max(MIN_ENERGY, energy_spent)


def compute_behavioral_variance(
    policy_prev: Optional[Sequence[float]],
    policy_current: Optional[Sequence[float]],
) -> float:
    """Euclidean distance between two policy vectors.

    Missing or length-mismatched vectors have no defined distance and score 0.
    """
    if policy_prev is None or policy_current is None:
        return 0.0
    if len(policy_prev) != len(policy_current):
        return 0.0
    if len(policy_prev) == 0:
        return 0.0
    diff = np.asarray(policy_prev, dtype=float) - np.asarray(policy_current, dtype=float)
    return float(np.sqrt(np.sum(diff * diff)))


def compute_feedback_gain(policy_change_magnitude: float, score_delta: float) -> float:
    return policy_change_magnitude / (abs(score_delta) + FEEDBACK_EPSILON)


def sigmoid(x: float) -> float:
    # Split on sign so math.exp never overflows.
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def compute_emergent_intention(
    energy_efficiency: float,
    feedback_gain: float,
    behavioral_variance: float,
    task_progress: float,
    weights: IntentionWeights = DEFAULT_WEIGHTS,
) -> float:
    """Composite intention score in [0, 1].

    Increases with energy efficiency, feedback gain and task progress, and
    decreases with behavioral variance.
    """
    exponent = (
        weights.alpha * energy_efficiency
        + weights.beta * feedback_gain
        - weights.delta * behavioral_variance
        + weights.gamma * task_progress
    )
    return sigmoid(exponent)
