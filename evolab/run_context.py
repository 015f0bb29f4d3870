"""Run-scoped identifier factory.

Identifiers are derived from the run seed and a monotonically increasing
counter, so two runs with the same seed name their agents, genomes and skills
identically.
"""

from typing import Dict


class RunContext:
    def __init__(self, seed: int, id_counter: int = 0) -> None:
        self._seed = int(seed) & 0xFFFFFFFF
        self._id_counter = max(0, int(id_counter))

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def id_counter(self) -> int:
        return self._id_counter

    def next_id(self, prefix: str) -> str:
        self._id_counter += 1
        return f"{prefix}-{self._seed:08x}-{self._id_counter}"

    def to_dict(self) -> Dict[str, int]:
        return {"seed": self._seed, "id_counter": self._id_counter}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "RunContext":
        return cls(seed=data["seed"], id_counter=data["id_counter"])
