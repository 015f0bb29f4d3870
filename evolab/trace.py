"""Behavioral-trace sink.

The engine pushes one ``TraceRecord`` per agent per evaluation step. The
default sink is a bounded ring buffer; the visualization side reads it back
as points or as a pandas DataFrame.
"""

from collections import deque
from dataclasses import asdict, dataclass
from typing import Deque, List, Protocol, runtime_checkable

import pandas as pd

DEFAULT_TRACE_CAPACITY = 50000


@dataclass(frozen=True)
class TraceRecord:
    """One point of the behavior lattice."""

    generation: int
    agent_id: str
    lineage_id: str
    energy: float    # cost spent this generation
    novelty: float   # behavioral variance against the previous policy
    fitness: float   # tasks solved this generation


@runtime_checkable
class TraceSink(Protocol):
    def log_agent(self, record: TraceRecord) -> None:
        ...


class TraceBuffer:
    """Ring buffer of trace records; the oldest are dropped first."""

    def __init__(self, max_size: int = DEFAULT_TRACE_CAPACITY) -> None:
        self._buffer: Deque[TraceRecord] = deque(maxlen=max(1, int(max_size)))

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen

    def log_agent(self, record: TraceRecord) -> None:
        self._buffer.append(record)

    def get_points(self) -> List[TraceRecord]:
        return list(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def to_frame(self) -> pd.DataFrame:
        columns = ["generation", "agent_id", "lineage_id", "energy", "novelty", "fitness"]
        return pd.DataFrame([asdict(r) for r in self._buffer], columns=columns)

    def __len__(self) -> int:
        return len(self._buffer)
