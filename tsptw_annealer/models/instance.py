""" The ProblemInstance model is the container for a full TSP with Time Windows input.
It holds:

Nodes: the ordered stops, node 0 being the depot every tour starts from and returns to.
Travel times: derived once from the node coordinates (straight-line distance floored to an integer), or taken from an
explicit override, then closed under the triangle inequality so every entry is a shortest path.

In short: ProblemInstance is the immutable root data structure the routes and the annealer read from; nothing mutates
it once validation has run. """

import math                                        # hypot/floor for the straight-line travel times
from typing import List, Optional                  # Type hints for lists and optional fields
from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationInfo, field_validator  # Pydantic base + validators
from .node import Node                             # Import Node model (depot + customers)


def closure(times: List[List[float]]) -> List[List[float]]:
    """Floyd-Warshall pass; afterwards t[i][j] <= t[i][k] + t[k][j] for all triples."""
    n = len(times)
    for k in range(n):
        row_k = times[k]
        for i in range(n):
            row_i = times[i]
            t_ik = row_i[k]
            for j in range(n):
                via = t_ik + row_k[j]
                if row_i[j] > via:
                    row_i[j] = via
    return times


class ProblemInstance(BaseModel):                  # Top-level model describing a full TSP-TW instance
    model_config = ConfigDict(frozen=True)         # Immutable once built

    nodes: List[Node]                              # Ordered nodes (required), nodes[0] is the depot
    name: Optional[str] = None                     # Identifier, e.g. the source file name
    travel_time: Optional[List[List[float]]] = None  # Optional explicit N×N matrix replacing the geometry

    _times: List[List[float]] = PrivateAttr(default_factory=list)
    _early: List[float] = PrivateAttr(default_factory=list)
    _late: List[float] = PrivateAttr(default_factory=list)

    @field_validator("nodes")
    @classmethod
    def _check_nodes(cls, v: List[Node]):
        if len(v) < 2:                             # A tour needs the depot plus at least one stop
            raise ValueError("instance needs at least two nodes (depot + one stop)")
        return v

    @field_validator("travel_time")
    @classmethod
    def _check_matrix(cls, v, info: ValidationInfo):
        if v is None:
            return v
        nodes = info.data.get("nodes")
        if nodes is None:                          # nodes already failed validation
            return v
        n = len(nodes)
        if len(v) != n or any(len(row) != n for row in v):
            raise ValueError(f"travel_time must be a {n}x{n} matrix")
        if any(t < 0 for row in v for t in row):
            raise ValueError("travel_time entries must be non-negative")
        return v

    def model_post_init(self, __context) -> None:
        if self.travel_time is not None:
            times = [[float(v) for v in row] for row in self.travel_time]
        else:
            coords = [nd.coords for nd in self.nodes]
            times = [
                [float(math.floor(math.hypot(xi - xj, yi - yj))) for (xj, yj) in coords]
                for (xi, yi) in coords
            ]
        self._times = closure(times)
        self._early = [nd.early for nd in self.nodes]
        self._late = [nd.late for nd in self.nodes]

    @property
    def size(self) -> int:
        return len(self.nodes)

    @property
    def travel_times(self) -> List[List[float]]:
        # shared, read-only by convention; routes index it in their inner loops
        return self._times

    @property
    def early(self) -> List[float]:
        return self._early

    @property
    def late(self) -> List[float]:
        return self._late

    def travel(self, i: int, j: int) -> float:
        return self._times[i][j]
