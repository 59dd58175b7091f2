""" TSPTWRoute is a single candidate tour of a ProblemInstance plus everything the annealer needs to score it cheaply:

Tour: a permutation of node indices anchored at position 0 on the depot (node 0), which no move ever displaces.
Costs: feasible cost F (total travel time, closing edge to the depot included) and penalty cost P (total lateness).
Schedule: per-position arrival time and cumulative lateness, so a move only recomputes the tour from the first
position it altered onward.

The move is a node relocation: the node at position `first` is reinserted just after the node at position `second`
(a rotation of the segment between them). F is adjusted over the three edges the relocation touches, and the
schedule is re-propagated from the first altered position to the end of the tour. """

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import InstanceError
from .models import ProblemInstance
from .rng import RandomSource, default_source


def is_better(a: "TSPTWRoute", b: "TSPTWRoute") -> bool:
    # lateness first, travel time breaks ties
    if a.penalty_cost < b.penalty_cost:
        return True
    return a.penalty_cost == b.penalty_cost and a.feasible_cost < b.feasible_cost


class TSPTWRoute:
    def __init__(self, instance: ProblemInstance, tour: Optional[Sequence[int]] = None,
                 rng: Optional[RandomSource] = None):
        self.instance = instance
        self.rng = rng or default_source()
        n = instance.size
        if tour is None:
            tour = range(n)
        tour = [int(v) for v in tour]
        if len(tour) != n or sorted(tour) != list(range(n)):
            raise InstanceError(f"tour must be a permutation of 0..{n - 1} (got {tour})")
        if tour[0] != 0:
            raise InstanceError(f"tour must start at the depot 0 (got {tour[0]})")

        self._tour: List[int] = tour
        self._arrival: List[float] = [0.0] * n
        self._lateness: List[float] = [0.0] * n
        self._f = 0.0
        self._p = 0.0
        # positions exchanged by the move that produced this route
        self._first = 0
        self._second = 0
        self.compute()

    # ---------- cost components ----------
    @property
    def feasible_cost(self) -> float:
        return self._f

    @feasible_cost.setter
    def feasible_cost(self, value: float) -> None:
        self._f = value

    @property
    def penalty_cost(self) -> float:
        return self._p

    @penalty_cost.setter
    def penalty_cost(self, value: float) -> None:
        self._p = value

    @property
    def is_feasible(self) -> bool:
        return self._p == 0.0

    @property
    def tour(self) -> Tuple[int, ...]:
        return tuple(self._tour)

    @property
    def arrival_times(self) -> List[float]:
        return self._arrival[:]

    @property
    def cumulative_lateness(self) -> List[float]:
        return self._lateness[:]

    def __len__(self) -> int:
        return len(self._tour)

    def better_than(self, other: "TSPTWRoute") -> bool:
        return is_better(self, other)

    # ---------- copying ----------
    def copy_from(self, other: "TSPTWRoute") -> None:
        """Value copy of other into this route; no list is shared afterwards."""
        self.instance = other.instance
        self.rng = other.rng
        self._tour[:] = other._tour
        self._arrival[:] = other._arrival
        self._lateness[:] = other._lateness
        self._f = other._f
        self._p = other._p
        self._first = other._first
        self._second = other._second

    def copy(self) -> "TSPTWRoute":
        clone = TSPTWRoute.__new__(TSPTWRoute)
        clone.instance = self.instance
        clone.rng = self.rng
        clone._tour = self._tour[:]
        clone._arrival = self._arrival[:]
        clone._lateness = self._lateness[:]
        clone._f = self._f
        clone._p = self._p
        clone._first = self._first
        clone._second = self._second
        return clone

    # ---------- full evaluation ----------
    def randomize(self) -> None:
        """Fresh random tour; costs are stale until compute() runs."""
        tour = self._tour
        for i in range(len(tour)):
            tour[i] = i
        self.rng.shuffle_tail(tour, start=1)

    def compute(self) -> None:
        times = self.instance.travel_times
        early = self.instance.early
        late = self.instance.late
        tour, arrival, lateness = self._tour, self._arrival, self._lateness

        arrival[0] = 0.0
        lateness[0] = 0.0
        travel = 0.0
        missed = 0.0
        for k in range(1, len(tour)):
            prev, node = tour[k - 1], tour[k]
            leg = times[prev][node]
            travel += leg
            depart = arrival[k - 1] if arrival[k - 1] >= early[prev] else early[prev]
            arrival[k] = depart + leg
            if arrival[k] > late[node]:
                missed += arrival[k] - late[node]
            lateness[k] = missed
        travel += times[tour[-1]][tour[0]]
        self._f = travel
        self._p = missed

    # ---------- neighborhood ----------
    def _draw_move(self, n: int) -> Tuple[int, int]:
        last = n - 1
        uniform = self.rng.uniform
        while True:
            first = int(last * uniform()) + 1
            # partners are 1..last minus first and first-1; none left only when n == 3
            if last - 1 - (1 if first > 1 else 0) > 0:
                break
        second = first
        while second == first or second == first - 1:
            second = int(last * uniform()) + 1
        return first, second

    def generate_neighbor(self, neighbor: "TSPTWRoute") -> None:
        """Write a relocated copy of this route into neighbor and rescore it incrementally."""
        if neighbor is self:
            raise ValueError("neighbor must be a different route object")
        n = len(self._tour)
        if n < 3:
            # no position pair to relocate; the only neighbor is the route itself
            neighbor.copy_from(self)
            return

        first, second = self._draw_move(n)
        src, dst = self._tour, neighbor._tour
        holder = src[first]
        if first < second:
            dst[:first] = src[:first]
            dst[first:second] = src[first + 1:second + 1]
            dst[second] = holder
            dst[second + 1:] = src[second + 1:]
            start = first
        else:
            dst[:second + 1] = src[:second + 1]
            dst[second + 1] = holder
            dst[second + 2:first + 1] = src[second + 1:first]
            dst[first + 1:] = src[first + 1:]
            start = second + 1

        # schedule before the first altered position is unchanged
        neighbor._arrival[:start] = self._arrival[:start]
        neighbor._lateness[:start] = self._lateness[:start]
        neighbor.instance = self.instance
        neighbor.rng = self.rng
        neighbor._f = self._f
        neighbor._p = self._p
        neighbor._first = first
        neighbor._second = second
        neighbor.update()

    def update(self) -> None:
        """Rescore after a move: patch F over the touched edges, re-propagate the schedule."""
        times = self.instance.travel_times
        t = self._tour
        n = len(t)
        f, s = self._first, self._second
        cost = self._f
        if f < s:
            after = t[s + 1] if s != n - 1 else t[0]
            cost -= times[t[f - 1]][t[s]] + times[t[s]][t[f]] + times[t[s - 1]][after]
            cost += times[t[f - 1]][t[f]] + times[t[s - 1]][t[s]] + times[t[s]][after]
            start = f
        else:
            after = t[f + 1] if f != n - 1 else t[0]
            cost -= times[t[s]][t[s + 2]] + times[t[f]][t[s + 1]] + times[t[s + 1]][after]
            cost += times[t[f]][after] + times[t[s]][t[s + 1]] + times[t[s + 1]][t[s + 2]]
            start = s + 1
        self._f = cost
        self.timing_update(start)
        self._p = self._lateness[n - 1]

    def timing_update(self, start: int) -> None:
        """Recompute arrival/lateness for positions start..N-1 from the cached prefix."""
        times = self.instance.travel_times
        early = self.instance.early
        late = self.instance.late
        tour, arrival, lateness = self._tour, self._arrival, self._lateness
        for k in range(start, len(tour)):
            prev, node = tour[k - 1], tour[k]
            if arrival[k - 1] >= early[prev]:
                arrival[k] = arrival[k - 1] + times[prev][node]
            else:
                arrival[k] = early[prev] + times[prev][node]
            if arrival[k] > late[node]:
                lateness[k] = lateness[k - 1] + (arrival[k] - late[node])
            else:
                lateness[k] = lateness[k - 1]

    # ---------- reporting ----------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "tour": list(self._tour),
            "feasible_cost": self._f,
            "penalty_cost": self._p,
            "arrival_times": self._arrival[:],
        }

    def __repr__(self) -> str:
        return f"TSPTWRoute(F={self._f}, P={self._p}, tour={self._tour})"
