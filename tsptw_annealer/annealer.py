# tsptw_annealer/annealer.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import json
import logging
import math

from .errors import ConfigurationError
from .penalties import PenaltySchedule
from .rng import RandomSource
from .route import TSPTWRoute, is_better

logger = logging.getLogger("tsptw_annealer.annealer")

SAMPLE_SIZE = 10000
# floor for the initial temperature when every sampled move was cost-neutral
MIN_TEMPERATURE = 1e-9


# =========================
# Annealer config
# =========================
@dataclass
class AnnealerConfig:
    temp_multiplier: float = 0.95       # T <- T * multiplier after every outer iteration
    accept_probability: float = 0.94    # target uphill acceptance ratio while tuning
    patience: int = 75                  # outer iterations without a new best before stopping
    min_outer_iters: int = 100          # floor on outer iterations
    inner_iters_per_outer: int = 30000  # candidate moves per outer iteration
    sample_size: int = SAMPLE_SIZE      # random solutions sampled to set T0 (and the pressure cap)
    retune_factor: float = 1.5          # re-heating factor while tuning

    def __post_init__(self):
        for name in ("temp_multiplier", "accept_probability"):
            v = self._number(name)
            if not 0.0 < v < 1.0:
                raise ConfigurationError(f"{name} must lie in (0, 1) (got {v})")
            setattr(self, name, v)
        for name in ("patience", "min_outer_iters", "inner_iters_per_outer"):
            v = self._number(name)
            if not v.is_integer() or v < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer (got {getattr(self, name)})")
            setattr(self, name, int(v))
        v = self._number("sample_size")
        if not v.is_integer() or v < 1:
            raise ConfigurationError(f"sample_size must be a positive integer (got {self.sample_size})")
        self.sample_size = int(v)
        v = self._number("retune_factor")
        if not v > 1.0:
            raise ConfigurationError(f"retune_factor must be > 1 (got {v})")
        self.retune_factor = v

    def _number(self, name: str) -> float:
        raw = getattr(self, name)
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{name} must be a number (got {raw!r})") from None


def acceptance_ratio(accepted: int, uphill: int) -> float:
    # a batch that proposed no uphill move has nothing to tune against
    if uphill == 0:
        return 1.0
    return accepted / uphill


# =========================
# Compressed annealer
# =========================
class Annealer:
    """
    Simulated annealing over TSP-TW routes with a pluggable pressure schedule:
     - sampling pass sets the initial temperature (and lets the schedule calibrate)
     - re-heating until the uphill acceptance ratio reaches accept_probability
     - geometric cooling, stopping once `patience` outer iterations pass with
       no new best after at least `min_outer_iters` of them

    Neither loop has an iteration ceiling: a run that keeps improving keeps
    running, and tuning keeps re-heating until the target ratio is met.
    solve() is one-shot.
    """
    def __init__(
        self,
        penalty: PenaltySchedule,
        solution: TSPTWRoute,
        config: Optional[AnnealerConfig] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.penalty = penalty
        self.cfg = config or AnnealerConfig()
        self.rng = rng or solution.rng

        self._best = solution.copy()
        self._current = solution.copy()
        self._neighbor = solution.copy()
        for slot in (self._best, self._current, self._neighbor):
            slot.rng = self.rng

        self._temperature = 0.0
        self._initial_temperature = 0.0
        self._sampled_temperature = 0.0
        self._sampled_mean_delta = 0.0
        self._pressure = 0.0
        self._iterations = 0
        self._best_age = 0
        self._best_found_at = 0
        self._tuning_rounds = 0
        self._tuning_ratio = 0.0
        self._solved = False
        self.history: List[Dict[str, Any]] = []

    # ---------- accessors ----------
    @property
    def best(self) -> TSPTWRoute:
        return self._best.copy()

    @property
    def current(self) -> TSPTWRoute:
        return self._current.copy()

    @property
    def best_cost(self) -> float:
        return self._best.feasible_cost

    @property
    def best_penalty(self) -> float:
        return self._best.penalty_cost

    @property
    def best_iteration_index(self) -> int:
        return self._best_found_at

    @property
    def best_iteration_age(self) -> int:
        return self._best_age

    @property
    def total_outer_iterations(self) -> int:
        return self._iterations

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def initial_temperature(self) -> float:
        return self._initial_temperature

    @property
    def sampled_temperature(self) -> float:
        # T0 from the sampling pass, before any re-heating
        return self._sampled_temperature

    @property
    def sampled_mean_delta(self) -> float:
        return self._sampled_mean_delta

    @property
    def pressure(self) -> float:
        return self._pressure

    @property
    def tuning_rounds(self) -> int:
        return self._tuning_rounds

    @property
    def tuning_acceptance_ratio(self) -> float:
        return self._tuning_ratio

    # ---------- run ----------
    def solve(self) -> TSPTWRoute:
        if self._solved:
            raise RuntimeError("Annealer.solve() already ran; build a new Annealer for another run")
        self._solved = True

        self._current.copy_from(self._best)
        self._best.penalty_cost = math.inf
        self._initialize()
        self._tune_temperature()

        cfg = self.cfg
        self._iterations = 0
        while self._iterations <= cfg.min_outer_iters or self._best_age < cfg.patience:
            self._iterations += 1
            for _ in range(cfg.inner_iters_per_outer):
                self._current.generate_neighbor(self._neighbor)
                self._test_neighbor()
                if is_better(self._current, self._best):
                    self._best.copy_from(self._current)
                    self._best_age = 1
                    self._best_found_at = self._iterations
            self._best_age += 1
            self._record()
            self._update_parameters()

        logger.info(
            "annealing done: F=%s P=%s after %d outer iterations (best at %d)",
            self._best.feasible_cost, self._best.penalty_cost,
            self._iterations, self._best_found_at,
        )
        return self.best

    def _weighted(self, sol: TSPTWRoute, pressure: float) -> float:
        return sol.feasible_cost + pressure * sol.penalty_cost

    def _initialize(self) -> None:
        """Sample random solutions and their neighbors to set T0 at zero pressure."""
        current, neighbor = self._current, self._neighbor
        n = self.cfg.sample_size
        total = 0.0
        for _ in range(n):
            current.randomize()
            current.compute()
            current.generate_neighbor(neighbor)
            self.penalty.observe(current.feasible_cost, current.penalty_cost)
            self.penalty.observe(neighbor.feasible_cost, neighbor.penalty_cost)
            total += abs(current.feasible_cost - neighbor.feasible_cost)
        self.penalty.calibrate()
        # the last sample is where the walk starts; it replaces the sentinel best
        if is_better(current, self._best):
            self._best.copy_from(current)

        mean_delta = total / n
        temperature = -mean_delta / math.log(self.cfg.accept_probability)
        self._temperature = max(temperature, MIN_TEMPERATURE)
        self._sampled_temperature = self._temperature
        self._sampled_mean_delta = mean_delta
        self._pressure = self.penalty(0)
        logger.info(
            "sampled %d moves: mean |dF|=%.4f, T0=%.4f, penalty=%s",
            n, mean_delta, self._temperature, self.penalty.describe(),
        )

    def _tune_temperature(self) -> None:
        cfg = self.cfg
        while True:
            self._tuning_rounds += 1
            accepted = uphill = 0
            for _ in range(cfg.inner_iters_per_outer):
                self._current.generate_neighbor(self._neighbor)
                delta = self._weighted(self._neighbor, self._pressure) - self._weighted(self._current, self._pressure)
                if delta < 0:
                    self._swap()
                else:
                    uphill += 1
                    if self._accepts_uphill(delta):
                        self._swap()
                        accepted += 1
                if is_better(self._current, self._best):
                    self._best.copy_from(self._current)
            self._tuning_ratio = acceptance_ratio(accepted, uphill)
            if self._tuning_ratio >= cfg.accept_probability:
                break
            self._temperature *= cfg.retune_factor
            logger.info(
                "tuning round %d: uphill acceptance %.4f < %.4f, T -> %.4f",
                self._tuning_rounds, self._tuning_ratio, cfg.accept_probability, self._temperature,
            )
        self._initial_temperature = self._temperature

    def _test_neighbor(self) -> None:
        """Metropolis test; an accepted neighbor is swapped into the current slot."""
        delta = self._weighted(self._neighbor, self._pressure) - self._weighted(self._current, self._pressure)
        if delta < 0 or self._accepts_uphill(delta):
            self._swap()

    def _accepts_uphill(self, delta: float) -> bool:
        """exp(-delta/T) against one fresh draw; the draw is taken even when T has cooled to 0."""
        u = self.rng.uniform()
        if self._temperature <= 0.0:
            # frozen: only cost-neutral moves still pass, the limit of exp(-0/T)
            return delta == 0
        return u < math.exp(-delta / self._temperature)

    def _swap(self) -> None:
        self._current, self._neighbor = self._neighbor, self._current

    def _update_parameters(self) -> None:
        self._temperature *= self.cfg.temp_multiplier
        self._pressure = self.penalty(self._iterations)

    def _record(self) -> None:
        entry = {
            "iteration": self._iterations,
            "temperature": self._temperature,
            "pressure": self._pressure,
            "current_cost": self._current.feasible_cost,
            "current_penalty": self._current.penalty_cost,
            "best_cost": self._best.feasible_cost,
            "best_penalty": self._best.penalty_cost,
        }
        self.history.append(entry)
        logger.debug("outer %(iteration)d: T=%(temperature).6g pressure=%(pressure).6g "
                     "best=(%(best_penalty)s, %(best_cost)s)", entry)

    # ---------- reporting ----------
    def summary(self) -> Dict[str, Any]:
        return {
            "best_solution": {
                "base_cost": self._best.feasible_cost,
                "penalty": self._best.penalty_cost,
                "tour": list(self._best.tour),
            },
            "best_iteration": self._best_found_at,
            "best_iteration_age": self._best_age,
            "iterations": self._iterations,
            "count_limit": self.cfg.inner_iters_per_outer,
            "minimum_iterations": self.cfg.min_outer_iters,
            "sample_size": self.cfg.sample_size,
            "multiplier": self.cfg.temp_multiplier,
            "acceptance_probability": self.cfg.accept_probability,
            "terminal_best_iteration": self.cfg.patience,
            "sampled_temperature": self._sampled_temperature,
            "initial_temperature": self._initial_temperature,
            "temperature": self._temperature,
            "tuning_rounds": self._tuning_rounds,
            "pressure": self._pressure,
            "penalty": self.penalty.describe(),
        }

    def dump(self) -> str:
        return json.dumps(self.summary(), indent=2)


def optimize(
    instance,
    penalty: PenaltySchedule,
    cfg: Optional[AnnealerConfig] = None,
    seed: Optional[int] = None,
    initial_tour: Optional[List[int]] = None,
) -> Dict[str, Any]:
    """One complete run on a fresh random stream; returns tour, metrics and run stats."""
    rng = RandomSource(seed)
    start = TSPTWRoute(instance, tour=initial_tour, rng=rng)
    annealer = Annealer(penalty, start, cfg, rng=rng)
    best = annealer.solve()
    return {
        "tour": list(best.tour),
        "metrics": {"feasible_cost": best.feasible_cost, "penalty_cost": best.penalty_cost},
        "stats": annealer.summary(),
        "history": annealer.history,
    }
