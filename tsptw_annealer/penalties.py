# tsptw_annealer/penalties.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict
import math

from .errors import ConfigurationError
from .models import PenaltyConfig


class PenaltySchedule:
    """
    Maps an outer-iteration index to the pressure (weight) that folds a
    route's lateness into its travel cost: F + pressure * P.
    - Call observe(F, P) for each solution seen while the annealer samples.
    - Call calibrate() once after sampling; schedules that derive a
      parameter from the samples install it there.
    """
    def __call__(self, iteration: int) -> float:
        raise NotImplementedError

    def observe(self, feasible_cost: float, penalty_cost: float) -> None:
        pass

    def calibrate(self) -> None:
        pass

    def describe(self) -> Dict[str, Any]:
        return {"kind": type(self).__name__}


@dataclass
class ConstantPenalty(PenaltySchedule):
    multiplier: float = 1.0

    def __post_init__(self):
        if self.multiplier < 0:
            raise ConfigurationError(f"multiplier must be >= 0 (got {self.multiplier})")

    def __call__(self, iteration: int) -> float:
        return self.multiplier

    def describe(self) -> Dict[str, Any]:
        return {"kind": "constant", "multiplier": self.multiplier}


@dataclass
class AdaptivePenalty(PenaltySchedule):
    """
    Compressed-annealing pressure: cap * (1 - exp(-rate * iteration)).
    The cap is recomputed from the sampling pass: the largest
    (F/P) * cp/(1-cp) over sampled solutions with P > 0, cp being
    cap_percentage. It is held fixed for the rest of the run.
    """
    rate: float = 0.06
    pressure_cap: float = 0.0
    cap_percentage: float = 0.9999
    _candidate: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self):
        if self.rate < 0:
            raise ConfigurationError(f"rate must be >= 0 (got {self.rate})")
        if self.pressure_cap < 0:
            raise ConfigurationError(f"pressure_cap must be >= 0 (got {self.pressure_cap})")
        if not 0.0 < self.cap_percentage < 1.0:
            raise ConfigurationError(
                f"cap_percentage must lie in (0, 1) (got {self.cap_percentage})"
            )

    @property
    def scale(self) -> float:
        return self.cap_percentage / (1.0 - self.cap_percentage)

    def __call__(self, iteration: int) -> float:
        return self.pressure_cap * (1.0 - math.exp(-self.rate * iteration))

    def observe(self, feasible_cost: float, penalty_cost: float) -> None:
        if penalty_cost > 0:
            pressure = (feasible_cost / penalty_cost) * self.scale
            if pressure > self._candidate:
                self._candidate = pressure

    def calibrate(self) -> None:
        self.pressure_cap = self._candidate
        self._candidate = 0.0

    def describe(self) -> Dict[str, Any]:
        return {
            "kind": "adaptive",
            "rate": self.rate,
            "pressure_cap": self.pressure_cap,
            "cap_percentage": self.cap_percentage,
        }


def build_penalty(cfg: PenaltyConfig) -> PenaltySchedule:
    if cfg.kind == "constant":
        return ConstantPenalty(multiplier=cfg.multiplier)
    return AdaptivePenalty(rate=cfg.rate, pressure_cap=cfg.cap, cap_percentage=cfg.cap_percentage)
