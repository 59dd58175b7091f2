# Declarative choice of penalty schedule for the annealer (see penalties.build_penalty).

from typing import Literal              # Restrict the schedule kind to known names
from pydantic import BaseModel          # Import Pydantic BaseModel for validation and schema support


class PenaltyConfig(BaseModel):         # Model for penalty configuration
    kind: Literal["constant", "adaptive"] = "adaptive"  # Constant multiplier or compressed (adaptive) pressure
    multiplier: float = 1.0             # Pressure used by the constant schedule
    rate: float = 0.06                  # Exponential rate at which adaptive pressure approaches its cap
    cap: float = 0.0                    # Initial pressure cap (recalibrated by the annealer's sampling pass)
    cap_percentage: float = 0.9999      # Target fraction used to derive the cap from sampled solutions
