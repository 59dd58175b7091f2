from .errors import ConfigurationError, InstanceError
from .models import Node, ProblemInstance, PenaltyConfig
from .rng import RandomSource, default_source, seed
from .penalties import PenaltySchedule, ConstantPenalty, AdaptivePenalty, build_penalty
from .route import TSPTWRoute, is_better
from .annealer import Annealer, AnnealerConfig, optimize
from .dumas import load_dumas_file, load_dumas_string

__all__ = [
    "ConfigurationError", "InstanceError",
    "Node", "ProblemInstance", "PenaltyConfig",
    "RandomSource", "default_source", "seed",
    "PenaltySchedule", "ConstantPenalty", "AdaptivePenalty", "build_penalty",
    "TSPTWRoute", "is_better",
    "Annealer", "AnnealerConfig", "optimize",
    "load_dumas_file", "load_dumas_string",
]
