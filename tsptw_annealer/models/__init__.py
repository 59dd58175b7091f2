from .node import Node
from .instance import ProblemInstance
from .penalty import PenaltyConfig

from .api_schemas import (
    EvaluateRequest, EvaluateResponse,
    SolveRequest, SolveResponse,
    DumasRequest, DumasResponse,
)
