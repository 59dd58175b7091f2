from typing import Any, List, Dict, Optional
from pydantic import BaseModel, Field
from .instance import ProblemInstance
from .penalty import PenaltyConfig

class EvaluateRequest(BaseModel):
    instance: ProblemInstance
    tour: List[int] = Field(..., description="Tour as node positions, starting at the depot 0")

class EvaluateResponse(BaseModel):
    status: str
    metrics: Dict[str, float]
    arrival_times: List[float]

class SolveRequest(BaseModel):
    instance: ProblemInstance
    penalty: PenaltyConfig = PenaltyConfig()
    annealer: Optional[Dict[str, Any]] = None   # AnnealerConfig fields
    initial_tour: Optional[List[int]] = None
    seed: Optional[int] = None

class SolveResponse(BaseModel):
    status: str
    tour: List[int]
    metrics: Dict[str, float]
    stats: Dict[str, Any]

class DumasRequest(BaseModel):
    text: str = Field(..., description="Contents of a Dumas-format instance file")
    name: Optional[str] = None

class DumasResponse(BaseModel):
    status: str
    instance: ProblemInstance
