""" This file defines the Node Pydantic model, which represents one stop of a TSP-TW instance (node 0 being the depot).

It ensures:

Nodes always have valid coordinates (either (x,y) or location=[x,y] must be provided).
Time windows are normalized into an [early, late] list (single numbers/lists are expanded) with early <= late.
Provides .coords, .early and .late properties for unified access.

In short: it validates and standardizes raw node input into a consistent, safe format for the annealer. """

from typing import List, Optional, Tuple               # Type hints for lists, optional values, and coordinate tuples
from pydantic import BaseModel, field_validator, model_validator  # Pydantic base class and validation decorators


class Node(BaseModel):                                 # Node data model (Pydantic for validation + parsing)
    id: int                                            # Node number as given by the data source
    x: Optional[float] = None                          # X-coordinate (optional if location[] is used)
    y: Optional[float] = None                          # Y-coordinate (optional if location[] is used)
    location: Optional[List[float]] = None             # Alternative coordinate format: [x, y]
    demand: float = 0.0                                # Carried from the data file, unused by the annealer
    time_windows: List[float]                          # Time window [early, late] = unlock time and deadline
    service_time: float = 0.0                          # Carried from the data file, unused by the annealer

    @field_validator("time_windows", mode="before")    # Validate/normalize time_windows *before* assignment
    @classmethod
    def _coerce_time_windows(cls, v):
        if isinstance(v, (int, float)):                # If single number → interpret as [0, value]
            return [0.0, float(v)]
        if isinstance(v, (list, tuple)):
            if len(v) == 1:                            # Single-element list → expand to [0, value]
                return [0.0, float(v[0])]
            if len(v) == 2:                            # Two elements → cast to floats
                return [float(v[0]), float(v[1])]
        raise ValueError("time_windows must be [early, late]")  # Otherwise invalid format

    @model_validator(mode="after")                     # Post-init validation (after fields parsed)
    def _check_fields(self):
        has_loc = self.location is not None and len(self.location) >= 2   # Check if location[] provided
        has_xy = self.x is not None and self.y is not None                # Or if (x,y) provided
        if not (has_loc or has_xy):                                       # Must have at least one coordinate format
            raise ValueError("Provide either (x,y) or location=[x,y] for node")
        if self.time_windows[0] > self.time_windows[1]:                   # An inverted window can never be met
            raise ValueError(f"Node {self.id}: early bound exceeds late bound")
        return self

    @property
    def coords(self) -> Tuple[float, float]:            # Unified coordinate accessor
        if self.location and len(self.location) >= 2:   # Prefer location[] if provided
            return float(self.location[0]), float(self.location[1])
        if self.x is None or self.y is None:            # If neither format available → error
            raise ValueError(f"Node {self.id} missing coordinates")
        return float(self.x), float(self.y)             # Otherwise return (x,y)

    @property
    def early(self) -> float:                           # Earliest departure (vehicle waits until then)
        return self.time_windows[0]

    @property
    def late(self) -> float:                            # Deadline; arriving after it accrues lateness
        return self.time_windows[1]
