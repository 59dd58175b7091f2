# tsptw_annealer/errors.py
# Error types raised at construction time; both are ValueErrors so callers that
# already catch pydantic's ValidationError keep working.


class ConfigurationError(ValueError):
    """Tuning or penalty parameter outside its allowed range."""


class InstanceError(ValueError):
    """Malformed tour or problem data (bad permutation, too few nodes)."""
