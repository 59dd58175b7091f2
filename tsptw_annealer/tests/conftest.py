# tsptw_annealer/tests/conftest.py
import json
import random
from pathlib import Path
import pytest
from fastapi.testclient import TestClient

from tsptw_annealer.app import app
from tsptw_annealer.models import Node, ProblemInstance
from tsptw_annealer.rng import RandomSource

# Base directories
ROOT = Path(__file__).resolve().parents[2]        # repository root
EXAMPLES_DIR = ROOT / "examples"


class ScriptedSource(RandomSource):
    """RandomSource replaying fixed draws, for pinning down a single move."""
    def __init__(self, draws):
        super().__init__(0)
        self.draws = list(draws)

    def uniform(self) -> float:
        return self.draws.pop(0)


@pytest.fixture(scope="session")
def client():
    # IMPORTANT: this makes server exceptions come back as HTTP 500
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture(scope="session")
def instances():
    """Always load instances.json from examples/ folder."""
    path = EXAMPLES_DIR / "instances.json"
    if not path.exists():
        raise FileNotFoundError(f"{path} not found.")
    with path.open(encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture(scope="session")
def dumas_path():
    path = EXAMPLES_DIR / "dumas_n5.txt"
    if not path.exists():
        raise FileNotFoundError(f"{path} not found.")
    return path


@pytest.fixture
def load_instance(instances):
    def _load(key):
        return ProblemInstance(**instances[key]["instance"])
    return _load


@pytest.fixture(scope="session")
def random_instance():
    """14 nodes with tight, staggered windows so lateness and waiting both occur."""
    rng = random.Random(3)
    nodes = [Node(id=0, x=50.0, y=50.0, time_windows=[0, 10000])]
    for i in range(1, 14):
        early = rng.uniform(0, 300)
        nodes.append(Node(id=i, x=rng.uniform(0, 100), y=rng.uniform(0, 100),
                          time_windows=[early, early + rng.uniform(5, 40)]))
    return ProblemInstance(nodes=nodes, name="random14")


@pytest.fixture
def scripted_source():
    return ScriptedSource
