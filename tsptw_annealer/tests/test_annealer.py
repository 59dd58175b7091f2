# tsptw_annealer/tests/test_annealer.py
import itertools
import math
import pytest

from tsptw_annealer.annealer import Annealer, AnnealerConfig, acceptance_ratio, optimize
from tsptw_annealer.errors import ConfigurationError
from tsptw_annealer.models import Node, ProblemInstance
from tsptw_annealer.penalties import AdaptivePenalty, ConstantPenalty
from tsptw_annealer.rng import RandomSource
from tsptw_annealer.route import TSPTWRoute

SMALL = dict(temp_multiplier=0.9, accept_probability=0.9, patience=5,
             min_outer_iters=5, inner_iters_per_outer=200, sample_size=300)


def _brute_force_cost(inst):
    t = inst.travel_times
    best = math.inf
    for perm in itertools.permutations(range(1, inst.size)):
        tour = (0,) + perm
        cost = sum(t[a][b] for a, b in zip(tour, tour[1:])) + t[tour[-1]][0]
        best = min(best, cost)
    return best


def _annealer(inst, penalty=None, seed=0, **overrides):
    rng = RandomSource(seed)
    cfg = AnnealerConfig(**{**SMALL, **overrides})
    return Annealer(penalty or AdaptivePenalty(), TSPTWRoute(inst, rng=rng), cfg)


@pytest.mark.parametrize("kwargs", [
    {"accept_probability": 0.0},
    {"accept_probability": 1.0},
    {"accept_probability": 1.5},
    {"temp_multiplier": 0.0},
    {"temp_multiplier": 1.0},
    {"patience": -1},
    {"min_outer_iters": 2.5},
    {"inner_iters_per_outer": -10},
    {"sample_size": 0},
    {"retune_factor": 1.0},
])
def test_config_rejects_out_of_range(kwargs):
    with pytest.raises(ConfigurationError):
        AnnealerConfig(**kwargs)


def test_zero_uphill_counts_as_target_met():
    assert acceptance_ratio(0, 0) == 1.0
    assert acceptance_ratio(3, 4) == 0.75


def test_five_node_instance_reaches_brute_force_optimum(load_instance):
    inst = load_instance("square5")
    ann = _annealer(inst, seed=1)
    best = ann.solve()
    assert best.penalty_cost == 0.0
    assert best.feasible_cost == _brute_force_cost(inst)
    assert ann.best_cost == best.feasible_cost
    assert ann.best_penalty == 0.0
    assert list(best.tour)[0] == 0


def test_impossible_window_stays_penalized_and_terminates(load_instance):
    inst = load_instance("impossible_window")
    penalty = AdaptivePenalty(rate=0.06)
    ann = _annealer(inst, penalty=penalty, seed=2)
    best = ann.solve()
    # node 1 is at least 30 units from the depot with a deadline of 10
    assert best.penalty_cost >= 20.0
    assert ann.total_outer_iterations > SMALL["min_outer_iters"]
    assert ann.best_iteration_age >= SMALL["patience"]
    # sampling saw late solutions, so the cap was recalibrated
    assert penalty.pressure_cap > 0.0
    assert ann.pressure == pytest.approx(penalty(ann.total_outer_iterations))


def test_best_never_worsens(random_instance):
    ann = _annealer(random_instance, seed=3, patience=8, min_outer_iters=10)
    ann.solve()
    keys = [(h["best_penalty"], h["best_cost"]) for h in ann.history]
    assert len(keys) == ann.total_outer_iterations
    assert all(b <= a for a, b in zip(keys, keys[1:]))
    assert keys[-1] == (ann.best_penalty, ann.best_cost)


def test_temperature_cools_geometrically(random_instance):
    ann = _annealer(random_instance, seed=4)
    ann.solve()
    temps = [h["temperature"] for h in ann.history]
    assert temps[0] == pytest.approx(ann.initial_temperature)
    for a, b in zip(temps, temps[1:]):
        assert b == pytest.approx(a * SMALL["temp_multiplier"])


def test_tuning_reaches_high_acceptance_target(random_instance):
    ann = _annealer(random_instance, seed=5, accept_probability=0.99, inner_iters_per_outer=400,
                    patience=1, min_outer_iters=0)
    ann.solve()
    assert ann.tuning_acceptance_ratio >= 0.99
    assert ann.tuning_rounds >= 1
    assert ann.initial_temperature > 0.0


def test_same_seed_same_run(random_instance):
    a = _annealer(random_instance, seed=9)
    b = _annealer(random_instance, seed=9)
    ra, rb = a.solve(), b.solve()
    assert ra.tour == rb.tour
    assert a.summary() == b.summary()


def test_solve_is_one_shot(load_instance):
    ann = _annealer(load_instance("square5"), seed=1)
    ann.solve()
    with pytest.raises(RuntimeError):
        ann.solve()


def test_empty_batches_still_terminate(load_instance):
    ann = _annealer(load_instance("square5"), seed=1, inner_iters_per_outer=0,
                    min_outer_iters=3, patience=2)
    ann.solve()
    assert ann.tuning_rounds == 1
    assert ann.total_outer_iterations == 4
    assert math.isfinite(ann.best_penalty)


def test_two_node_instance():
    inst = ProblemInstance(nodes=[Node(id=0, x=0, y=0, time_windows=[0, 100]),
                                  Node(id=1, x=0, y=7, time_windows=[0, 100])])
    ann = _annealer(inst, seed=1)
    best = ann.solve()
    assert list(best.tour) == [0, 1]
    assert best.feasible_cost == 14.0
    assert best.penalty_cost == 0.0


def test_constant_penalty_run(load_instance):
    ann = _annealer(load_instance("impossible_window"), penalty=ConstantPenalty(5.0), seed=6)
    ann.solve()
    assert ann.pressure == 5.0
    assert ann.best_penalty > 0.0


def test_summary_and_optimize(load_instance):
    inst = load_instance("square5")
    out = optimize(inst, AdaptivePenalty(), AnnealerConfig(**SMALL), seed=12)
    stats = out["stats"]
    assert out["tour"] == stats["best_solution"]["tour"]
    assert out["metrics"]["feasible_cost"] == stats["best_solution"]["base_cost"]
    assert stats["count_limit"] == SMALL["inner_iters_per_outer"]
    assert stats["terminal_best_iteration"] == SMALL["patience"]
    assert stats["penalty"]["kind"] == "adaptive"
    assert len(out["history"]) == stats["iterations"]


def test_optimize_honours_initial_tour(load_instance):
    inst = load_instance("square5")
    out = optimize(inst, ConstantPenalty(1.0), AnnealerConfig(**SMALL), seed=3, initial_tour=[0, 4, 3, 2, 1])
    assert sorted(out["tour"]) == [0, 1, 2, 3, 4]


@pytest.mark.parametrize("kwargs", [
    {"patience": "abc"},
    {"temp_multiplier": "hot"},
    {"sample_size": None},
    {"retune_factor": "x"},
])
def test_config_rejects_non_numeric(kwargs):
    with pytest.raises(ConfigurationError):
        AnnealerConfig(**kwargs)


def test_sampling_pass_sets_temperature_and_cap(random_instance):
    penalty = AdaptivePenalty(cap_percentage=0.9)
    ann = _annealer(random_instance, penalty=penalty, seed=7, sample_size=40)
    ann.solve()

    # replay the sampling pass on the same stream
    current = TSPTWRoute(random_instance, rng=RandomSource(7))
    neighbor = current.copy()
    total, cap = 0.0, 0.0
    for _ in range(40):
        current.randomize()
        current.compute()
        current.generate_neighbor(neighbor)
        total += abs(current.feasible_cost - neighbor.feasible_cost)
        for r in (current, neighbor):
            if r.penalty_cost > 0:
                cap = max(cap, (r.feasible_cost / r.penalty_cost) * 0.9 / (1.0 - 0.9))
    mean = total / 40

    assert mean > 0.0 and cap > 0.0
    assert ann.sampled_mean_delta == pytest.approx(mean)
    assert ann.sampled_temperature == pytest.approx(-mean / math.log(SMALL["accept_probability"]))
    assert penalty.pressure_cap == pytest.approx(cap)
    # tuning only ever re-heats
    assert ann.initial_temperature >= ann.sampled_temperature
    assert ann.summary()["sampled_temperature"] == ann.sampled_temperature


def test_two_node_run_survives_temperature_underflow():
    inst = ProblemInstance(nodes=[Node(id=0, x=0, y=0, time_windows=[0, 100]),
                                  Node(id=1, x=0, y=7, time_windows=[0, 100])])
    ann = _annealer(inst, seed=1, temp_multiplier=0.5, min_outer_iters=1100,
                    patience=1, inner_iters_per_outer=5)
    best = ann.solve()
    assert ann.temperature == 0.0
    assert ann.total_outer_iterations == 1101
    assert best.feasible_cost == 14.0


def test_frozen_run_only_takes_non_worsening_moves(load_instance):
    inst = load_instance("square5")
    ann = _annealer(inst, seed=2, temp_multiplier=0.01, min_outer_iters=200, inner_iters_per_outer=50)
    best = ann.solve()
    assert ann.temperature == 0.0
    assert best.penalty_cost == 0.0
    assert best.feasible_cost >= _brute_force_cost(inst)
    frozen = [(a, b) for a, b in zip(ann.history, ann.history[1:]) if b["temperature"] == 0.0]
    assert frozen
    for a, b in frozen:
        assert b["current_cost"] <= a["current_cost"]
