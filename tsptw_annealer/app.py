from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict, Any

from .models import (
    EvaluateRequest, EvaluateResponse,
    SolveRequest, SolveResponse,
    DumasRequest, DumasResponse,
)
from .annealer import AnnealerConfig, optimize
from .dumas import load_dumas_string
from .errors import ConfigurationError, InstanceError
from .penalties import build_penalty
from .route import TSPTWRoute

app = FastAPI(title="TSP-TW Compressed Annealer", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_methods=["*"], allow_headers=["*"],
)

@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "healthy"}

@app.post("/evaluate", response_model=EvaluateResponse)
def endpoint_evaluate(req: EvaluateRequest) -> Dict[str, Any]:
    try:
        route = TSPTWRoute(req.instance, tour=req.tour)
    except InstanceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    metrics = {"feasible_cost": route.feasible_cost, "penalty_cost": route.penalty_cost}
    return {"status": "ok", "metrics": metrics, "arrival_times": route.arrival_times}

@app.post("/solve", response_model=SolveResponse)
def endpoint_solve(req: SolveRequest) -> Dict[str, Any]:
    try:
        cfg = AnnealerConfig(**(req.annealer or {}))
    except TypeError as e:
        # unknown AnnealerConfig field
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        penalty = build_penalty(req.penalty)
        out = optimize(req.instance, penalty, cfg, seed=req.seed, initial_tour=req.initial_tour)
    except (ConfigurationError, InstanceError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "tour": out["tour"], "metrics": out["metrics"], "stats": out["stats"]}

@app.post("/instances/dumas", response_model=DumasResponse)
def endpoint_dumas(req: DumasRequest) -> Dict[str, Any]:
    try:
        inst = load_dumas_string(req.text, name=req.name)
    except InstanceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "instance": inst}
