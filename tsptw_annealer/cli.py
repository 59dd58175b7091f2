# tsptw_annealer/cli.py
import argparse
import json
import logging
import sys

from .annealer import AnnealerConfig, optimize
from .dumas import load_dumas_file
from .errors import ConfigurationError, InstanceError
from .penalties import AdaptivePenalty, ConstantPenalty


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tsptw-anneal", description="Compressed annealing for the TSP with time windows")
    sub = ap.add_subparsers(dest="command", required=True)

    s = sub.add_parser("solve", help="anneal a Dumas-format instance and print the run summary as JSON")
    s.add_argument("file")
    s.add_argument("--seed", type=int, default=None)
    s.add_argument("--rate", type=float, default=0.06, help="adaptive pressure growth rate")
    s.add_argument("--cap", type=float, default=0.0, help="initial pressure cap (recalibrated while sampling)")
    s.add_argument("--cap-percentage", type=float, default=0.9999)
    s.add_argument("--constant", type=float, default=None, metavar="PRESSURE",
                   help="use a constant pressure instead of the adaptive schedule")
    s.add_argument("--multiplier", type=float, default=0.95, help="temperature multiplier per outer iteration")
    s.add_argument("--accept", type=float, default=0.94, help="target uphill acceptance ratio")
    s.add_argument("--patience", type=int, default=75)
    s.add_argument("--min-iters", type=int, default=100)
    s.add_argument("--inner-iters", type=int, default=30000)
    s.add_argument("--sample-size", type=int, default=10000)
    s.add_argument("--log-level", default="WARNING")

    v = sub.add_parser("serve", help="run the HTTP service")
    v.add_argument("--host", default="127.0.0.1")
    v.add_argument("--port", type=int, default=8000)
    v.add_argument("--log-level", default="info")
    return ap


def run_solve(args) -> int:
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        inst = load_dumas_file(args.file)
        if args.constant is not None:
            penalty = ConstantPenalty(multiplier=args.constant)
        else:
            penalty = AdaptivePenalty(rate=args.rate, pressure_cap=args.cap, cap_percentage=args.cap_percentage)
        cfg = AnnealerConfig(
            temp_multiplier=args.multiplier,
            accept_probability=args.accept,
            patience=args.patience,
            min_outer_iters=args.min_iters,
            inner_iters_per_outer=args.inner_iters,
            sample_size=args.sample_size,
        )
    except (FileNotFoundError, ConfigurationError, InstanceError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    out = optimize(inst, penalty, cfg, seed=args.seed)
    print(json.dumps(out["stats"], indent=2))
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        import uvicorn
        uvicorn.run("tsptw_annealer.app:app", host=args.host, port=args.port, log_level=args.log_level)
        return 0
    return run_solve(args)


if __name__ == "__main__":
    sys.exit(main())
