"""CLI entrypoint for the two-phase solver."""

from __future__ import annotations

import argparse
import json
import sys
import time

from .console import log
from .engine import RubikSolver
from .errors import RubikSolverError, UnsolvableConfigurationError
from .tables import TableCache, build_tables
from .types import DEFAULT_DEPTH_CAP, SolverConfig

DEFAULT_TABLE_DIR = "tables"


def add_solver_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--max-length", type=int, default=30)
    parser.add_argument("--timeout-sec", type=float, default=30.0)
    parser.add_argument("--max-nodes", type=int, default=None)
    parser.add_argument("--phase1-retries", type=int, default=4)
    parser.add_argument("--target-length", type=int, default=None)
    parser.add_argument("--depth-cap", type=int, default=DEFAULT_DEPTH_CAP)
    parser.add_argument("--table-workers", type=int, default=4)
    parser.add_argument("--table-cache-dir", default=None, help="Load/save pruning tables as .npz here")
    parser.add_argument("--progress", default="off", choices=["on", "off"])
    parser.add_argument("--verbose", action="store_true")


def config_from_args(args: argparse.Namespace) -> SolverConfig:
    values = vars(args).copy()
    values["progress"] = values.get("progress") == "on"
    return SolverConfig.from_args(argparse.Namespace(**values))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Two-phase Rubik's Cube solver")
    sub = parser.add_subparsers(dest="mode", required=True)

    common = argparse.ArgumentParser(add_help=False)
    add_solver_arguments(common)

    solve = sub.add_parser("solve", parents=[common], help="Solve a 54-character facelet string")
    solve.add_argument("facelets")
    solve.add_argument("--json", action="store_true", help="Print the solution as JSON")

    validate = sub.add_parser("validate", parents=[common], help="Check a facelet string for solvability")
    validate.add_argument("facelets")

    scramble = sub.add_parser("scramble", parents=[common], help="Print a random-walk scramble")
    scramble.add_argument("--steps", type=int, default=20)
    scramble.add_argument("--seed", type=int, default=None)

    tables = sub.add_parser(
        "build-tables",
        parents=[common],
        help=f"Build pruning tables and save them to --table-cache-dir (default: {DEFAULT_TABLE_DIR})",
    )
    tables.add_argument("--force", action="store_true", help="Rebuild even if a cached file exists")

    serve = sub.add_parser("serve", parents=[common], help="Run the JSON HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _run_solve(solver: RubikSolver, args: argparse.Namespace) -> int:
    t0 = time.perf_counter()
    solution = solver.solve(args.facelets)
    elapsed_ms = int((time.perf_counter() - t0) * 1000)
    if args.json:
        print(json.dumps(solution.to_dict()))
        return 0
    print(f"Input scramble: {args.facelets}")
    if len(solution) == 0:
        print("Solution: (already solved)")
    else:
        print(f"Solution: {solution} ({len(solution)} moves)")
    print(f"Finished in {elapsed_ms} ms.")
    return 0


def _print_cached_caps(cache: TableCache) -> None:
    caps = cache.cached_caps()
    print(f"Cached depth caps in {cache.dir}: {', '.join(str(c) for c in caps) or 'none'}")


def _run_build_tables(config: SolverConfig, args: argparse.Namespace) -> int:
    cache = TableCache(config.table_cache_dir or DEFAULT_TABLE_DIR)
    path = cache.path_for(config.depth_cap)
    if not args.force and cache.load(config.depth_cap) is not None:
        print(f"Tables already cached at {path}")
        _print_cached_caps(cache)
        return 0
    t0 = time.perf_counter()
    tables = build_tables(
        depth_cap=config.depth_cap,
        workers=config.table_workers,
        progress=config.progress,
        verbose=config.verbose,
    )
    path = cache.save(tables)
    print(f"Saved tables to {path} in {time.perf_counter() - t0:.1f}s")
    _print_cached_caps(cache)
    return 0


def _run_serve(solver: RubikSolver, args: argparse.Namespace) -> int:
    from .server import RubikHTTPServer

    if solver.config.verbose:
        log("warming_up tables")
    solver.warm_up()
    server = RubikHTTPServer(solver=solver, host=args.host, port=args.port)
    print(f"Rubik solver listening on http://{server.host}:{server.port}", flush=True)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    if args.mode == "build-tables":
        return _run_build_tables(config, args)

    solver = RubikSolver(config=config)
    try:
        if args.mode == "solve":
            return _run_solve(solver, args)

        if args.mode == "validate":
            solver.validate(args.facelets)
            print("Valid cube.")
            return 0

        if args.mode == "scramble":
            facelets, moves = solver.scramble(args.steps, seed=args.seed)
            print(f"Scramble: {' '.join(moves)}")
            print(f"Facelets: {facelets}")
            return 0

        if args.mode == "serve":
            return _run_serve(solver, args)
    except UnsolvableConfigurationError as exc:
        print(f"Invalid cube ({exc.invariant}): {exc}", file=sys.stderr)
        return 1
    except RubikSolverError as exc:
        print(f"Error ({exc.kind}): {exc}", file=sys.stderr)
        return 1

    parser.error(f"Unsupported mode: {args.mode}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
