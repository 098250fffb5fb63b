"""Offline solver evaluation over scramble depths."""

from __future__ import annotations

import argparse
import csv
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from .cli import add_solver_arguments, config_from_args
from .console import log
from .cubie import CubieState
from .engine import RubikSolver
from .errors import SearchTimeoutError
from .moves import apply_sequence, random_moves

matplotlib.use("Agg")


@dataclass
class DepthMetrics:
    scramble_depth: int
    cubes: int
    solved_count: int
    timeout_count: int
    success_rate: float
    length_min: float | None
    length_mean: float | None
    length_max: float | None
    time_ms_mean: float
    time_ms_max: float
    nodes_mean: float
    eval_time_sec: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "scramble_depth": self.scramble_depth,
            "cubes": self.cubes,
            "solved_count": self.solved_count,
            "timeout_count": self.timeout_count,
            "success_rate": self.success_rate,
            "length_min": self.length_min,
            "length_mean": self.length_mean,
            "length_max": self.length_max,
            "time_ms_mean": self.time_ms_mean,
            "time_ms_max": self.time_ms_max,
            "nodes_mean": self.nodes_mean,
            "eval_time_sec": self.eval_time_sec,
        }


def _aggregate_metrics(
    scramble_depth: int,
    solved: np.ndarray,
    lengths: np.ndarray,
    times_ms: np.ndarray,
    nodes: np.ndarray,
    eval_time_sec: float,
) -> DepthMetrics:
    solved = np.asarray(solved, dtype=bool)
    lengths = np.asarray(lengths, dtype=np.int64)
    times_ms = np.asarray(times_ms, dtype=np.float64)
    nodes = np.asarray(nodes, dtype=np.int64)
    cubes = int(solved.size)
    solved_count = int(solved.sum())

    if solved_count > 0:
        solved_lengths = lengths[solved]
        length_min = float(np.min(solved_lengths))
        length_mean = float(np.mean(solved_lengths))
        length_max = float(np.max(solved_lengths))
    else:
        length_min = None
        length_mean = None
        length_max = None

    return DepthMetrics(
        scramble_depth=scramble_depth,
        cubes=cubes,
        solved_count=solved_count,
        timeout_count=cubes - solved_count,
        success_rate=float(solved_count / cubes) if cubes > 0 else 0.0,
        length_min=length_min,
        length_mean=length_mean,
        length_max=length_max,
        time_ms_mean=float(np.mean(times_ms)) if cubes > 0 else 0.0,
        time_ms_max=float(np.max(times_ms)) if cubes > 0 else 0.0,
        nodes_mean=float(np.mean(nodes)) if cubes > 0 else 0.0,
        eval_time_sec=float(eval_time_sec),
    )


def _fmt_opt(v: float | None) -> str:
    return "N/A" if v is None else f"{v:.2f}"


def _print_header() -> None:
    print(
        "scramble | success_rate | solved/total | length(min/mean/max) | time_ms(mean/max) | nodes_mean",
        flush=True,
    )


def _print_row(m: DepthMetrics) -> None:
    length = f"{_fmt_opt(m.length_min)}/{_fmt_opt(m.length_mean)}/{_fmt_opt(m.length_max)}"
    times = f"{m.time_ms_mean:.1f}/{m.time_ms_max:.1f}"
    print(
        f"{m.scramble_depth:8d} | "
        f"{m.success_rate:12.4f} | "
        f"{m.solved_count:6d}/{m.cubes:<5d} | "
        f"{length:20s} | "
        f"{times:17s} | "
        f"{m.nodes_mean:10.0f}",
        flush=True,
    )


def _plot_metrics(metrics: list[DepthMetrics], output_dir: Path, prefix: str) -> tuple[Path, Path]:
    depths = np.array([m.scramble_depth for m in metrics], dtype=np.int64)
    length_min = np.array([np.nan if m.length_min is None else m.length_min for m in metrics], dtype=np.float64)
    length_mean = np.array([np.nan if m.length_mean is None else m.length_mean for m in metrics], dtype=np.float64)
    length_max = np.array([np.nan if m.length_max is None else m.length_max for m in metrics], dtype=np.float64)
    time_mean = np.array([m.time_ms_mean for m in metrics], dtype=np.float64)
    time_max = np.array([m.time_ms_max for m in metrics], dtype=np.float64)

    fig1 = plt.figure(figsize=(11, 6))
    ax1 = fig1.add_subplot(111)
    ax1.plot(depths, length_min, marker="o", linewidth=1.8, label="Min")
    ax1.plot(depths, length_mean, marker="o", linewidth=1.8, label="Mean")
    ax1.plot(depths, length_max, marker="o", linewidth=1.8, label="Max")
    ax1.plot(depths, depths, linestyle="--", alpha=0.6, linewidth=1.5, label="Scramble length")
    ax1.set_title("Solver Evaluation: Solution Length vs Scramble Depth")
    ax1.set_xlabel("Scramble depth")
    ax1.set_ylabel("Solution length (moves)")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="best")
    length_path = output_dir / f"{prefix}_length.png"
    fig1.tight_layout()
    fig1.savefig(length_path, dpi=160)
    plt.close(fig1)

    fig2 = plt.figure(figsize=(10, 5))
    ax2 = fig2.add_subplot(111)
    ax2.plot(depths, time_mean, marker="o", linewidth=2.0, label="Mean")
    ax2.plot(depths, time_max, linestyle="--", alpha=0.7, linewidth=1.5, label="Max")
    ax2.set_title("Solver Evaluation: Solve Time vs Scramble Depth")
    ax2.set_xlabel("Scramble depth")
    ax2.set_ylabel("Time (ms)")
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="best")
    time_path = output_dir / f"{prefix}_time.png"
    fig2.tight_layout()
    fig2.savefig(time_path, dpi=160)
    plt.close(fig2)

    return length_path, time_path


def _save_reports(
    metrics: list[DepthMetrics],
    output_dir: Path,
    prefix: str,
    args: argparse.Namespace,
) -> tuple[Path, Path]:
    csv_path = output_dir / f"{prefix}_metrics.csv"
    json_path = output_dir / f"{prefix}_metrics.json"

    fieldnames = list(DepthMetrics.__dataclass_fields__)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for m in metrics:
            writer.writerow(m.to_dict())

    payload = {
        "config": {
            "scrambles_per_depth": int(args.scrambles_per_depth),
            "scramble_min": int(args.scramble_min),
            "scramble_max": int(args.scramble_max),
            "max_length": int(args.max_length),
            "timeout_sec": args.timeout_sec,
            "phase1_retries": int(args.phase1_retries),
            "depth_cap": int(args.depth_cap),
            "seed": args.seed,
        },
        "metrics": [m.to_dict() for m in metrics],
    }
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return csv_path, json_path


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Offline solver evaluation on random-walk scrambles")
    p.add_argument("--scrambles-per-depth", type=int, default=20)
    p.add_argument("--scramble-min", type=int, default=1)
    p.add_argument("--scramble-max", type=int, default=20)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--output-dir", default="eval_reports")
    p.add_argument("--output-prefix", default="solver_eval")
    add_solver_arguments(p)
    p.set_defaults(progress="on")
    return p


def run_evaluation(args: argparse.Namespace, solver: RubikSolver | None = None) -> dict[str, Any]:
    if args.scramble_min < 1 or args.scramble_max < args.scramble_min:
        raise ValueError("Require 1 <= scramble_min <= scramble_max")
    if args.scrambles_per_depth < 1:
        raise ValueError("--scrambles-per-depth must be >= 1")

    config = config_from_args(args)
    solver = solver or RubikSolver(config=config)
    rng = np.random.default_rng(args.seed)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    t0 = time.perf_counter()
    solver.warm_up()
    log(
        "evaluation_init "
        f"tables_ready={time.perf_counter() - t0:.2f}s scrambles_per_depth={args.scrambles_per_depth} "
        f"scramble_range={args.scramble_min}..{args.scramble_max} max_length={config.max_length} "
        f"phase1_retries={config.phase1_retries}"
    )
    _print_header()

    metrics: list[DepthMetrics] = []
    for scramble_depth in range(int(args.scramble_min), int(args.scramble_max) + 1):
        t_depth = time.perf_counter()
        n = int(args.scrambles_per_depth)
        solved_out = np.zeros((n,), dtype=bool)
        lengths_out = np.zeros((n,), dtype=np.int64)
        times_out = np.zeros((n,), dtype=np.float64)
        nodes_out = np.zeros((n,), dtype=np.int64)

        cube_iter = range(n)
        if args.progress == "on":
            cube_iter = tqdm(cube_iter, desc=f"scramble={scramble_depth}", unit="cube", mininterval=1.0, leave=False)

        for i in cube_iter:
            cube = apply_sequence(CubieState(), random_moves(scramble_depth, rng))
            t_solve = time.perf_counter()
            try:
                solution = solver.solve_cubie(cube)
            except SearchTimeoutError as exc:
                nodes_out[i] = exc.nodes
            else:
                solved_out[i] = True
                lengths_out[i] = len(solution)
                nodes_out[i] = solution.nodes
            times_out[i] = (time.perf_counter() - t_solve) * 1000.0

        m = _aggregate_metrics(
            scramble_depth, solved_out, lengths_out, times_out, nodes_out, time.perf_counter() - t_depth
        )
        metrics.append(m)
        _print_row(m)

    length_path, time_path = _plot_metrics(metrics, output_dir, args.output_prefix)
    csv_path, json_path = _save_reports(metrics, output_dir, args.output_prefix, args)

    avg_sr = float(np.mean([m.success_rate for m in metrics]))
    means = [m.length_mean for m in metrics if m.length_mean is not None]
    avg_length = float(np.mean(means)) if means else float("nan")
    log(
        "evaluation_summary "
        f"avg_success_rate={avg_sr:.4f} avg_length_mean={avg_length:.2f} "
        f"length_plot={length_path} time_plot={time_path} csv={csv_path} json={json_path}"
    )

    return {
        "metrics": metrics,
        "length_plot": length_path,
        "time_plot": time_path,
        "csv": csv_path,
        "json": json_path,
    }


def main() -> None:
    args = build_parser().parse_args()
    run_evaluation(args)


if __name__ == "__main__":
    main()
