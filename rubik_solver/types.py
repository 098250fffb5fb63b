"""Shared dataclasses for the solver pipeline."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, fields
from typing import Any

DEFAULT_DEPTH_CAP = 20


@dataclass
class SolverConfig:
    max_length: int = 30
    timeout_sec: float | None = 30.0
    max_nodes: int | None = None
    phase1_retries: int = 4
    target_length: int | None = None
    depth_cap: int = DEFAULT_DEPTH_CAP
    table_workers: int = 4
    table_cache_dir: str | None = None
    progress: bool = False
    verbose: bool = False
    seed: int | None = None

    def __post_init__(self):
        if self.max_length < 1:
            raise ValueError("max_length must be >= 1")
        if self.timeout_sec is not None and self.timeout_sec <= 0:
            raise ValueError("timeout_sec must be > 0 or None")
        if self.max_nodes is not None and self.max_nodes < 1:
            raise ValueError("max_nodes must be >= 1 or None")
        if self.phase1_retries < 0:
            raise ValueError("phase1_retries must be >= 0")
        if self.target_length is not None and self.target_length < 0:
            raise ValueError("target_length must be >= 0 or None")
        if not 1 <= self.depth_cap <= 255:
            raise ValueError("depth_cap must be in range 1..255")
        if self.table_workers < 1:
            raise ValueError("table_workers must be >= 1")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> SolverConfig:
        """Pick matching attributes off an argparse namespace."""
        values: dict[str, Any] = {}
        for f in fields(cls):
            if hasattr(args, f.name):
                values[f.name] = getattr(args, f.name)
        return cls(**values)


@dataclass(frozen=True)
class Solution:
    moves: tuple[str, ...]
    phase1_length: int
    phase2_length: int
    nodes: int
    elapsed_sec: float

    def __len__(self) -> int:
        return len(self.moves)

    def __str__(self) -> str:
        return " ".join(self.moves)

    def to_dict(self) -> dict[str, Any]:
        return {
            "moves": list(self.moves),
            "length": len(self.moves),
            "phase1_length": self.phase1_length,
            "phase2_length": self.phase2_length,
            "nodes": self.nodes,
            "elapsed_sec": self.elapsed_sec,
        }
