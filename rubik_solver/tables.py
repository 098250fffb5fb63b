"""Pruning tables: BFS distance estimates for the two search phases.

Each table is indexed by a pair of coordinates ``a * n_b + b`` and holds the
number of moves needed to bring that pair to its solved value, saturated at
a depth cap. Tables are built once per process (or loaded from an ``.npz``
cache), marked read-only and shared by every solver.
"""

from __future__ import annotations

import hashlib
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields
from pathlib import Path

import numpy as np
from tqdm import tqdm

from . import coords
from .console import log
from .moves import MOVE_CUBES
from .types import DEFAULT_DEPTH_CAP, SolverConfig

TABLE_FORMAT_VERSION = 1
UNSEEN = -1


@dataclass(frozen=True, eq=False)
class PruningTables:
    twist_move: np.ndarray
    flip_move: np.ndarray
    slice_move: np.ndarray
    corner_perm_move: np.ndarray
    ud_edge_move: np.ndarray
    slice_perm_move: np.ndarray
    twist_slice_prune: np.ndarray
    flip_slice_prune: np.ndarray
    corner_slice_prune: np.ndarray
    edge_slice_prune: np.ndarray
    depth_cap: int
    fingerprint: str

    def arrays(self) -> dict[str, np.ndarray]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name in ARRAY_SHAPES}

    def phase1_heuristic(self, twist: int, flip: int, slice_: int) -> int:
        return max(
            int(self.twist_slice_prune[twist * coords.N_SLICE + slice_]),
            int(self.flip_slice_prune[flip * coords.N_SLICE + slice_]),
        )

    def phase2_heuristic(self, corner_perm: int, ud_edge_perm: int, slice_perm: int) -> int:
        return max(
            int(self.corner_slice_prune[corner_perm * coords.N_SLICE_PERM + slice_perm]),
            int(self.edge_slice_prune[ud_edge_perm * coords.N_SLICE_PERM + slice_perm]),
        )


ARRAY_SHAPES = {
    "twist_move": (coords.N_TWIST, 18),
    "flip_move": (coords.N_FLIP, 18),
    "slice_move": (coords.N_SLICE, 18),
    "corner_perm_move": (coords.N_CORNER_PERM, coords.N_PHASE2_MOVES),
    "ud_edge_move": (coords.N_UD_EDGE_PERM, coords.N_PHASE2_MOVES),
    "slice_perm_move": (coords.N_SLICE_PERM, coords.N_PHASE2_MOVES),
    "twist_slice_prune": (coords.N_TWIST * coords.N_SLICE,),
    "flip_slice_prune": (coords.N_FLIP * coords.N_SLICE,),
    "corner_slice_prune": (coords.N_CORNER_PERM * coords.N_SLICE_PERM,),
    "edge_slice_prune": (coords.N_UD_EDGE_PERM * coords.N_SLICE_PERM,),
}


def table_fingerprint(depth_cap: int) -> str:
    """Hash of everything the tables are a function of."""
    h = hashlib.sha1()
    h.update(f"v{TABLE_FORMAT_VERSION};cap={depth_cap};".encode("ascii"))
    for cube in MOVE_CUBES:
        h.update(repr((cube.cp, cube.co, cube.ep, cube.eo)).encode("ascii"))
    return h.hexdigest()


def bfs_distances(
    move_a: np.ndarray,
    move_b: np.ndarray,
    start: int,
    depth_cap: int,
    name: str = "table",
    progress: bool = False,
    position: int = 0,
) -> np.ndarray:
    """Level-synchronous BFS over the product of two coordinates.

    ``move_a``/``move_b`` have one column per move. Every level expands the
    whole frontier at once. Entries not reached below ``depth_cap`` get
    ``depth_cap``.
    """
    n_b = move_b.shape[0]
    table = np.full(move_a.shape[0] * n_b, UNSEEN, dtype=np.int16)
    table[start] = 0
    frontier = np.array([start], dtype=np.int64)
    depth = 0

    with tqdm(desc=name, unit="level", position=position, leave=False, disable=not progress) as bar:
        while frontier.size and depth + 1 < depth_cap:
            a = frontier // n_b
            b = frontier % n_b
            nxt = (move_a[a].astype(np.int64) * n_b + move_b[b]).ravel()
            nxt = nxt[table[nxt] == UNSEEN]
            depth += 1
            table[nxt] = depth
            frontier = np.flatnonzero(table == depth)
            bar.set_postfix(depth=depth, frontier=int(frontier.size))
            bar.update(1)

    table[table == UNSEEN] = depth_cap
    return table.astype(np.uint8)


def build_tables(
    depth_cap: int = DEFAULT_DEPTH_CAP,
    workers: int = 4,
    progress: bool = False,
    verbose: bool = False,
) -> PruningTables:
    t0 = time.perf_counter()
    moves = {
        "twist_move": coords.twist_move_table(),
        "flip_move": coords.flip_move_table(),
        "slice_move": coords.slice_move_table(),
        "corner_perm_move": coords.corner_perm_move_table(),
        "ud_edge_move": coords.ud_edge_move_table(),
        "slice_perm_move": coords.slice_perm_move_table(),
    }
    if verbose:
        log(f"move_tables_built elapsed={time.perf_counter() - t0:.2f}s")

    jobs = {
        "twist_slice_prune": ("twist_move", "slice_move", coords.SLICE_SOLVED),
        "flip_slice_prune": ("flip_move", "slice_move", coords.SLICE_SOLVED),
        "corner_slice_prune": ("corner_perm_move", "slice_perm_move", 0),
        "edge_slice_prune": ("ud_edge_move", "slice_perm_move", 0),
    }
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            name: pool.submit(
                bfs_distances, moves[a], moves[b], start, depth_cap, name, progress, position
            )
            for position, (name, (a, b, start)) in enumerate(jobs.items())
        }
        prunes = {name: future.result() for name, future in futures.items()}

    arrays = {**moves, **prunes}
    for arr in arrays.values():
        arr.setflags(write=False)
    tables = PruningTables(**arrays, depth_cap=depth_cap, fingerprint=table_fingerprint(depth_cap))
    if verbose:
        log(
            "tables_built "
            f"depth_cap={depth_cap} workers={workers} "
            f"phase1_max={int(prunes['twist_slice_prune'].max())}/{int(prunes['flip_slice_prune'].max())} "
            f"phase2_max={int(prunes['corner_slice_prune'].max())}/{int(prunes['edge_slice_prune'].max())} "
            f"elapsed={time.perf_counter() - t0:.2f}s"
        )
    return tables


class TableCache:
    """On-disk ``.npz`` cache of pruning tables keyed by fingerprint."""

    FILE_PATTERN = re.compile(r"tables_cap(\d+)_([0-9a-f]{12})\.npz$")

    def __init__(self, cache_dir: str = "tables"):
        self.dir = Path(cache_dir)
        self.dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, depth_cap: int) -> Path:
        return self.dir / f"tables_cap{depth_cap:03d}_{table_fingerprint(depth_cap)[:12]}.npz"

    def cached_caps(self) -> list[int]:
        caps = []
        for p in sorted(self.dir.glob("tables_cap*.npz")):
            m = self.FILE_PATTERN.search(p.name)
            if m and m.group(2) == table_fingerprint(int(m.group(1)))[:12]:
                caps.append(int(m.group(1)))
        return caps

    def save(self, tables: PruningTables) -> Path:
        path = self.path_for(tables.depth_cap)
        np.savez_compressed(
            path,
            fingerprint=np.array(tables.fingerprint),
            depth_cap=np.array(tables.depth_cap),
            **tables.arrays(),
        )
        return path

    def load(self, depth_cap: int) -> PruningTables | None:
        path = self.path_for(depth_cap)
        if not path.exists():
            return None

        with np.load(path, allow_pickle=False) as data:
            if "fingerprint" not in data or data["fingerprint"].item() != table_fingerprint(depth_cap):
                raise ValueError(f"Table file {path} does not match the current move definitions")
            arrays = {}
            for name, shape in ARRAY_SHAPES.items():
                if name not in data:
                    raise ValueError(f"Table file {path} is missing array {name}")
                arr = np.array(data[name])
                if arr.shape != shape:
                    raise ValueError(f"Table file {path}: {name} has shape {arr.shape}, expected {shape}")
                arr.setflags(write=False)
                arrays[name] = arr
        return PruningTables(**arrays, depth_cap=depth_cap, fingerprint=table_fingerprint(depth_cap))


_TABLES: dict[int, PruningTables] = {}
_TABLES_LOCK = threading.Lock()


def get_tables(config: SolverConfig | None = None) -> PruningTables:
    """Process-wide tables for ``config.depth_cap``, built or loaded on first use."""
    config = config or SolverConfig()
    with _TABLES_LOCK:
        tables = _TABLES.get(config.depth_cap)
        if tables is not None:
            return tables

        cache = TableCache(config.table_cache_dir) if config.table_cache_dir else None
        if cache is not None:
            tables = cache.load(config.depth_cap)
            if tables is not None and config.verbose:
                log(f"tables_loaded path={cache.path_for(config.depth_cap)}")
        if tables is None:
            tables = build_tables(
                depth_cap=config.depth_cap,
                workers=config.table_workers,
                progress=config.progress,
                verbose=config.verbose,
            )
            if cache is not None:
                path = cache.save(tables)
                if config.verbose:
                    log(f"tables_saved path={path}")
        _TABLES[config.depth_cap] = tables
        return tables
