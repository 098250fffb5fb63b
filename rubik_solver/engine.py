"""Solver facade: validation, solving and scrambling behind one object."""

from __future__ import annotations

import dataclasses
import threading

import numpy as np

from .cubie import CubieState
from .errors import MalformedInputError
from .facelets import DEFAULT_SCHEME, ColorScheme, FaceletInput, to_facelets
from .moves import apply_sequence, format_move, random_moves
from .search import TwoPhaseSearch
from .tables import PruningTables, get_tables
from .types import Solution, SolverConfig
from .validator import check_solvable, validate


class RubikSolver:
    """Thread-safe two-phase solver.

    All solvers with the same depth cap share one set of read-only tables;
    each ``solve`` call keeps its search state to itself, so several threads
    may solve different cubes at once.
    """

    def __init__(
        self,
        config: SolverConfig | None = None,
        scheme: ColorScheme = DEFAULT_SCHEME,
        tables: PruningTables | None = None,
    ):
        self.config = config or SolverConfig()
        self.scheme = scheme
        self._lock = threading.RLock()
        self._rng = np.random.default_rng(self.config.seed)
        self._tables = tables
        self._search: TwoPhaseSearch | None = None

    @property
    def search(self) -> TwoPhaseSearch:
        with self._lock:
            if self._search is None:
                if self._tables is None:
                    self._tables = get_tables(self.config)
                self._search = TwoPhaseSearch.for_tables(self._tables)
            return self._search

    @property
    def tables_loaded(self) -> bool:
        return self._search is not None

    def warm_up(self) -> None:
        """Build or load the tables now instead of on the first solve."""
        _ = self.search

    def validate(self, facelets: FaceletInput) -> CubieState:
        return validate(facelets, self.scheme)

    def solve(
        self,
        facelets: FaceletInput,
        cancel_event: threading.Event | None = None,
        timeout_sec: float | None = None,
    ) -> Solution:
        cube = self.validate(facelets)
        return self.solve_cubie(cube, cancel_event=cancel_event, timeout_sec=timeout_sec)

    def solve_cubie(
        self,
        cube: CubieState,
        cancel_event: threading.Event | None = None,
        timeout_sec: float | None = None,
    ) -> Solution:
        check_solvable(cube)
        config = self.config
        if timeout_sec is not None:
            config = dataclasses.replace(config, timeout_sec=timeout_sec)
        return self.search.solve(cube, config, cancel_event)

    def scramble(self, steps: int, seed: int | None = None) -> tuple[str, list[str]]:
        """Random-walk scramble; always solvable. Returns facelets and moves."""
        if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool) or seed < 0):
            raise MalformedInputError("Scramble seed must be a non-negative integer or None")
        with self._lock:
            rng = np.random.default_rng(seed) if seed is not None else self._rng
            moves = random_moves(steps, rng)
        cube = apply_sequence(CubieState(), moves)
        return to_facelets(cube, self.scheme), [format_move(m) for m in moves]


_DEFAULT_SOLVER: RubikSolver | None = None
_DEFAULT_LOCK = threading.Lock()


def default_solver() -> RubikSolver:
    global _DEFAULT_SOLVER
    with _DEFAULT_LOCK:
        if _DEFAULT_SOLVER is None:
            _DEFAULT_SOLVER = RubikSolver()
        return _DEFAULT_SOLVER


def solve(facelets: FaceletInput, cancel_event: threading.Event | None = None) -> Solution:
    return default_solver().solve(facelets, cancel_event=cancel_event)


def scramble(steps: int, seed: int | None = None) -> tuple[str, list[str]]:
    return default_solver().scramble(steps, seed=seed)
