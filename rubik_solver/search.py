"""Two-phase IDA* search.

Phase 1 brings the cube into G1 = <U, D, R2, L2, F2, B2> (corners and edges
oriented, slice edges in the slice). Phase 2 finishes inside G1 with the ten
G1 moves. Phase 1 solutions are enumerated lazily by increasing length and
each one is handed to phase 2 with a bound tightened by the best total found
so far.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator

from .console import log
from .coords import N_SLICE, N_SLICE_PERM, phase1_coords, phase2_coords
from .cubie import CubieState
from .errors import SearchCancelledError, SearchTimeoutError, SolutionVerificationError
from .moves import N_MOVES, PHASE2_MOVE_SET, PHASE2_MOVES, apply_sequence, format_move
from .tables import PruningTables
from .types import Solution, SolverConfig

PHASE2_MAX_DEPTH = 18


class TwoPhaseSearch:
    """Read-only search view over a set of pruning tables.

    Numpy tables are copied into lists and bytes once, because the search
    indexes them one element at a time. Instances are shared between threads;
    per-solve state lives in ``_SearchRun``.
    """

    _INSTANCES: dict[str, TwoPhaseSearch] = {}
    _INSTANCES_LOCK = threading.Lock()

    def __init__(self, tables: PruningTables):
        self.tables = tables
        self.twist_move = tables.twist_move.tolist()
        self.flip_move = tables.flip_move.tolist()
        self.slice_move = tables.slice_move.tolist()
        self.corner_perm_move = tables.corner_perm_move.tolist()
        self.ud_edge_move = tables.ud_edge_move.tolist()
        self.slice_perm_move = tables.slice_perm_move.tolist()
        self.twist_slice = tables.twist_slice_prune.tobytes()
        self.flip_slice = tables.flip_slice_prune.tobytes()
        self.corner_slice = tables.corner_slice_prune.tobytes()
        self.edge_slice = tables.edge_slice_prune.tobytes()

    @classmethod
    def for_tables(cls, tables: PruningTables) -> TwoPhaseSearch:
        with cls._INSTANCES_LOCK:
            search = cls._INSTANCES.get(tables.fingerprint)
            if search is None:
                search = cls(tables)
                cls._INSTANCES[tables.fingerprint] = search
            return search

    def solve(
        self,
        cube: CubieState,
        config: SolverConfig,
        cancel_event: threading.Event | None = None,
    ) -> Solution:
        return _SearchRun(self, config, cancel_event).run(cube)


class _SearchRun:
    CHECK_INTERVAL = 1024

    def __init__(self, search: TwoPhaseSearch, config: SolverConfig, cancel_event: threading.Event | None):
        self.s = search
        self.config = config
        self.cancel_event = cancel_event
        self.nodes = 0
        self.best_length: int | None = None
        self.started = time.perf_counter()
        self.deadline = None if config.timeout_sec is None else self.started + config.timeout_sec

    def _elapsed(self) -> float:
        return time.perf_counter() - self.started

    def _expand(self) -> None:
        self.nodes += 1
        max_nodes = self.config.max_nodes
        if max_nodes is not None and self.nodes > max_nodes:
            raise SearchTimeoutError(
                f"Search exceeded {max_nodes} nodes", nodes=self.nodes, elapsed_sec=self._elapsed()
            )
        if self.nodes % self.CHECK_INTERVAL == 1:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise SearchCancelledError("Search cancelled", nodes=self.nodes, elapsed_sec=self._elapsed())
            if self.deadline is not None and time.perf_counter() > self.deadline:
                raise SearchTimeoutError(
                    f"Search exceeded {self.config.timeout_sec}s", nodes=self.nodes, elapsed_sec=self._elapsed()
                )

    def _phase1(self, twist: int, flip: int, slice_: int, togo: int, last_face: int, path: list[int]) -> Iterator[tuple[int, ...]]:
        self._expand()
        if togo == 0:
            # A solution ending in a G1 move has a shorter one without it.
            if not path or path[-1] not in PHASE2_MOVE_SET:
                yield tuple(path)
            return

        s = self.s
        twist_row = s.twist_move[twist]
        flip_row = s.flip_move[flip]
        slice_row = s.slice_move[slice_]
        for move in range(N_MOVES):
            face = move // 3
            if face == last_face or face == last_face - 3:
                continue
            nt = twist_row[move]
            nf = flip_row[move]
            ns = slice_row[move]
            if s.twist_slice[nt * N_SLICE + ns] >= togo or s.flip_slice[nf * N_SLICE + ns] >= togo:
                continue
            path.append(move)
            yield from self._phase1(nt, nf, ns, togo - 1, face, path)
            path.pop()

    def _phase2(self, cp: int, ud: int, sp: int, togo: int, last_face: int, path: list[int]) -> bool:
        self._expand()
        if togo == 0:
            return cp == 0 and ud == 0 and sp == 0

        s = self.s
        cp_row = s.corner_perm_move[cp]
        ud_row = s.ud_edge_move[ud]
        sp_row = s.slice_perm_move[sp]
        for j, move in enumerate(PHASE2_MOVES):
            face = move // 3
            if face == last_face or face == last_face - 3:
                continue
            ncp = cp_row[j]
            nud = ud_row[j]
            nsp = sp_row[j]
            if s.corner_slice[ncp * N_SLICE_PERM + nsp] >= togo or s.edge_slice[nud * N_SLICE_PERM + nsp] >= togo:
                continue
            path.append(move)
            if self._phase2(ncp, nud, nsp, togo - 1, face, path):
                return True
            path.pop()
        return False

    def phase1_solutions(self, cube: CubieState) -> Iterator[tuple[int, ...]]:
        twist, flip, slice_ = phase1_coords(cube)
        h = self.s.tables.phase1_heuristic(twist, flip, slice_)
        for bound in range(h, self.config.max_length + 1):
            if self.best_length is not None and bound >= self.best_length:
                return
            yield from self._phase1(twist, flip, slice_, bound, -1, [])

    def phase2_solution(self, cube: CubieState, limit: int, last_face: int) -> list[int] | None:
        cp, ud, sp = phase2_coords(cube)
        h = self.s.tables.phase2_heuristic(cp, ud, sp)
        for bound in range(h, limit + 1):
            path: list[int] = []
            if self._phase2(cp, ud, sp, bound, last_face, path):
                return path
        return None

    def run(self, cube: CubieState) -> Solution:
        config = self.config
        best: tuple[int, ...] | None = None
        split = 0
        retries = 0
        try:
            for p1 in self.phase1_solutions(cube):
                if best is not None and len(p1) >= len(best):
                    break
                limit = min(PHASE2_MAX_DEPTH, config.max_length - len(p1))
                if best is not None:
                    limit = min(limit, len(best) - len(p1) - 1)
                last_face = p1[-1] // 3 if p1 else -1
                p2 = self.phase2_solution(apply_sequence(cube, p1), limit, last_face)
                if p2 is not None:
                    best = p1 + tuple(p2)
                    split = len(p1)
                    self.best_length = len(best)
                    if config.verbose:
                        log(
                            f"search_improved length={len(best)} phase1={split} phase2={len(p2)} "
                            f"nodes={self.nodes} elapsed={self._elapsed():.3f}s"
                        )
                if best is not None:
                    if config.target_length is not None and len(best) <= config.target_length:
                        break
                    if retries >= config.phase1_retries:
                        break
                    retries += 1
        except SearchCancelledError:
            raise
        except SearchTimeoutError as exc:
            if best is None:
                raise
            if config.verbose:
                log(f"search_budget_exhausted returning length={len(best)} reason={exc}")

        if best is None:
            raise SearchTimeoutError(
                f"No solution within {config.max_length} moves", nodes=self.nodes, elapsed_sec=self._elapsed()
            )
        if not apply_sequence(cube, best).is_solved():
            raise SolutionVerificationError(f"Move sequence {best} does not solve the cube")

        return Solution(
            moves=tuple(format_move(m) for m in best),
            phase1_length=split,
            phase2_length=len(best) - split,
            nodes=self.nodes,
            elapsed_sec=self._elapsed(),
        )
