"""Coordinates of the two-phase search and their move tables.

Phase 1 works on corner twist, edge flip and the positions of the four
equator-slice edges. Phase 2 works inside <U, D, R2, L2, F2, B2> on the corner
permutation, the permutation of the eight U/D edges and the permutation of
the slice edges. Move tables are built for all coordinate values at once with
numpy.
"""

from __future__ import annotations

import itertools
from collections.abc import Sequence

import numpy as np

from .cubie import N_CORNERS, N_EDGES, CubieState
from .moves import MOVE_CUBES, N_MOVES, PHASE2_MOVES

N_TWIST = 3 ** (N_CORNERS - 1)  # 2187
N_FLIP = 2 ** (N_EDGES - 1)  # 2048
N_SLICE = 495  # C(12, 4)
N_CORNER_PERM = 40320  # 8!
N_UD_EDGE_PERM = 40320  # 8!
N_SLICE_PERM = 24  # 4!
N_PHASE2_MOVES = len(PHASE2_MOVES)

# Slice edges are FR, FL, BL, BR.
FIRST_SLICE_EDGE = 8

_SLICE_COMBOS = tuple(itertools.combinations(range(N_EDGES), 4))
_SLICE_BY_MASK = np.full(1 << N_EDGES, -1, dtype=np.int32)
for _i, _combo in enumerate(_SLICE_COMBOS):
    _SLICE_BY_MASK[sum(1 << pos for pos in _combo)] = _i
_SLICE_BY_MASK.setflags(write=False)

SLICE_SOLVED = int(_SLICE_BY_MASK[sum(1 << pos for pos in range(FIRST_SLICE_EDGE, N_EDGES))])


def perm_rank(values: Sequence[int]) -> int:
    """Lexicographic rank of a sequence of distinct values."""
    n = len(values)
    rank = 0
    for i in range(n):
        smaller = 0
        for j in range(i + 1, n):
            if values[j] < values[i]:
                smaller += 1
        rank = rank * (n - i) + smaller
    return rank


def twist_coord(co: Sequence[int]) -> int:
    t = 0
    for v in co[: N_CORNERS - 1]:
        t = 3 * t + v
    return t


def flip_coord(eo: Sequence[int]) -> int:
    f = 0
    for v in eo[: N_EDGES - 1]:
        f = 2 * f + v
    return f


def slice_coord(ep: Sequence[int]) -> int:
    mask = 0
    for pos, edge in enumerate(ep):
        if edge >= FIRST_SLICE_EDGE:
            mask |= 1 << pos
    return int(_SLICE_BY_MASK[mask])


def phase1_coords(cube: CubieState) -> tuple[int, int, int]:
    return twist_coord(cube.co), flip_coord(cube.eo), slice_coord(cube.ep)


def phase2_coords(cube: CubieState) -> tuple[int, int, int]:
    if not cube.in_phase2_group():
        raise ValueError("Phase 2 coordinates need a cube inside <U, D, R2, L2, F2, B2>")
    return (
        perm_rank(cube.cp),
        perm_rank(cube.ep[:FIRST_SLICE_EDGE]),
        perm_rank(cube.ep[FIRST_SLICE_EDGE:]),
    )


def _orientation_digits(n_pieces: int, base: int) -> np.ndarray:
    """Every orientation coordinate decoded to a row of per-piece values."""
    count = base ** (n_pieces - 1)
    rest = np.arange(count, dtype=np.int64)
    digits = np.zeros((count, n_pieces), dtype=np.int64)
    for i in range(n_pieces - 2, -1, -1):
        digits[:, i] = rest % base
        rest //= base
    digits[:, -1] = (-digits[:, :-1].sum(axis=1)) % base
    return digits


def _encode_digits(digits: np.ndarray, base: int) -> np.ndarray:
    k = digits.shape[1]
    weights = base ** np.arange(k - 1, -1, -1, dtype=np.int64)
    return digits @ weights


def _all_permutations(n: int) -> np.ndarray:
    """All permutations of ``range(n)``; row ``i`` has rank ``i``."""
    return np.array(list(itertools.permutations(range(n))), dtype=np.int64)


def rank_rows(perms: np.ndarray) -> np.ndarray:
    """Vectorized ``perm_rank`` over the rows of ``perms``."""
    n = perms.shape[1]
    rank = np.zeros(perms.shape[0], dtype=np.int64)
    for i in range(n):
        smaller = (perms[:, i + 1 :] < perms[:, i : i + 1]).sum(axis=1)
        rank = rank * (n - i) + smaller
    return rank


def twist_move_table() -> np.ndarray:
    co = _orientation_digits(N_CORNERS, 3)
    table = np.empty((N_TWIST, N_MOVES), dtype=np.int32)
    for m, cube in enumerate(MOVE_CUBES):
        moved = (co[:, np.asarray(cube.cp)] + np.asarray(cube.co)) % 3
        table[:, m] = _encode_digits(moved[:, :-1], 3)
    return table


def flip_move_table() -> np.ndarray:
    eo = _orientation_digits(N_EDGES, 2)
    table = np.empty((N_FLIP, N_MOVES), dtype=np.int32)
    for m, cube in enumerate(MOVE_CUBES):
        moved = (eo[:, np.asarray(cube.ep)] + np.asarray(cube.eo)) % 2
        table[:, m] = _encode_digits(moved[:, :-1], 2)
    return table


def slice_move_table() -> np.ndarray:
    occupied = np.zeros((N_SLICE, N_EDGES), dtype=np.int64)
    for i, combo in enumerate(_SLICE_COMBOS):
        occupied[i, list(combo)] = 1
    weights = np.int64(1) << np.arange(N_EDGES, dtype=np.int64)
    table = np.empty((N_SLICE, N_MOVES), dtype=np.int32)
    for m, cube in enumerate(MOVE_CUBES):
        masks = occupied[:, np.asarray(cube.ep)] @ weights
        table[:, m] = _SLICE_BY_MASK[masks]
    return table


def corner_perm_move_table() -> np.ndarray:
    perms = _all_permutations(N_CORNERS)
    table = np.empty((N_CORNER_PERM, N_PHASE2_MOVES), dtype=np.int32)
    for j, move in enumerate(PHASE2_MOVES):
        table[:, j] = rank_rows(perms[:, np.asarray(MOVE_CUBES[move].cp)])
    return table


def _phase2_edge_moves(full: np.ndarray, keep: slice) -> np.ndarray:
    table = np.empty((full.shape[0], N_PHASE2_MOVES), dtype=np.int32)
    for j, move in enumerate(PHASE2_MOVES):
        moved = full[:, np.asarray(MOVE_CUBES[move].ep)]
        if np.any(moved[:, :FIRST_SLICE_EDGE] >= FIRST_SLICE_EDGE):
            raise RuntimeError(f"Move {move} does not keep slice edges in the slice")
        table[:, j] = rank_rows(moved[:, keep])
    return table


def ud_edge_move_table() -> np.ndarray:
    perms = _all_permutations(FIRST_SLICE_EDGE)
    slice_part = np.broadcast_to(np.arange(FIRST_SLICE_EDGE, N_EDGES), (perms.shape[0], 4))
    return _phase2_edge_moves(np.hstack([perms, slice_part]), slice(0, FIRST_SLICE_EDGE))


def slice_perm_move_table() -> np.ndarray:
    perms = _all_permutations(4) + FIRST_SLICE_EDGE
    ud_part = np.broadcast_to(np.arange(FIRST_SLICE_EDGE), (perms.shape[0], FIRST_SLICE_EDGE))
    return _phase2_edge_moves(np.hstack([ud_part, perms]), slice(FIRST_SLICE_EDGE, N_EDGES))
