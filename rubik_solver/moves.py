"""Move engine: the 18 face turns, their notation and their action on cube states."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

from .cubie import CubieState
from .errors import MalformedInputError
from .facelets import DEFAULT_SCHEME, ColorScheme, FaceletInput, cubie_from_faces, parse_facelets
from .geometry import FACE_ORDER, FACE_TURN_PERMUTATIONS, solved_faces

N_MOVES = 18
# Move index = face * 3 + (quarter_turns - 1); faces follow FACE_ORDER.
MOVE_SUFFIXES = ("", "2", "'")
MOVE_NAMES = tuple(f"{face}{suffix}" for face in FACE_ORDER for suffix in MOVE_SUFFIXES)
MOVE_INDEX = {name: i for i, name in enumerate(MOVE_NAMES)}

# Moves that keep a cube inside <U, D, R2, L2, F2, B2>.
PHASE2_MOVES = tuple(MOVE_INDEX[name] for name in ("U", "U2", "U'", "D", "D2", "D'", "R2", "F2", "L2", "B2"))
PHASE2_MOVE_SET = frozenset(PHASE2_MOVES)
MAX_SCRAMBLE_STEPS = 1000


def move_face(move: int) -> int:
    return move // 3


def inverse(move: int) -> int:
    """Return the move undoing ``move`` (half turns are their own inverse)."""
    return move - move % 3 + (2 - move % 3)


def format_move(move: int) -> str:
    return MOVE_NAMES[move]


def parse_move(token: str | int) -> int:
    if isinstance(token, int) and not isinstance(token, bool):
        if 0 <= token < N_MOVES:
            return token
        raise MalformedInputError(f"Move index must be in range 0..{N_MOVES - 1}, got {token}")
    if not isinstance(token, str):
        raise MalformedInputError(f"Move must be a notation string, got {token!r}")
    move = MOVE_INDEX.get(token.strip())
    if move is None:
        raise MalformedInputError(f"Unknown move {token!r}; expected one of {' '.join(MOVE_NAMES)}")
    return move


def parse_moves(value: str | Iterable[str | int]) -> list[int]:
    """Parse ``"R U2 D'"`` or a sequence of tokens into move indices."""
    tokens = value.split() if isinstance(value, str) else list(value)
    return [parse_move(token) for token in tokens]


def format_moves(moves: Iterable[int]) -> str:
    return " ".join(format_move(m) for m in moves)


def _generate_move_cubes() -> tuple[CubieState, ...]:
    solved = solved_faces()
    cubes: list[CubieState] = []
    for face in FACE_ORDER:
        perm = FACE_TURN_PERMUTATIONS[face]
        quarter = cubie_from_faces([solved[int(i)] for i in perm])
        half = quarter.multiply(quarter)
        cubes.extend([quarter, half, half.multiply(quarter)])
    return tuple(cubes)


def _generate_sticker_permutations() -> np.ndarray:
    perms = np.empty((N_MOVES, len(solved_faces())), dtype=np.int32)
    for f, face in enumerate(FACE_ORDER):
        quarter = FACE_TURN_PERMUTATIONS[face]
        perms[3 * f] = quarter
        perms[3 * f + 1] = quarter[quarter]
        perms[3 * f + 2] = perms[3 * f + 1][quarter]
    return perms


MOVE_CUBES = _generate_move_cubes()
STICKER_PERMUTATIONS = _generate_sticker_permutations()


def apply(cube: CubieState, move: int) -> CubieState:
    return cube.multiply(MOVE_CUBES[move])


def apply_sequence(cube: CubieState, moves: Iterable[int]) -> CubieState:
    for move in moves:
        cube = cube.multiply(MOVE_CUBES[move])
    return cube


def compose(moves: Iterable[int]) -> CubieState:
    """Single cubie transform equivalent to applying ``moves`` in order."""
    return apply_sequence(CubieState(), moves)


def apply_to_facelets(
    facelets: FaceletInput,
    moves: str | Sequence[str | int],
    scheme: ColorScheme = DEFAULT_SCHEME,
) -> str:
    """Turn a facelet state at sticker level, e.g. to show a scramble."""
    state = np.array(parse_facelets(facelets, scheme))
    for move in parse_moves(moves):
        state = state[STICKER_PERMUTATIONS[move]]
    return "".join(state.tolist())


def random_moves(steps: int, rng: np.random.Generator) -> list[int]:
    """Random walk of face turns with no face turned twice in a row."""
    if not isinstance(steps, int) or isinstance(steps, bool) or not 0 <= steps <= MAX_SCRAMBLE_STEPS:
        raise MalformedInputError(f"Scramble steps must be an integer in range 0..{MAX_SCRAMBLE_STEPS}")

    all_moves = np.arange(N_MOVES, dtype=np.int32)
    moves: list[int] = []
    prev_face: int | None = None
    for _ in range(steps):
        if prev_face is not None:
            candidates = all_moves[all_moves // 3 != prev_face]
        else:
            candidates = all_moves
        move = int(rng.choice(candidates))
        moves.append(move)
        prev_face = move_face(move)
    return moves
