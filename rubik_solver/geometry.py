"""Sticker geometry for the 3x3 cube: facelet layout, face turns and piece stickers."""

from __future__ import annotations

import numpy as np

# Face order used by moves; opposite faces are 3 apart.
FACE_ORDER = ("U", "R", "F", "D", "L", "B")
# Face block order of the 54-sticker facelet string (the input grid order).
FACELET_ORDER = ("U", "L", "F", "R", "B", "D")
FACE_BLOCK = {face: i for i, face in enumerate(FACELET_ORDER)}
N_FACES = 6
STICKERS_PER_FACE = 9
STATE_SIZE = N_FACES * STICKERS_PER_FACE
CENTER_OFFSET = 4

# Face specification from outside view.
FACE_SPECS = {
    "U": {"normal": (0, 1, 0), "right": (1, 0, 0), "up": (0, 0, -1)},
    "R": {"normal": (1, 0, 0), "right": (0, 0, -1), "up": (0, 1, 0)},
    "F": {"normal": (0, 0, 1), "right": (1, 0, 0), "up": (0, 1, 0)}, # frontal face
    "D": {"normal": (0, -1, 0), "right": (1, 0, 0), "up": (0, 0, 1)},
    "L": {"normal": (-1, 0, 0), "right": (0, 0, 1), "up": (0, 1, 0)},
    "B": {"normal": (0, 0, -1), "right": (-1, 0, 0), "up": (0, 1, 0)},
}

# Clockwise turn from face viewpoint expressed as world-axis rotation angle.
CLOCKWISE_ANGLE_DEG = {
    "U": -90,
    "D": +90,
    "L": +90,
    "R": -90,
    "F": -90,
    "B": +90,
}

FACE_AXIS_LAYER = {
    "U": ("y", +1),
    "D": ("y", -1),
    "L": ("x", -1),
    "R": ("x", +1),
    "F": ("z", +1),
    "B": ("z", -1),
}

# Corner and edge slots. Corner letters run clockwise starting at the U/D
# sticker; the first edge letter is the reference sticker for edge flips.
CORNER_NAMES = ("URF", "UFL", "ULB", "UBR", "DFR", "DLF", "DBL", "DRB")
EDGE_NAMES = ("UR", "UF", "UL", "UB", "DR", "DF", "DL", "DB", "FR", "FL", "BL", "BR")


def facelet_index(face: str, position: int) -> int:
    """Return the flat index of sticker ``position`` (0..8) on ``face``."""
    return FACE_BLOCK[face] * STICKERS_PER_FACE + position


def facelet_label(idx: int) -> str:
    """Human readable name of a flat sticker index, e.g. ``F[3]``."""
    return f"{FACELET_ORDER[idx // STICKERS_PER_FACE]}[{idx % STICKERS_PER_FACE}]"


def solved_faces() -> tuple[str, ...]:
    """Face letter of every sticker on the solved cube, in facelet order."""
    return tuple(FACELET_ORDER[i // STICKERS_PER_FACE] for i in range(STATE_SIZE))


def _rotation_matrix(axis: str, angle_deg: int) -> np.ndarray:
    """Return integer rotation matrix for ±90 around x/y/z axes."""
    if axis == "x" and angle_deg == +90:
        return np.array([[1, 0, 0], [0, 0, -1], [0, 1, 0]], dtype=np.int8)
    if axis == "x" and angle_deg == -90:
        return np.array([[1, 0, 0], [0, 0, 1], [0, -1, 0]], dtype=np.int8)
    if axis == "y" and angle_deg == +90:
        return np.array([[0, 0, 1], [0, 1, 0], [-1, 0, 0]], dtype=np.int8)
    if axis == "y" and angle_deg == -90:
        return np.array([[0, 0, -1], [0, 1, 0], [1, 0, 0]], dtype=np.int8)
    if axis == "z" and angle_deg == +90:
        return np.array([[0, -1, 0], [1, 0, 0], [0, 0, 1]], dtype=np.int8)
    if axis == "z" and angle_deg == -90:
        return np.array([[0, 1, 0], [-1, 0, 0], [0, 0, 1]], dtype=np.int8)
    raise ValueError(f"Unsupported rotation: axis={axis}, angle={angle_deg}")


def _face_vectors(face: str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    spec = FACE_SPECS[face]
    n = np.array(spec["normal"], dtype=np.int8)
    r = np.array(spec["right"], dtype=np.int8)
    up = np.array(spec["up"], dtype=np.int8)
    return n, r, up


def _build_sticker_model() -> tuple[list[dict[str, np.ndarray]], dict[tuple[int, int, int], str]]:
    stickers: list[dict[str, np.ndarray]] = []
    normal_to_face: dict[tuple[int, int, int], str] = {}

    for face in FACELET_ORDER:
        n, r, up = _face_vectors(face)
        normal_to_face[tuple(int(v) for v in n)] = face

        for row in range(3):
            for col in range(3):
                col_off = col - 1
                row_off = 1 - row
                center = 2 * n + col_off * r + row_off * up
                cubie = center - n
                idx = facelet_index(face, row * 3 + col)
                stickers.append(
                    {
                        "idx": idx,
                        "face": face,
                        "row": row,
                        "col": col,
                        "center": center,
                        "normal": n,
                        "cubie": cubie,
                    }
                )

    stickers.sort(key=lambda s: s["idx"])
    return stickers, normal_to_face


_STICKERS, _NORMAL_TO_FACE = _build_sticker_model()
_STICKER_AT = {
    (s["face"], tuple(int(v) for v in s["cubie"])): int(s["idx"]) for s in _STICKERS
}


def _face_row_col_from_center(face: str, center: np.ndarray) -> tuple[int, int]:
    n, r, up = _face_vectors(face)

    offset = center - 2 * n
    col_off = int(np.dot(offset, r))
    row_off = int(np.dot(offset, up))

    if col_off not in (-1, 0, 1) or row_off not in (-1, 0, 1):
        raise ValueError(f"Invalid center for face {face}: {center}")

    return 1 - row_off, col_off + 1


def _generate_face_turn_permutation(face: str) -> np.ndarray:
    """Sticker permutation of a clockwise quarter turn: ``new = state[perm]``."""
    axis, layer_sign = FACE_AXIS_LAYER[face]
    rot = _rotation_matrix(axis, CLOCKWISE_ANGLE_DEG[face])

    axis_idx = {"x": 0, "y": 1, "z": 2}[axis]
    perm = np.empty(STATE_SIZE, dtype=np.int32)

    for sticker in _STICKERS:
        old_idx = int(sticker["idx"])
        center = sticker["center"]
        normal = sticker["normal"]

        if int(sticker["cubie"][axis_idx]) == layer_sign:
            new_center = rot @ center
            new_normal = rot @ normal
        else:
            new_center = center
            new_normal = normal

        face_new = _NORMAL_TO_FACE[tuple(int(v) for v in new_normal)]
        row_new, col_new = _face_row_col_from_center(face_new, new_center)
        perm[facelet_index(face_new, row_new * 3 + col_new)] = old_idx

    return perm


def _piece_facelets(name: str) -> tuple[int, ...]:
    cubie = tuple(sum(FACE_SPECS[face]["normal"][k] for face in name) for k in range(3))
    return tuple(_STICKER_AT[(face, cubie)] for face in name)


def _check_corner_handedness() -> None:
    # Orientation arithmetic assumes every corner lists its faces clockwise.
    for name in CORNER_NAMES:
        mat = np.array([FACE_SPECS[face]["normal"] for face in name], dtype=np.float64)
        if int(round(np.linalg.det(mat))) != -1:
            raise RuntimeError(f"Corner {name} is not listed clockwise")


_check_corner_handedness()

FACE_TURN_PERMUTATIONS = {face: _generate_face_turn_permutation(face) for face in FACE_ORDER}
CORNER_FACELETS = tuple(_piece_facelets(name) for name in CORNER_NAMES)
EDGE_FACELETS = tuple(_piece_facelets(name) for name in EDGE_NAMES)
