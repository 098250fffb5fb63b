"""Facelet model: parsing sticker colors and converting to/from cubie state."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import cached_property

from .cubie import N_CORNERS, N_EDGES, CubieState
from .errors import MalformedInputError, UnsolvableConfigurationError
from .geometry import (
    CENTER_OFFSET,
    CORNER_FACELETS,
    CORNER_NAMES,
    EDGE_FACELETS,
    EDGE_NAMES,
    FACELET_ORDER,
    STATE_SIZE,
    STICKERS_PER_FACE,
    facelet_label,
)

FaceletInput = str | Sequence[str] | Mapping[str, Sequence[str]]


@dataclass(frozen=True)
class ColorScheme:
    """Binding of each face to the single-letter color of its fixed center."""

    U: str = "W"
    L: str = "O"
    F: str = "G"
    R: str = "R"
    B: str = "B"
    D: str = "Y"

    def __post_init__(self):
        colors = [self.color_of(face) for face in FACELET_ORDER]
        if any(not isinstance(c, str) or len(c) != 1 or not c.isupper() for c in colors):
            raise ValueError("Scheme colors must be single uppercase letters")
        if len(set(colors)) != len(colors):
            raise ValueError(f"Scheme colors must be distinct, got {colors}")

    def color_of(self, face: str) -> str:
        return getattr(self, face)

    @cached_property
    def face_by_color(self) -> dict[str, str]:
        return {self.color_of(face): face for face in FACELET_ORDER}

    @property
    def colors(self) -> tuple[str, ...]:
        return tuple(self.color_of(face) for face in FACELET_ORDER)

    def solved_facelets(self) -> str:
        return "".join(self.color_of(face) * STICKERS_PER_FACE for face in FACELET_ORDER)


DEFAULT_SCHEME = ColorScheme()

_CORNER_BY_FACES = {name: i for i, name in enumerate(CORNER_NAMES)}
_EDGE_BY_FACES: dict[tuple[str, str], tuple[int, int]] = {}
for _i, _name in enumerate(EDGE_NAMES):
    _EDGE_BY_FACES[(_name[0], _name[1])] = (_i, 0)
    _EDGE_BY_FACES[(_name[1], _name[0])] = (_i, 1)


def _raw_stickers(value: FaceletInput) -> list:
    if isinstance(value, str):
        stickers = list("".join(value.split()))
        if len(stickers) != STATE_SIZE:
            raise MalformedInputError(f"Facelet string must have {STATE_SIZE} stickers, got {len(stickers)}")
        return stickers

    if isinstance(value, Mapping):
        unknown = sorted(set(value) - set(FACELET_ORDER))
        if unknown:
            raise MalformedInputError(f"Unknown faces {unknown}; expected {list(FACELET_ORDER)}")
        stickers = []
        for face in FACELET_ORDER:
            if face not in value:
                raise MalformedInputError(f"Missing face {face}")
            face_values = value[face]
            if isinstance(face_values, str):
                face_values = "".join(face_values.split())
            face_values = list(face_values)
            if len(face_values) != STICKERS_PER_FACE:
                raise MalformedInputError(
                    f"Face {face} must have {STICKERS_PER_FACE} colors, got {len(face_values)}"
                )
            stickers.extend(face_values)
        return stickers

    if isinstance(value, Sequence):
        stickers = list(value)
        if len(stickers) != STATE_SIZE:
            raise MalformedInputError(f"Facelets must have {STATE_SIZE} stickers, got {len(stickers)}")
        return stickers

    raise MalformedInputError("Facelets must be a string, a sequence of colors or a face mapping")


def parse_facelets(value: FaceletInput, scheme: ColorScheme = DEFAULT_SCHEME) -> tuple[str, ...]:
    """Validate the shape of facelet input and return 54 uppercase color letters."""
    colors = []
    allowed = scheme.face_by_color
    for idx, sticker in enumerate(_raw_stickers(value)):
        if not isinstance(sticker, str) or len(sticker) != 1:
            raise MalformedInputError(f"Facelet {facelet_label(idx)} must be a single letter, got {sticker!r}")
        color = sticker.upper()
        if color not in allowed:
            raise MalformedInputError(
                f"Invalid color '{sticker}' at {facelet_label(idx)}. "
                f"Please use {', '.join(scheme.colors)}."
            )
        colors.append(color)

    for block, face in enumerate(FACELET_ORDER):
        idx = block * STICKERS_PER_FACE + CENTER_OFFSET
        expected = scheme.color_of(face)
        if colors[idx] != expected:
            raise MalformedInputError(
                f"Center {facelet_label(idx)} is fixed to {expected}, got {colors[idx]}"
            )
    return tuple(colors)


def cubie_from_faces(faces: Sequence[str]) -> CubieState:
    """Identify pieces from per-sticker face letters (``U``, ``R``, ...)."""
    cp: list[int] = []
    co: list[int] = []
    for slot, stickers in enumerate(CORNER_FACELETS):
        seen = "".join(faces[i] for i in stickers)
        for ori in range(3):
            if seen[ori] in ("U", "D"):
                break
        else:
            raise UnsolvableConfigurationError(
                f"Corner at {CORNER_NAMES[slot]} has faces {seen} and no U/D sticker",
                invariant="corner_pieces",
            )
        piece = _CORNER_BY_FACES.get(seen[ori:] + seen[:ori])
        if piece is None:
            raise UnsolvableConfigurationError(
                f"Corner at {CORNER_NAMES[slot]} has faces {seen} which match no corner piece",
                invariant="corner_pieces",
            )
        cp.append(piece)
        co.append(ori)

    ep: list[int] = []
    eo: list[int] = []
    for slot, (a, b) in enumerate(EDGE_FACELETS):
        found = _EDGE_BY_FACES.get((faces[a], faces[b]))
        if found is None:
            raise UnsolvableConfigurationError(
                f"Edge at {EDGE_NAMES[slot]} has faces {faces[a]}{faces[b]} which match no edge piece",
                invariant="edge_pieces",
            )
        ep.append(found[0])
        eo.append(found[1])

    for names, perm, invariant in ((CORNER_NAMES, cp, "corner_pieces"), (EDGE_NAMES, ep, "edge_pieces")):
        if len(set(perm)) != len(perm):
            dup = next(p for p in perm if perm.count(p) > 1)
            raise UnsolvableConfigurationError(
                f"Piece {names[dup]} appears more than once", invariant=invariant
            )

    return CubieState(cp=tuple(cp), co=tuple(co), ep=tuple(ep), eo=tuple(eo))


def faces_from_cubie(cube: CubieState) -> list[str]:
    faces = [FACELET_ORDER[i // STICKERS_PER_FACE] for i in range(STATE_SIZE)]
    for slot in range(N_CORNERS):
        name = CORNER_NAMES[cube.cp[slot]]
        ori = cube.co[slot]
        for n in range(3):
            faces[CORNER_FACELETS[slot][(n + ori) % 3]] = name[n]
    for slot in range(N_EDGES):
        name = EDGE_NAMES[cube.ep[slot]]
        flip = cube.eo[slot]
        for n in range(2):
            faces[EDGE_FACELETS[slot][(n + flip) % 2]] = name[n]
    return faces


def from_facelets(value: FaceletInput, scheme: ColorScheme = DEFAULT_SCHEME) -> CubieState:
    colors = parse_facelets(value, scheme)
    face_by_color = scheme.face_by_color
    return cubie_from_faces([face_by_color[c] for c in colors])


def to_facelets(cube: CubieState, scheme: ColorScheme = DEFAULT_SCHEME) -> str:
    return "".join(scheme.color_of(face) for face in faces_from_cubie(cube))


def to_faces(facelets: FaceletInput, scheme: ColorScheme = DEFAULT_SCHEME) -> dict[str, list[str]]:
    """Split facelets into the per-face mapping used by the input grid."""
    colors = parse_facelets(facelets, scheme)
    return {
        face: list(colors[block * STICKERS_PER_FACE : (block + 1) * STICKERS_PER_FACE])
        for block, face in enumerate(FACELET_ORDER)
    }
