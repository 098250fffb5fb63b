"""Solvability checks run before any search work."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from .cubie import N_CORNERS, N_EDGES, CubieState
from .errors import ColorCountError, UnsolvableConfigurationError
from .facelets import DEFAULT_SCHEME, ColorScheme, FaceletInput, cubie_from_faces, parse_facelets
from .geometry import STICKERS_PER_FACE


def check_color_counts(colors: Sequence[str], scheme: ColorScheme = DEFAULT_SCHEME) -> None:
    counts = Counter(colors)
    for color in scheme.colors:
        if counts[color] != STICKERS_PER_FACE:
            raise ColorCountError(
                f"Invalid configuration. Each color must appear exactly {STICKERS_PER_FACE} times. "
                f"Found {counts[color]} of {color}."
            )


def check_solvable(cube: CubieState) -> None:
    """Raise ``UnsolvableConfigurationError`` naming the first broken invariant."""
    if sorted(cube.cp) != list(range(N_CORNERS)) or len(cube.co) != N_CORNERS:
        raise UnsolvableConfigurationError("Corner pieces do not form a permutation", invariant="corner_pieces")
    if sorted(cube.ep) != list(range(N_EDGES)) or len(cube.eo) != N_EDGES:
        raise UnsolvableConfigurationError("Edge pieces do not form a permutation", invariant="edge_pieces")
    if any(t not in (0, 1, 2) for t in cube.co) or any(f not in (0, 1) for f in cube.eo):
        raise UnsolvableConfigurationError("Orientation values out of range", invariant="orientation_range")

    if cube.corner_parity != cube.edge_parity:
        raise UnsolvableConfigurationError(
            "Corner and edge permutation parities differ (two pieces are swapped)",
            invariant="permutation_parity",
        )
    if sum(cube.co) % 3 != 0:
        raise UnsolvableConfigurationError(
            f"Corner twists sum to {sum(cube.co)}, not a multiple of 3 (a corner is twisted)",
            invariant="corner_orientation",
        )
    if sum(cube.eo) % 2 != 0:
        raise UnsolvableConfigurationError(
            "Edge flips sum to an odd number (an edge is flipped)",
            invariant="edge_orientation",
        )


def validate(value: FaceletInput, scheme: ColorScheme = DEFAULT_SCHEME) -> CubieState:
    """Check facelets end to end and return the cubie state ready for search."""
    colors = parse_facelets(value, scheme)
    check_color_counts(colors, scheme)
    face_by_color = scheme.face_by_color
    cube = cubie_from_faces([face_by_color[c] for c in colors])
    check_solvable(cube)
    return cube


def is_solvable(value: FaceletInput, scheme: ColorScheme = DEFAULT_SCHEME) -> bool:
    try:
        validate(value, scheme)
    except ValueError:
        return False
    return True
