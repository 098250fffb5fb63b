"""Two-phase Rubik's Cube solver package."""

from .engine import RubikSolver, scramble, solve
from .errors import (
    ColorCountError,
    MalformedInputError,
    RubikSolverError,
    SearchCancelledError,
    SearchTimeoutError,
    UnsolvableConfigurationError,
)
from .facelets import DEFAULT_SCHEME, ColorScheme, from_facelets, to_facelets
from .moves import format_move, format_moves, parse_move, parse_moves
from .types import Solution, SolverConfig
from .validator import is_solvable, validate

__all__ = [
    "ColorCountError",
    "ColorScheme",
    "DEFAULT_SCHEME",
    "MalformedInputError",
    "RubikSolver",
    "RubikSolverError",
    "SearchCancelledError",
    "SearchTimeoutError",
    "Solution",
    "SolverConfig",
    "UnsolvableConfigurationError",
    "format_move",
    "format_moves",
    "from_facelets",
    "is_solvable",
    "parse_move",
    "parse_moves",
    "scramble",
    "solve",
    "to_facelets",
    "validate",
]
