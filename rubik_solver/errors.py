"""Error taxonomy shared by the facelet model, validator and search."""

from __future__ import annotations

from typing import Any


class RubikSolverError(Exception):
    """Base class; ``kind`` is the tag reported to external callers."""

    kind = "error"

    def to_payload(self) -> dict[str, Any]:
        return {"error": str(self), "kind": self.kind}


class MalformedInputError(RubikSolverError, ValueError):
    """Raised when facelet or move input is not well formed."""

    kind = "malformed_input"


class UnsolvableConfigurationError(RubikSolverError, ValueError):
    """Raised when a well-formed cube breaks a solvability invariant."""

    kind = "unsolvable_configuration"

    def __init__(self, message: str, invariant: str = "unknown"):
        super().__init__(message)
        self.invariant = invariant

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["invariant"] = self.invariant
        return payload


class ColorCountError(MalformedInputError, UnsolvableConfigurationError):
    """Raised when a color does not appear exactly nine times."""

    kind = MalformedInputError.kind

    def __init__(self, message: str):
        super().__init__(message, invariant="color_counts")


class SearchTimeoutError(RubikSolverError, RuntimeError):
    """Raised when the node or time budget runs out before any solution."""

    kind = "search_timeout"

    def __init__(self, message: str, nodes: int = 0, elapsed_sec: float = 0.0):
        super().__init__(message)
        self.nodes = nodes
        self.elapsed_sec = elapsed_sec


class SearchCancelledError(SearchTimeoutError):
    kind = "search_cancelled"


class SolutionVerificationError(RubikSolverError, RuntimeError):
    """Raised when a found move sequence does not reproduce the solved cube."""

    kind = "internal_error"
