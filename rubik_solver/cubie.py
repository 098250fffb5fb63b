"""Cubie-level cube state: piece permutations and orientations."""

from __future__ import annotations

from dataclasses import dataclass

N_CORNERS = 8
N_EDGES = 12


def permutation_parity(perm: tuple[int, ...] | list[int]) -> int:
    """Return 0 for an even permutation, 1 for an odd one."""
    inversions = 0
    for i in range(len(perm)):
        for j in range(i + 1, len(perm)):
            if perm[j] < perm[i]:
                inversions += 1
    return inversions % 2


@dataclass(frozen=True)
class CubieState:
    """Corner/edge slots in the order of ``geometry.CORNER_NAMES`` / ``EDGE_NAMES``.

    ``cp[i]`` is the corner sitting in slot ``i`` and ``co[i]`` its clockwise
    twist; ``ep``/``eo`` are the same for edges.
    """

    cp: tuple[int, ...] = tuple(range(N_CORNERS))
    co: tuple[int, ...] = (0,) * N_CORNERS
    ep: tuple[int, ...] = tuple(range(N_EDGES))
    eo: tuple[int, ...] = (0,) * N_EDGES

    @classmethod
    def solved(cls) -> CubieState:
        return cls()

    def multiply(self, other: CubieState) -> CubieState:
        """Return ``self`` followed by ``other``."""
        cp = tuple(self.cp[j] for j in other.cp)
        co = tuple((self.co[j] + t) % 3 for j, t in zip(other.cp, other.co))
        ep = tuple(self.ep[j] for j in other.ep)
        eo = tuple((self.eo[j] + f) % 2 for j, f in zip(other.ep, other.eo))
        return CubieState(cp=cp, co=co, ep=ep, eo=eo)

    def inverse(self) -> CubieState:
        cp = [0] * N_CORNERS
        for i, j in enumerate(self.cp):
            cp[j] = i
        ep = [0] * N_EDGES
        for i, j in enumerate(self.ep):
            ep[j] = i
        co = tuple((-self.co[j]) % 3 for j in cp)
        eo = tuple(self.eo[j] for j in ep)
        return CubieState(cp=tuple(cp), co=co, ep=tuple(ep), eo=eo)

    def is_solved(self) -> bool:
        return self == CubieState()

    @property
    def corner_parity(self) -> int:
        return permutation_parity(self.cp)

    @property
    def edge_parity(self) -> int:
        return permutation_parity(self.ep)

    def in_phase2_group(self) -> bool:
        """True when orientations are solved and slice edges are in the slice."""
        return (
            not any(self.co)
            and not any(self.eo)
            and all(edge >= 8 for edge in self.ep[8:])
        )
