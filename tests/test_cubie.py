import unittest

import numpy as np

from rubik_solver.cubie import CubieState, permutation_parity
from rubik_solver.moves import compose, parse_moves, random_moves


class TestCubieState(unittest.TestCase):
    def test_solved(self):
        self.assertTrue(CubieState.solved().is_solved())
        self.assertTrue(CubieState().in_phase2_group())

    def test_parity(self):
        self.assertEqual(permutation_parity((0, 1, 2, 3)), 0)
        self.assertEqual(permutation_parity((1, 0, 2, 3)), 1)
        self.assertEqual(permutation_parity((1, 2, 0, 3)), 0)

    def test_quarter_turn_is_odd_on_both_sets(self):
        cube = compose(parse_moves("R"))
        self.assertEqual(cube.corner_parity, 1)
        self.assertEqual(cube.edge_parity, 1)

    def test_inverse(self):
        rng = np.random.default_rng(12)
        for _ in range(10):
            cube = compose(random_moves(20, rng))
            self.assertTrue(cube.multiply(cube.inverse()).is_solved())
            self.assertTrue(cube.inverse().multiply(cube).is_solved())

    def test_multiply_is_associative(self):
        rng = np.random.default_rng(13)
        a, b, c = (compose(random_moves(10, rng)) for _ in range(3))
        self.assertEqual(a.multiply(b).multiply(c), a.multiply(b.multiply(c)))

    def test_inverse_of_sequence_is_reversed_inverses(self):
        self.assertEqual(compose(parse_moves("R U F")).inverse(), compose(parse_moves("F' U' R'")))


if __name__ == "__main__":
    unittest.main()
