import tempfile
import unittest

import numpy as np

from rubik_solver import coords
from rubik_solver.cubie import CubieState
from rubik_solver.moves import compose, random_moves
from rubik_solver.tables import ARRAY_SHAPES, TableCache, bfs_distances, get_tables, table_fingerprint
from rubik_solver.types import SolverConfig


class TestPruningTables(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.tables = get_tables(SolverConfig())

    def test_shapes_and_dtype(self):
        for name, arr in self.tables.arrays().items():
            self.assertEqual(arr.shape, ARRAY_SHAPES[name], msg=name)
        for name in ("twist_slice_prune", "flip_slice_prune", "corner_slice_prune", "edge_slice_prune"):
            self.assertEqual(getattr(self.tables, name).dtype, np.uint8)

    def test_tables_are_read_only(self):
        for name, arr in self.tables.arrays().items():
            self.assertFalse(arr.flags.writeable, msg=name)
            with self.assertRaises(ValueError):
                arr[0] = 0

    def test_solved_cube_has_zero_heuristic(self):
        twist, flip, slice_ = coords.phase1_coords(CubieState())
        self.assertEqual(self.tables.phase1_heuristic(twist, flip, slice_), 0)
        self.assertEqual(self.tables.phase2_heuristic(0, 0, 0), 0)

    def test_heuristic_is_a_lower_bound_on_scramble_length(self):
        rng = np.random.default_rng(2)
        for steps in range(1, 8):
            cube = compose(random_moves(steps, rng))
            self.assertLessEqual(self.tables.phase1_heuristic(*coords.phase1_coords(cube)), steps)

    def test_shared_per_process(self):
        self.assertIs(get_tables(SolverConfig()), self.tables)

    def test_depth_cap_saturates(self):
        capped = bfs_distances(self.tables.twist_move, self.tables.slice_move, coords.SLICE_SOLVED, 3)
        expected = np.minimum(self.tables.twist_slice_prune, 3)
        np.testing.assert_array_equal(capped, expected)

    def test_bfs_is_deterministic(self):
        a = bfs_distances(self.tables.flip_move, self.tables.slice_move, coords.SLICE_SOLVED, 20)
        np.testing.assert_array_equal(a, self.tables.flip_slice_prune)


class TestTableCache(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.tables = get_tables(SolverConfig())

    def test_save_then_load(self):
        with tempfile.TemporaryDirectory() as td:
            cache = TableCache(td)
            self.assertIsNone(cache.load(self.tables.depth_cap))
            path = cache.save(self.tables)
            self.assertTrue(path.exists())
            self.assertEqual(cache.cached_caps(), [self.tables.depth_cap])

            loaded = cache.load(self.tables.depth_cap)
            self.assertEqual(loaded.fingerprint, self.tables.fingerprint)
            for name, arr in self.tables.arrays().items():
                np.testing.assert_array_equal(getattr(loaded, name), arr)
                self.assertFalse(getattr(loaded, name).flags.writeable)

    def test_corrupted_file_is_rejected(self):
        with tempfile.TemporaryDirectory() as td:
            cache = TableCache(td)
            arrays = self.tables.arrays()
            arrays.pop("edge_slice_prune")
            np.savez_compressed(
                cache.path_for(self.tables.depth_cap),
                fingerprint=np.array(self.tables.fingerprint),
                **arrays,
            )
            with self.assertRaises(ValueError):
                cache.load(self.tables.depth_cap)

    def test_stale_fingerprint_is_rejected(self):
        with tempfile.TemporaryDirectory() as td:
            cache = TableCache(td)
            np.savez_compressed(cache.path_for(5), fingerprint=np.array(table_fingerprint(6)))
            with self.assertRaises(ValueError):
                cache.load(5)

    def test_fingerprint_depends_on_cap(self):
        self.assertNotEqual(table_fingerprint(20), table_fingerprint(12))


if __name__ == "__main__":
    unittest.main()
