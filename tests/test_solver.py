import threading
import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from rubik_solver import RubikSolver, SolverConfig, scramble, solve
from rubik_solver.errors import (
    MalformedInputError,
    SearchCancelledError,
    SearchTimeoutError,
    UnsolvableConfigurationError,
)
from rubik_solver.facelets import DEFAULT_SCHEME
from rubik_solver.geometry import EDGE_FACELETS
from rubik_solver.moves import apply_to_facelets, parse_moves, random_moves
from rubik_solver.tables import get_tables

SOLVED = DEFAULT_SCHEME.solved_facelets()
DEEP_SCRAMBLE = "R U F' L2 D B' R2 U' F2 D' L B2 R' U2 F D2 L' B U R2"


def _solver(**overrides) -> RubikSolver:
    config = SolverConfig(timeout_sec=None, **overrides)
    return RubikSolver(config=config, tables=get_tables(config))


class TestSolve(unittest.TestCase):
    def assertSolves(self, facelets: str, solution):
        self.assertEqual(apply_to_facelets(facelets, list(solution.moves)), SOLVED)

    def test_solved_cube_gives_empty_solution(self):
        solution = _solver().solve(SOLVED)
        self.assertEqual(solution.moves, ())
        self.assertEqual(len(solution), 0)
        self.assertEqual(str(solution), "")

    def test_short_scramble(self):
        facelets = apply_to_facelets(SOLVED, "R U2 D' B L2")
        solution = _solver().solve(facelets)
        self.assertGreater(len(solution), 0)
        self.assertLessEqual(len(solution), 30)
        self.assertEqual(solution.phase1_length + solution.phase2_length, len(solution))
        self.assertSolves(facelets, solution)

    def test_single_move_is_solved_by_its_inverse(self):
        facelets = apply_to_facelets(SOLVED, "F")
        solution = _solver().solve(facelets)
        self.assertEqual(solution.moves, ("F'",))

    def test_random_scrambles(self):
        solver = _solver(phase1_retries=0)
        rng = np.random.default_rng(2024)
        for _ in range(3):
            facelets = apply_to_facelets(SOLVED, random_moves(25, rng))
            solution = solver.solve(facelets)
            self.assertLessEqual(len(solution), 30)
            self.assertSolves(facelets, solution)

    def test_retries_never_make_solutions_longer(self):
        facelets = apply_to_facelets(SOLVED, "R U F' L2 D B' R2 U' F2 D'")
        first = _solver(phase1_retries=0).solve(facelets)
        improved = _solver(phase1_retries=6).solve(facelets)
        self.assertLessEqual(len(improved), len(first))
        self.assertSolves(facelets, improved)

    def test_no_two_consecutive_moves_on_one_face(self):
        facelets = apply_to_facelets(SOLVED, "L2 B D' R F2 U' B2 L")
        moves = parse_moves(list(_solver().solve(facelets).moves))
        for prev, nxt in zip(moves[:-1], moves[1:]):
            self.assertNotEqual(prev // 3, nxt // 3)

    def test_invalid_input_raises_before_search(self):
        with self.assertRaises(MalformedInputError):
            _solver().solve("W" * 53)
        a, b = EDGE_FACELETS[0]
        stickers = list(SOLVED)
        stickers[a], stickers[b] = stickers[b], stickers[a]
        with self.assertRaises(UnsolvableConfigurationError):
            _solver().solve("".join(stickers))


class TestSearchBudget(unittest.TestCase):
    def test_preset_cancel_event_cancels(self):
        cancel = threading.Event()
        cancel.set()
        facelets = apply_to_facelets(SOLVED, "R U2 D' B L2 F U' R2")
        with self.assertRaises(SearchCancelledError) as ctx:
            _solver().solve(facelets, cancel_event=cancel)
        self.assertIsInstance(ctx.exception, SearchTimeoutError)
        self.assertEqual(ctx.exception.to_payload()["kind"], "search_cancelled")

    def test_node_budget(self):
        facelets = apply_to_facelets(SOLVED, "R U2 D' B L2 F U' R2")
        with self.assertRaises(SearchTimeoutError):
            _solver(max_nodes=1).solve(facelets)

    def test_max_length_too_small(self):
        facelets = apply_to_facelets(SOLVED, "R U2 D' B L2 F U' R2")
        with self.assertRaises(SearchTimeoutError):
            _solver(max_length=2).solve(facelets)

    def test_budget_after_first_solution_returns_best(self):
        facelets = apply_to_facelets(SOLVED, DEEP_SCRAMBLE)
        first = _solver(phase1_retries=0).solve(facelets)
        limited = _solver(phase1_retries=1000, max_nodes=first.nodes + 50).solve(facelets)
        self.assertLessEqual(len(limited), len(first))
        self.assertEqual(apply_to_facelets(facelets, list(limited.moves)), SOLVED)

    def test_target_length_stops_retries(self):
        facelets = apply_to_facelets(SOLVED, DEEP_SCRAMBLE)
        first = _solver(phase1_retries=0).solve(facelets)
        targeted = _solver(phase1_retries=1000, target_length=30).solve(facelets)
        self.assertEqual(targeted.moves, first.moves)
        self.assertEqual(targeted.nodes, first.nodes)

    def test_deadline_raises_without_solution(self):
        facelets = apply_to_facelets(SOLVED, DEEP_SCRAMBLE)
        solver = RubikSolver(config=SolverConfig(timeout_sec=1e-6, max_nodes=None), tables=get_tables())
        with self.assertRaises(SearchTimeoutError) as ctx:
            solver.solve(facelets)
        self.assertNotIsInstance(ctx.exception, SearchCancelledError)
        self.assertEqual(ctx.exception.to_payload()["kind"], "search_timeout")

    def test_per_call_timeout_overrides_config(self):
        solver = _solver()
        facelets = apply_to_facelets(SOLVED, "R U")
        solution = solver.solve(facelets, timeout_sec=60.0)
        self.assertEqual(apply_to_facelets(facelets, list(solution.moves)), SOLVED)
        self.assertIsNone(solver.config.timeout_sec)


class TestConcurrency(unittest.TestCase):
    def test_concurrent_solves_share_tables(self):
        solver = _solver(phase1_retries=1)
        rng = np.random.default_rng(7)
        cubes = [apply_to_facelets(SOLVED, random_moves(12, rng)) for _ in range(6)]
        with ThreadPoolExecutor(max_workers=3) as pool:
            solutions = list(pool.map(solver.solve, cubes))
        for facelets, solution in zip(cubes, solutions):
            self.assertEqual(apply_to_facelets(facelets, list(solution.moves)), SOLVED)


class TestModuleApi(unittest.TestCase):
    def test_scramble_then_solve(self):
        facelets, moves = scramble(15, seed=3)
        self.assertEqual(len(moves), 15)
        again, _ = scramble(15, seed=3)
        self.assertEqual(facelets, again)
        solution = solve(facelets)
        self.assertEqual(apply_to_facelets(facelets, list(solution.moves)), SOLVED)


if __name__ == "__main__":
    unittest.main()
