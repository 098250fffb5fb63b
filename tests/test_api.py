import json
import unittest
from urllib import error, request

from rubik_solver.client import SolverAPIClient, SolverAPIError
from rubik_solver.engine import RubikSolver
from rubik_solver.facelets import DEFAULT_SCHEME
from rubik_solver.geometry import EDGE_FACELETS
from rubik_solver.moves import apply_to_facelets
from rubik_solver.server import RubikHTTPServer
from rubik_solver.tables import get_tables
from rubik_solver.types import SolverConfig

SOLVED = DEFAULT_SCHEME.solved_facelets()


def http_json(method: str, url: str, payload: dict | None = None):
    data = None
    headers = {}
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url=url, method=method, data=data, headers=headers)
    with request.urlopen(req, timeout=30.0) as resp:
        body = resp.read().decode("utf-8")
        return resp.status, json.loads(body)


class TestAPI(unittest.TestCase):
    def setUp(self):
        config = SolverConfig(timeout_sec=None)
        self.solver = RubikSolver(config=config, tables=get_tables(config))
        self.server = RubikHTTPServer(solver=self.solver, host="127.0.0.1", port=0)
        self.thread = self.server.start_background()
        self.base = f"http://{self.server.host}:{self.server.port}"
        self.client = SolverAPIClient(host=self.server.host, port=self.server.port, timeout=30.0)

    def tearDown(self):
        self.server.shutdown()
        self.thread.join(timeout=1.0)

    def test_health(self):
        status, out = http_json("GET", f"{self.base}/health")
        self.assertEqual(status, 200)
        self.assertTrue(out["ready"])
        self.assertEqual(out["colors"]["W"], "U")
        self.assertEqual(out["max_length"], 30)

    def test_unknown_path_returns_404(self):
        with self.assertRaises(error.HTTPError) as ctx:
            http_json("GET", f"{self.base}/state")
        self.assertEqual(ctx.exception.code, 404)

    def test_solve_returns_moves_that_solve(self):
        facelets = apply_to_facelets(SOLVED, "R U2 D' B L2")
        out = self.client.solve(facelets)
        self.assertEqual(out["length"], len(out["moves"]))
        self.assertEqual(apply_to_facelets(facelets, out["moves"]), SOLVED)
        self.assertTrue(self.client.health()["tables_loaded"])

    def test_validate(self):
        out = self.client.validate(SOLVED)
        self.assertTrue(out["valid"])
        self.assertEqual(out["faces"]["D"], ["Y"] * 9)

    def test_unsolvable_cube_returns_400_with_invariant(self):
        a, b = EDGE_FACELETS[3]
        stickers = list(SOLVED)
        stickers[a], stickers[b] = stickers[b], stickers[a]
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.solve("".join(stickers))
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.kind, "unsolvable_configuration")
        self.assertEqual(ctx.exception.payload["invariant"], "edge_orientation")

    def test_malformed_input_returns_400(self):
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.validate("WWW")
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.kind, "malformed_input")

        req = request.Request(url=f"{self.base}/solve", method="POST", data=b"{not json")
        with self.assertRaises(error.HTTPError) as ctx2:
            request.urlopen(req, timeout=2.0)
        self.assertEqual(ctx2.exception.code, 400)

    def test_missing_field_returns_400(self):
        with self.assertRaises(error.HTTPError) as ctx:
            http_json("POST", f"{self.base}/solve", {})
        self.assertEqual(ctx.exception.code, 400)

    def test_search_budget_returns_503(self):
        facelets = apply_to_facelets(SOLVED, "R U2 D' B L2 F U' R2")
        self.solver.config.max_nodes = 1
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.solve(facelets)
        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(ctx.exception.kind, "search_timeout")

    def test_scramble_is_reproducible(self):
        a = self.client.scramble(12, seed=7)
        b = self.client.scramble(12, seed=7)
        self.assertEqual(len(a["moves"]), 12)
        self.assertEqual(a["facelets"], b["facelets"])
        self.assertNotEqual(a["facelets"], SOLVED)

    def test_apply(self):
        out = self.client.apply(SOLVED, "R U R' U'")
        self.assertEqual(out["moves"], ["R", "U", "R'", "U'"])
        self.assertFalse(out["solved"])
        back = self.client.apply(out["facelets"], ["U", "R", "U'", "R'"])
        self.assertTrue(back["solved"])
        self.assertEqual(back["facelets"], SOLVED)

    def test_scramble_rejects_negative_seed(self):
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.scramble(5, seed=-1)
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.kind, "malformed_input")
        self.assertEqual(len(self.client.scramble(5, seed=1)["moves"]), 5)

    def test_scramble_rejects_huge_step_count(self):
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.scramble(10**9)
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.kind, "malformed_input")

    def test_apply_rejects_unknown_move(self):
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.apply(SOLVED, "R X")
        self.assertEqual(ctx.exception.status, 400)


if __name__ == "__main__":
    unittest.main()
