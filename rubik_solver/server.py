"""HTTP API server exposing validate/solve/scramble to a UI."""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .engine import RubikSolver
from .errors import MalformedInputError, RubikSolverError, SearchTimeoutError
from .facelets import to_faces
from .moves import apply_to_facelets, format_move, parse_moves
from .validator import validate


class RubikHTTPServer:
    def __init__(self, solver: RubikSolver, host: str = "127.0.0.1", port: int = 8000):
        self.solver = solver
        handler_cls = self._build_handler()
        self.httpd = ThreadingHTTPServer((host, port), handler_cls)
        self.host, self.port = self.httpd.server_address

    def _build_handler(self):
        parent = self

        class Handler(BaseHTTPRequestHandler):
            server_version = "RubikSolver/1.0"

            def log_message(self, fmt: str, *args):
                return

            def _send_json(self, code: int, payload: dict[str, Any]):
                body = json.dumps(payload).encode("utf-8")
                self.send_response(code)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _read_json(self) -> dict[str, Any]:
                length = int(self.headers.get("Content-Length", "0"))
                if length == 0:
                    return {}
                data = self.rfile.read(length)
                try:
                    obj = json.loads(data.decode("utf-8"))
                except json.JSONDecodeError as exc:
                    raise MalformedInputError(f"Invalid JSON body: {exc}") from exc
                if not isinstance(obj, dict):
                    raise MalformedInputError("JSON body must be an object")
                return obj

            def do_GET(self):
                if self.path == "/health":
                    self._send_json(
                        200,
                        {
                            "ready": True,
                            "tables_loaded": parent.solver.tables_loaded,
                            "max_length": parent.solver.config.max_length,
                            "colors": parent.solver.scheme.face_by_color,
                        },
                    )
                    return

                self._send_json(404, {"error": "Not Found"})

            def do_POST(self):
                try:
                    body = self._read_json()
                    solver = parent.solver

                    if self.path == "/validate":
                        facelets = self._require(body, "facelets")
                        validate(facelets, solver.scheme)
                        self._send_json(200, {"valid": True, "faces": to_faces(facelets, solver.scheme)})
                        return

                    if self.path == "/solve":
                        facelets = self._require(body, "facelets")
                        timeout_sec = body.get("timeout_sec")
                        if timeout_sec is not None and (
                            not isinstance(timeout_sec, (int, float)) or isinstance(timeout_sec, bool) or timeout_sec <= 0
                        ):
                            raise MalformedInputError("timeout_sec must be a positive number or null")
                        solution = solver.solve(facelets, timeout_sec=timeout_sec)
                        self._send_json(200, solution.to_dict())
                        return

                    if self.path == "/scramble":
                        steps = self._require(body, "steps")
                        seed = body.get("seed")
                        facelets, moves = solver.scramble(steps=steps, seed=seed)
                        self._send_json(
                            200,
                            {"facelets": facelets, "moves": moves, "faces": to_faces(facelets, solver.scheme)},
                        )
                        return

                    if self.path == "/apply":
                        facelets = self._require(body, "facelets")
                        moves = self._require(body, "moves")
                        if not isinstance(moves, (str, list)):
                            raise MalformedInputError("moves must be a string or a list of tokens")
                        parsed = parse_moves(moves)
                        turned = apply_to_facelets(facelets, parsed, solver.scheme)
                        self._send_json(
                            200,
                            {
                                "facelets": turned,
                                "moves": [format_move(m) for m in parsed],
                                "solved": turned == solver.scheme.solved_facelets(),
                            },
                        )
                        return

                except SearchTimeoutError as exc:
                    self._send_json(503, exc.to_payload())
                    return
                except RubikSolverError as exc:
                    self._send_json(400, exc.to_payload())
                    return

                self._send_json(404, {"error": "Not Found"})

            @staticmethod
            def _require(body: dict[str, Any], field: str) -> Any:
                if field not in body:
                    raise MalformedInputError(f"Missing required field: {field}")
                return body[field]

        return Handler

    def serve_forever(self):
        self.httpd.serve_forever()

    def start_background(self, daemon: bool = True) -> threading.Thread:
        thread = threading.Thread(target=self.serve_forever, daemon=daemon)
        thread.start()
        return thread

    def shutdown(self):
        self.httpd.shutdown()
        self.httpd.server_close()
