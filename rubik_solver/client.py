"""HTTP client for the solver server."""

from __future__ import annotations

import json
from urllib import error, request


class SolverAPIError(RuntimeError):
    """Non-2xx answer from the server; ``payload`` is the decoded JSON body."""

    def __init__(self, status: int, payload: dict):
        super().__init__(payload.get("error", f"HTTP {status}"))
        self.status = status
        self.payload = payload

    @property
    def kind(self) -> str | None:
        return self.payload.get("kind")


class SolverAPIClient:
    def __init__(self, host: str = "127.0.0.1", port: int = 8000, timeout: float = 60.0):
        self.base = f"http://{host}:{port}"
        self.timeout = timeout

    def _call(self, method: str, path: str, payload: dict | None = None) -> dict:
        data = None
        headers = {}
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = request.Request(url=f"{self.base}{path}", method=method, data=data, headers=headers)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except error.HTTPError as exc:
            body = exc.read().decode("utf-8")
            try:
                out = json.loads(body)
            except json.JSONDecodeError:
                out = {"error": body or exc.reason}
            raise SolverAPIError(exc.code, out) from exc

    def health(self) -> dict:
        return self._call("GET", "/health")

    def validate(self, facelets: str) -> dict:
        return self._call("POST", "/validate", {"facelets": facelets})

    def solve(self, facelets: str, timeout_sec: float | None = None) -> dict:
        payload = {"facelets": facelets}
        if timeout_sec is not None:
            payload["timeout_sec"] = float(timeout_sec)
        return self._call("POST", "/solve", payload)

    def scramble(self, steps: int, seed: int | None = None) -> dict:
        payload = {"steps": int(steps), "seed": seed}
        return self._call("POST", "/scramble", payload)

    def apply(self, facelets: str, moves: str | list[str]) -> dict:
        return self._call("POST", "/apply", {"facelets": facelets, "moves": moves})
