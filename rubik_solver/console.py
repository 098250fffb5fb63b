"""Timestamped console logging that cooperates with tqdm bars."""

from __future__ import annotations

from datetime import datetime

from tqdm import tqdm


def log(message: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    # tqdm.write clears and redraws any active bar around the line.
    tqdm.write(f"[{ts}] {message}")
