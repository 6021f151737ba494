from __future__ import annotations
import logging
import math
import time
from contextlib import contextmanager
from typing import Iterator

import numpy as np

def get_logger(name: str = "meshboard") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger

_log = get_logger()

def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector along ``v``; a zero vector is returned unchanged."""
    v = np.asarray(v, dtype=np.float64)
    length_sq = float(np.dot(v, v))
    if length_sq == 0.0:
        return v.copy()
    return v / math.sqrt(length_sq)

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)

@contextmanager
def benchmark(name: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        _log.debug("Benchmark %s took %.3f ms", name, elapsed_ms)
