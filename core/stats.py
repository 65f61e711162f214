"""
stats.py
---------
Numeric primitives shared by every analysis stage.

All functions work on plain sequences or numpy arrays and return Python
floats. Degenerate inputs (zero spread, repeated x values) are NOT trapped:
division by zero yields nan/inf exactly as the formulas dictate, and the
numpy runtime warnings for those cases are silenced.
"""

from typing import Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean. Callers guarantee a non-empty input."""
    return float(np.mean(np.asarray(values, dtype=float)))


def variance(values: Sequence[float]) -> float:
    """Population variance (divides by n, not n - 1)."""
    return float(np.var(np.asarray(values, dtype=float), ddof=0))


def stddev(values: Sequence[float], mu: float | None = None) -> float:
    """
    Population standard deviation.

    Args:
        values: Observations.
        mu: Precomputed mean of values, to avoid recomputing it.
    """
    arr = np.asarray(values, dtype=float)
    if mu is None:
        mu = float(np.mean(arr))
    return float(np.sqrt(np.mean((arr - mu) ** 2)))


def slope(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Ordinary least-squares slope:

        (n·Σxy − Σx·Σy) / (n·Σx² − (Σx)²)

    x values must be distinct (e.g. sequential indices 0..n-1), otherwise the
    denominator is zero and the result is nan/inf.
    """
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    n = len(xs)

    sum_x = xs.sum()
    sum_y = ys.sum()
    sum_xy = (xs * ys).sum()
    sum_x2 = (xs * xs).sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        result = np.float64(n * sum_xy - sum_x * sum_y) / np.float64(n * sum_x2 - sum_x * sum_x)
    return float(result)


def z_scores(values: Sequence[float]) -> np.ndarray:
    """
    Absolute z-score of each value against the population mean/stddev.

    A zero stddev yields nan (value at the mean) or inf (any other value).
    """
    arr = np.asarray(values, dtype=float)
    mu = float(np.mean(arr))
    sd = stddev(arr, mu)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.abs(arr - mu) / sd
