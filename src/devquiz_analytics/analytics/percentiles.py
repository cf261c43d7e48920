"""Numeric helpers shared by the tracker, recommender and team aggregation."""

import math

import numpy as np

BENCHMARK_PERCENTILES: dict[str, float] = {
    "percentile25": 0.25,
    "percentile50": 0.50,
    "percentile75": 0.75,
    "percentile90": 0.90,
}


def correct_rate(correct: int, total: int) -> float:
    """Correct answers divided by total answers; 0 when there are none."""
    if total == 0:
        return 0.0
    return correct / total


def nearest_rank(sorted_values: np.ndarray | list[float], p: float) -> float:
    """Value at index ``floor(n * p)`` of an ascending sequence, no interpolation.

    The index is clamped to the last element; an empty sequence yields 0.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    index = min(math.floor(n * p), n - 1)
    return float(sorted_values[index])


def summarize_rates(rates: list[float]) -> dict[str, float]:
    """Mean and benchmark percentiles of a cohort's per-user correct rates.

    Returns:
        Dict with avg_correct_rate and percentile25/50/75/90, all 0 for an
        empty cohort.
    """
    arr = np.sort(np.asarray(rates, dtype=np.float64))
    summary = {"avg_correct_rate": float(arr.mean()) if arr.size else 0.0}
    for name, p in BENCHMARK_PERCENTILES.items():
        summary[name] = nearest_rank(arr, p)
    return summary
