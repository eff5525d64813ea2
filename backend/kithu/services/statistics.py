"""Salary statistics helpers."""
from collections.abc import Sequence
import math


def percentile(sorted_values: Sequence[float], pct: float) -> float:
    """Percentile of already-sorted values using linear interpolation between ranks.

    Args:
        sorted_values: Values in ascending order
        pct: Percentile in the 0-100 range; values outside are clamped

    Returns:
        0.0 for an empty sequence, otherwise the interpolated value.
        ``[10, 20, 30, 40]`` gives 17.5 / 25 / 32.5 for P25 / P50 / P75.
    """
    if not sorted_values:
        return 0.0
    if pct <= 0:
        return float(sorted_values[0])
    if pct >= 100:
        return float(sorted_values[-1])

    position = (len(sorted_values) - 1) * (pct / 100.0)
    lower_index = math.floor(position)
    fraction = position - lower_index

    if lower_index + 1 < len(sorted_values):
        lower = sorted_values[lower_index]
        upper = sorted_values[lower_index + 1]
        return float(lower + (upper - lower) * fraction)
    return float(sorted_values[lower_index])


def summarize(values: Sequence[float]) -> dict:
    """Count, average, median, P25 and P75 of ``values`` (any order)."""
    if not values:
        return {"count": 0}

    ordered = sorted(float(v) for v in values)
    return {
        "count": len(ordered),
        "average": sum(ordered) / len(ordered),
        "median": percentile(ordered, 50),
        "p25": percentile(ordered, 25),
        "p75": percentile(ordered, 75),
    }
