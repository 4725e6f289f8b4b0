"""Shared numeric helpers for 0-100 scores."""
import math


def round_score(value: float) -> int:
    """Round half up, so 72.5 becomes 73 rather than Python's banker's 72."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    """
    Round and clamp a score into [low, high].

    NaN maps to low; infinities map to the nearer bound.
    """
    if math.isnan(value):
        return low
    if math.isinf(value):
        return high if value > 0 else low
    return max(low, min(high, round_score(value)))
