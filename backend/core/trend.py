"""
trend.py — Trend label and safety-margin recommendation for a boundary series.

This is a presentation-facing summary, not a statistical model: the trend
compares only the first and last points of the chronological series, and the
safety buffers are fixed policy constants. Do not read more into it.
"""

import math
from typing import Any, Dict, Sequence

from core.narrative import (
    NO_DATA_DESCRIPTION,
    narrate_empty_selection,
    narrate_safety_recommendation,
    narrate_trend,
)

# Differences of this many marks or fewer between first and last point
# count as stable.
TREND_NOISE_MARKS = 1.0

RISING_BUFFER_MARKS = 5
STABLE_BUFFER_MARKS = 2


def classify_trend(series: Sequence[float]) -> str:
    """'rising', 'falling' or 'stable' from the earliest and latest values."""
    if len(series) < 2:
        return "stable"
    difference = float(series[-1]) - float(series[0])
    if difference > TREND_NOISE_MARKS:
        return "rising"
    if difference < -TREND_NOISE_MARKS:
        return "falling"
    return "stable"


def safety_margin(max_value: float, trend: str) -> int:
    """Recommended raw mark: the highest boundary plus a trend-dependent buffer."""
    buffer = RISING_BUFFER_MARKS if trend == "rising" else STABLE_BUFFER_MARKS
    return int(math.ceil(max_value + buffer))


def analyze_trend(series: Sequence[float], max_value: float) -> Dict[str, Any]:
    """
    Summarise a chronological series.

    An empty series gives a stable trend with no recommendation target.
    """
    if len(series) == 0:
        return {
            "trend": "stable",
            "trend_description": NO_DATA_DESCRIPTION,
            "safety_margin": 0,
            "safety_recommendation": narrate_empty_selection(),
        }

    trend = classify_trend(series)
    target = safety_margin(max_value, trend)
    return {
        "trend": trend,
        "trend_description": narrate_trend(trend),
        "safety_margin": target,
        "safety_recommendation": narrate_safety_recommendation(target, max_value, trend),
    }
