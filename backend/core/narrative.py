"""
narrative.py — Template-based text for boundary analysis and calculator results.

Transforms trend labels, safety margins and grades into human-readable
sentences. Plain f-string templates, no external services.
"""

from typing import Dict


# ── Trend Narratives ────────────────────────────────────────────────

TREND_DESCRIPTIONS = {
    "rising": "Grade boundaries are getting harder over time",
    "falling": "Grade boundaries are getting easier over time",
    "stable": "Grade boundaries remain relatively stable",
}

NO_DATA_DESCRIPTION = "No data available"


def narrate_trend(trend: str) -> str:
    return TREND_DESCRIPTIONS.get(trend, TREND_DESCRIPTIONS["stable"])


def narrate_safety_recommendation(target: int, max_value: float, trend: str) -> str:
    if trend == "rising":
        return (
            f"Aim for at least {target} raw marks. The highest boundary in this "
            f"selection was {max_value:g} and boundaries are climbing, so leave "
            f"extra headroom above it."
        )
    return (
        f"Aim for at least {target} raw marks to stay clear of the highest "
        f"boundary in this selection ({max_value:g})."
    )


def narrate_empty_selection() -> str:
    return (
        "No grade boundaries match this selection. Choose years and sessions "
        "that have published boundaries."
    )


# ── Calculator Feedback ─────────────────────────────────────────────

GRADE_FEEDBACK: Dict[str, Dict[str, str]] = {
    "A*": {
        "title": "Outstanding! Exceptional performance!",
        "description": "You're performing at the highest level. Keep up the excellent work!",
    },
    "A": {
        "title": "Excellent work! Great achievement!",
        "description": "You're doing really well. Just a bit more effort for that A*!",
    },
    "B": {
        "title": "Good job! Solid performance!",
        "description": "You're on the right track. Push a little harder for that A grade!",
    },
    "C": {
        "title": "Making progress! Keep going!",
        "description": "You're building momentum. Focus on improvement for better grades!",
    },
    "U": {
        "title": "Room for improvement!",
        "description": "Don't give up! Every expert was once a beginner. Keep practicing!",
    },
}


def grade_feedback(grade: str) -> Dict[str, str]:
    """Motivational message for a resolved grade. D and E share the U text."""
    return dict(GRADE_FEEDBACK.get(grade, GRADE_FEEDBACK["U"]))


def narrate_calculation(grade: str, ums: int, year: int, session: str) -> str:
    return f"{grade} ({ums} UMS) for {year} {session}"
