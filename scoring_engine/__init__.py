"""
Scoring Engine Package.

Computes the composite score from raw market fields.
Pure functions only, no I/O.

Modules:
- composite_score: Market cap + volume composite score
"""

from scoring_engine.composite_score import (
    MAX_SCORE,
    MIN_SCORE,
    ScoreBreakdown,
    calculate_composite_score,
    score_breakdown,
)


__all__ = [
    "MAX_SCORE",
    "MIN_SCORE",
    "ScoreBreakdown",
    "calculate_composite_score",
    "score_breakdown",
]
