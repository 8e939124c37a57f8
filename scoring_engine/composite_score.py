"""
Scoring Engine - Composite Score.

============================================================
RESPONSIBILITY
============================================================
Derives the composite score from market capitalization and
24h trading volume.

- Pure and deterministic, no I/O
- Rejects inputs where the logarithm is undefined
- Result always lies in [0, 100]

============================================================
COMPOSITE LOGIC
============================================================
market_factor = ln(market_cap) / 10
volume_factor = ln(volume_24h) / 10
score = min(100, 70 + 2 * (market_factor + volume_factor))

The result is clamped at 0 from below and rounded half-up
to two decimal places.

============================================================
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real
from typing import Any

from core.exceptions import ScoreInputInvalid


BASE_SCORE = 70.0
FACTOR_WEIGHT = 2.0
FACTOR_DIVISOR = 10.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class ScoreBreakdown:
    """Decomposition of a composite score."""
    market_factor: float
    volume_factor: float
    raw_score: float
    score: float

    @property
    def is_clamped(self) -> bool:
        return not (MIN_SCORE <= self.raw_score <= MAX_SCORE)


def _require_positive(field: str, value: Any) -> float:
    # bool is a Real subclass; True would score as 1.0
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ScoreInputInvalid(field, value, "must be a number")
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ScoreInputInvalid(field, value, "must be finite")
    if value <= 0:
        raise ScoreInputInvalid(field, value, "must be strictly positive")
    return value


def _round_half_up(value: float) -> float:
    return float(Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def score_breakdown(market_cap_usd: float, volume_24h_usd: float) -> ScoreBreakdown:
    """
    Compute the composite score with its components.

    Args:
        market_cap_usd: Market capitalization, strictly positive
        volume_24h_usd: 24h trading volume, strictly positive

    Returns:
        ScoreBreakdown with factors, unclamped raw score and final score

    Raises:
        ScoreInputInvalid: If either input is not a strictly positive finite number
    """
    market_cap = _require_positive("market_cap_usd", market_cap_usd)
    volume = _require_positive("volume_24h_usd", volume_24h_usd)

    market_factor = math.log(market_cap) / FACTOR_DIVISOR
    volume_factor = math.log(volume) / FACTOR_DIVISOR

    raw_score = BASE_SCORE + FACTOR_WEIGHT * (market_factor + volume_factor)
    clamped = max(MIN_SCORE, min(MAX_SCORE, raw_score))

    return ScoreBreakdown(
        market_factor=market_factor,
        volume_factor=volume_factor,
        raw_score=raw_score,
        score=_round_half_up(clamped),
    )


def calculate_composite_score(market_cap_usd: float, volume_24h_usd: float) -> float:
    """Composite score in [0, 100], rounded to two decimals."""
    return score_breakdown(market_cap_usd, volume_24h_usd).score
