"""
seasonal.py
------------
Seasonal pattern detection.

Payments are grouped by calendar month-of-year (January ... December)
regardless of which year they fall in, and averaged per month. The month(s)
with the highest average are flagged as peaks, and the month(s) with the
lowest *positive* average as lows. Months without any payments average 0
and are never flagged.
"""

import math
from datetime import date, datetime
from typing import List

from core.aggregation import payments_frame, resolve_now
from core.models import Payment, SeasonalPattern
from config.config_loader import get_seasonal_config


MONTHS_PER_YEAR = 12


def detect_seasonal_patterns(
    payments: List[Payment],
    years: int | None = None,
) -> List[SeasonalPattern]:
    """
    Build one SeasonalPattern per calendar month, index 0 = January.

    Args:
        payments: Payment history of any length.
        years: Nominal history depth. Accepted for interface compatibility;
            every supplied payment is aggregated regardless of its year.

    Returns:
        Exactly 12 SeasonalPattern entries in month order.
    """
    if years is None:
        years = get_seasonal_config()["default_years"]

    averages = _monthly_averages(payments)

    max_average = 0.0
    min_average = math.inf
    for average in averages:
        if average > max_average:
            max_average = average
        if 0 < average < min_average:
            min_average = average

    # All-zero history: max_average stays 0 and no month is a peak
    return [
        SeasonalPattern(
            month=month,
            average_spending=round(average, 2),
            is_peak=max_average > 0 and average == max_average,
            is_low=average == min_average,
        )
        for month, average in enumerate(averages)
    ]


def has_seasonal_spike(
    payments: List[Payment],
    now: datetime | date | str | None = None,
) -> bool:
    """
    True if next calendar month's seasonal average exceeds the current
    month's by more than the configured spike ratio (default 30%).
    """
    ratio = get_seasonal_config()["spike_ratio"]
    patterns = detect_seasonal_patterns(payments)

    current_month = resolve_now(now).month - 1
    next_month = (current_month + 1) % MONTHS_PER_YEAR

    return patterns[next_month].average_spending > patterns[current_month].average_spending * ratio


def _monthly_averages(payments: List[Payment]) -> List[float]:
    """Mean payment amount per month-of-year; 0.0 where a month has no payments."""
    if not payments:
        return [0.0] * MONTHS_PER_YEAR

    df = payments_frame(payments)
    by_month = df.groupby(df["date"].dt.month - 1)["amount"].mean()

    return [float(by_month.get(month, 0.0)) for month in range(MONTHS_PER_YEAR)]
