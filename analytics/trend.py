"""
trend.py
---------
Spending trend analysis.

Fits a least-squares line through the last N calendar-month payment totals
and reads three things off it:
    - direction: is spending going up, down, or holding steady?
    - forecast: where does the line land one bucket past the series?
    - confidence: how noisy are the monthly totals relative to their mean?

Thresholds come from the trend_analysis block of config.yaml.
"""

import logging
from datetime import date, datetime
from typing import List

from core.aggregation import monthly_totals
from core.models import Payment, Subscription, TrendResult
from core.stats import mean, slope, variance
from config.config_loader import get_trend_config

logger = logging.getLogger(__name__)


def analyze_trend(
    subscriptions: List[Subscription],
    payments: List[Payment],
    months: int | None = None,
    now: datetime | date | str | None = None,
) -> TrendResult:
    """
    Analyze the spending trend over the last `months` calendar months.

    Args:
        subscriptions: Accepted for interface symmetry; the trend is driven by
            payments only.
        payments: Payment history.
        months: Window size in calendar months. If None, uses config default.
        now: Reference time for the window. Defaults to the system clock.

    Returns:
        TrendResult. With fewer than two monthly buckets the result is a
        "stable / low confidence" default whose forecast is the single
        bucket's total (or 0).
    """
    config = get_trend_config()
    if months is None:
        months = config["default_months"]

    buckets = monthly_totals(payments, months, now)

    if len(buckets) < 2:
        return TrendResult(
            direction="stable",
            percentage=0,
            absolute_change=0,
            forecast=buckets[0].total if buckets else 0,
            confidence="low",
        )

    totals = [b.total for b in buckets]
    indices = list(range(len(totals)))

    trend_slope = slope(indices, totals)
    average = mean(totals)
    percentage_change = (trend_slope * months / average) * 100 if average > 0 else 0

    direction = _classify_direction(percentage_change, config["stable_band_pct"])

    # One bucket past the end of the series
    forecast = average + trend_slope * (len(buckets) + 1)

    confidence = _classify_confidence(variance(totals), average, config["confidence"])

    logger.debug(
        f"Trend over {months} months: slope={trend_slope:.4f}, "
        f"average={average:.2f}, change={percentage_change:.2f}%"
    )

    return TrendResult(
        direction=direction,
        percentage=abs(round(percentage_change, 1)),
        absolute_change=round(buckets[-1].total - buckets[0].total, 2),
        forecast=round(forecast, 2),
        confidence=confidence,
    )


def _classify_direction(percentage_change: float, stable_band: float) -> str:
    if abs(percentage_change) < stable_band:
        return "stable"
    return "increasing" if percentage_change > 0 else "decreasing"


def _classify_confidence(spread: float, average: float, bounds: dict) -> str:
    """
    Compares the population variance of the monthly totals against a fraction
    of their average. Tighter series earn higher confidence.
    """
    if spread < average * bounds["high_variance_ratio"]:
        return "high"
    if spread < average * bounds["medium_variance_ratio"]:
        return "medium"
    return "low"
