"""
prediction.py
--------------
Forward-looking spend projections and rule-based recommendations.

Combines three inputs:
    - the current normalized monthly total of active subscriptions,
    - a TrendResult (its percentage is treated as a monthly growth rate),
    - the seasonal averages derived from payment history.

The yearly figure compounds the monthly growth rate by twelve a second time
(current * 12 * (1 + growth * 12)). Downstream screens rely on that number,
so it is kept as is.
"""

import logging
from datetime import date, datetime
from typing import List

from analytics.seasonal import MONTHS_PER_YEAR, detect_seasonal_patterns, has_seasonal_spike
from core.aggregation import current_monthly_total, resolve_now
from core.models import Payment, SpendingPrediction, Subscription, TrendResult
from config.config_loader import get_prediction_config

logger = logging.getLogger(__name__)


def predict_spending(
    subscriptions: List[Subscription],
    payments: List[Payment],
    trend: TrendResult,
    now: datetime | date | str | None = None,
) -> SpendingPrediction:
    """
    Project next month, next quarter and next year spending.

    Args:
        subscriptions: Current subscriptions (only active ones count).
        payments: Payment history, used for seasonal adjustments.
        trend: Output of analyze_trend().
        now: Reference time. Defaults to the system clock.

    Returns:
        SpendingPrediction with projections rounded to 2 decimals and
        recommendations in fixed rule order.
    """
    config = get_prediction_config()
    messages = config["messages"]

    current_total = current_monthly_total(subscriptions)
    monthly_growth = trend.percentage / 100

    next_month = current_total * (1 + monthly_growth)
    next_quarter = _quarterly_prediction(payments, current_total, now, config["quarter_months"])
    next_year = current_total * 12 * (1 + monthly_growth * 12)

    recommendations: List[str] = []

    if trend.direction == "increasing" and trend.percentage > config["fast_growth_pct"]:
        recommendations.append(messages["fast_growth"])

    if next_month > current_total * config["budget_alert_ratio"]:
        recommendations.append(messages["budget_alert"])

    if has_seasonal_spike(payments, now):
        recommendations.append(messages["seasonal_spike"])

    if current_total > config["savings_floor"]:
        recommendations.append(
            messages["savings"].format(
                currency=config["currency_symbol"],
                amount=current_total * config["savings_rate"],
            )
        )

    logger.debug(
        f"Prediction: current={current_total:.2f}, growth={monthly_growth:.4f}, "
        f"recommendations={len(recommendations)}"
    )

    return SpendingPrediction(
        next_month=round(next_month, 2),
        next_quarter=round(next_quarter, 2),
        next_year=round(next_year, 2),
        recommendations=recommendations,
    )


def _quarterly_prediction(
    payments: List[Payment],
    current_monthly: float,
    now: datetime | date | str | None,
    quarter_months: int,
) -> float:
    """
    Sums the seasonal average of the current month and the following ones
    (wrapping at December). Months without positive history fall back to the
    current monthly total.
    """
    patterns = detect_seasonal_patterns(payments)
    start_month = resolve_now(now).month - 1

    total = 0.0
    for i in range(quarter_months):
        pattern = patterns[(start_month + i) % MONTHS_PER_YEAR]
        if pattern.average_spending > 0:
            total += pattern.average_spending
        else:
            total += current_monthly

    return total
