"""
aggregation.py
---------------
Monthly aggregation layer. Shared by trend, prediction and value scoring.

Two kinds of "monthly" numbers live here:
    - Normalized monthly cost: what a subscription costs per month given its
      billing cycle (no payment history involved).
    - Calendar-month totals: actual payment amounts bucketed into the last N
      calendar months, ending with the month that contains the reference time.

The reference time is always injected (`now`). Passing None falls back to the
system clock at call time.
"""

from datetime import date, datetime
from typing import List

import pandas as pd

from core.models import MonthlyTotal, Payment, Subscription
from config.config_loader import get_output_config


def resolve_now(now: datetime | date | str | None = None) -> pd.Timestamp:
    """Returns the reference time as a timezone-naive pandas Timestamp."""
    ts = pd.Timestamp.now() if now is None else pd.Timestamp(now)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


# -----------------------------------------------------------------------------
# NORMALIZED MONTHLY COST
# -----------------------------------------------------------------------------

def monthly_cost(subscription: Subscription) -> float:
    """
    Converts a subscription price into its monthly-equivalent cost.

        daily   -> price * interval * 30
        weekly  -> price * (30 / 7) * interval
        monthly -> price * interval
        yearly  -> price / 12 * interval
        other   -> price unchanged
    """
    price = subscription.price
    unit = subscription.billing_cycle.unit
    interval = subscription.billing_cycle.interval

    if unit == "daily":
        return price * interval * 30
    if unit == "weekly":
        return price * (30 / 7) * interval
    if unit == "monthly":
        return price * interval
    if unit == "yearly":
        return price / 12 * interval
    return price


def current_monthly_total(subscriptions: List[Subscription]) -> float:
    """Sum of monthly_cost over active subscriptions only."""
    return sum(monthly_cost(s) for s in subscriptions if s.status == "active")


# -----------------------------------------------------------------------------
# CALENDAR-MONTH TOTALS
# -----------------------------------------------------------------------------

def payments_frame(payments: List[Payment]) -> pd.DataFrame:
    """
    Flattens payments into a DataFrame with columns:
        subscription_id, amount, date (datetime64), period (monthly Period)
    Rows keep input order.
    """
    df = pd.DataFrame(
        {
            "subscription_id": [p.subscription_id for p in payments],
            "amount": pd.Series([p.amount for p in payments], dtype=float),
            "date": pd.to_datetime(pd.Series([p.date for p in payments], dtype=object)),
        }
    )
    df["period"] = df["date"].dt.to_period("M")
    return df


def monthly_totals(
    payments: List[Payment],
    months: int,
    now: datetime | date | str | None = None,
) -> List[MonthlyTotal]:
    """
    Sums payment amounts per calendar month for the last `months` months.

    Args:
        payments: Payment history, any order.
        months: Number of calendar-month buckets. The last bucket is the month
            containing `now`.
        now: Reference time. Defaults to the system clock.

    Returns:
        List of MonthlyTotal, oldest first, totals rounded to 2 decimals.
        Months without payments report 0.0.
    """
    label_format = get_output_config()["month_label_format"]
    current = resolve_now(now).to_period("M")

    by_month = pd.Series(dtype=float)
    if payments:
        df = payments_frame(payments)
        by_month = df.groupby("period", sort=False)["amount"].sum()

    totals: List[MonthlyTotal] = []
    for offset in range(months - 1, -1, -1):
        period = current - offset
        month_start = period.start_time
        totals.append(
            MonthlyTotal(
                label=month_start.strftime(label_format),
                month_start=month_start.date(),
                total=round(float(by_month.get(period, 0.0)), 2),
            )
        )

    return totals
