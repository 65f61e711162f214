"""
spending.py
------------
Dashboard-level spending analytics: portfolio summary, forgotten and
duplicate subscriptions, and the insight cards built from them.

All monthly figures use the same normalized monthly cost as the rest of the
engine (core.aggregation.monthly_cost).
"""

import re
from datetime import date, datetime
from typing import Dict, List

import pandas as pd

from core.aggregation import current_monthly_total, monthly_cost, resolve_now
from core.models import (
    DuplicateGroup,
    Payment,
    SpendingInsight,
    SpendingSummary,
    Subscription,
)
from config.config_loader import get_spending_config


_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def spending_summary(subscriptions: List[Subscription]) -> SpendingSummary:
    """Totals and counts for the dashboard header."""
    active = [s for s in subscriptions if s.status == "active"]
    monthly = round(current_monthly_total(subscriptions), 2)

    most_expensive = None
    cheapest = None
    for sub in active:
        if most_expensive is None or sub.price > most_expensive.price:
            most_expensive = sub
        if cheapest is None or sub.price < cheapest.price:
            cheapest = sub

    return SpendingSummary(
        total_monthly=monthly,
        total_yearly=round(monthly * 12, 2),
        average_per_subscription=round(monthly / len(active), 2) if active else 0,
        most_expensive=most_expensive,
        cheapest=cheapest,
        active_count=len(active),
        paused_count=sum(1 for s in subscriptions if s.status == "paused"),
        cancelled_count=sum(1 for s in subscriptions if s.status == "cancelled"),
    )


def find_unused_subscriptions(
    subscriptions: List[Subscription],
    payments: List[Payment],
    months_threshold: int | None = None,
    now: datetime | date | str | None = None,
) -> List[Subscription]:
    """
    Active subscriptions with no payment on or after `now - months_threshold`.

    Args:
        months_threshold: Look-back in calendar months. If None, uses config
            default (3).
    """
    if months_threshold is None:
        months_threshold = get_spending_config()["unused_months"]

    cutoff = resolve_now(now) - pd.DateOffset(months=months_threshold)
    recently_paid = {
        p.subscription_id for p in payments if pd.Timestamp(p.date) >= cutoff
    }

    return [
        s for s in subscriptions
        if s.status == "active" and s.id not in recently_paid
    ]


def find_duplicate_subscriptions(subscriptions: List[Subscription]) -> List[DuplicateGroup]:
    """
    Groups non-cancelled subscriptions whose names match once lower-cased and
    stripped of anything but letters and digits. Keeping the cheapest of a
    group, the rest count as potential monthly savings.
    """
    groups: Dict[str, List[Subscription]] = {}
    for sub in subscriptions:
        if sub.status == "cancelled":
            continue
        key = _NON_ALPHANUMERIC.sub("", sub.name.lower())
        groups.setdefault(key, []).append(sub)

    duplicates: List[DuplicateGroup] = []
    for subs in groups.values():
        if len(subs) < 2:
            continue
        by_price = sorted(subs, key=lambda s: s.price)
        savings = sum(monthly_cost(s) for s in by_price[1:])
        duplicates.append(DuplicateGroup(
            name=subs[0].name.split(" ")[0],
            duplicates=subs,
            potential_savings=round(savings, 2),
        ))

    return duplicates


def generate_insights(
    subscriptions: List[Subscription],
    payments: List[Payment],
    now: datetime | date | str | None = None,
) -> List[SpendingInsight]:
    """Builds dashboard insight cards in display order."""
    config = get_spending_config()
    currency = config["currency_symbol"]

    summary = spending_summary(subscriptions)
    duplicates = find_duplicate_subscriptions(subscriptions)
    unused = find_unused_subscriptions(subscriptions, payments, now=now)
    insights: List[SpendingInsight] = []

    if summary.total_monthly > config["high_spending_floor"]:
        insights.append(SpendingInsight(
            type="warning",
            title="Monthly spending is high",
            description=f"You're spending {currency}{summary.total_monthly:.2f}/month on subscriptions.",
            action="Review your subscriptions to find savings",
            value=summary.total_monthly,
        ))

    if duplicates:
        total_savings = round(sum(d.potential_savings for d in duplicates), 2)
        insights.append(SpendingInsight(
            type="tip",
            title="Duplicate subscriptions detected",
            description=f"You could save {currency}{total_savings:.2f}/month by removing duplicates.",
            action="Review duplicates",
            value=total_savings,
        ))

    if unused:
        unused_cost = sum(monthly_cost(s) for s in unused)
        plural = "s" if len(unused) > 1 else ""
        insights.append(SpendingInsight(
            type="warning",
            title=f"{len(unused)} unused subscription{plural}",
            description=(
                f"You haven't used these in {config['unused_months']}+ months. "
                f"Save {currency}{unused_cost:.2f}/month."
            ),
            action="Review unused",
            value=round(unused_cost, 2),
        ))

    potential_savings = summary.total_monthly * config["savings_rate"]
    insights.append(SpendingInsight(
        type="success",
        title="Potential savings identified",
        description=f"You could save up to {currency}{potential_savings:.2f}/month by optimizing.",
        action="View recommendations",
        value=round(potential_savings, 2),
    ))

    if summary.paused_count > 0:
        paused_savings = sum(monthly_cost(s) for s in subscriptions if s.status == "paused")
        insights.append(SpendingInsight(
            type="success",
            title="Great job pausing subscriptions",
            description=f"You're saving {currency}{paused_savings:.2f}/month from paused services.",
            value=round(paused_savings, 2),
        ))

    return insights
