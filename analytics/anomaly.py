"""
anomaly.py
-----------
Unusual charge detection.

Two independent passes:
    1. Statistical: per subscription, flag payments whose absolute z-score
       (population standard deviations from that subscription's mean amount)
       exceeds a threshold. Subscriptions with too few payments are skipped.
    2. Recency: every active subscription that started within the last month
       is reported as a new subscription, regardless of payment history.

A subscription whose payments are all identical has zero spread. Its
z-scores come out as nan, which never exceeds the threshold, so nothing is
flagged. This is deliberate and covered by tests.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, List

import pandas as pd

from core.aggregation import resolve_now
from core.models import Payment, Subscription, UnusualCharge
from core.stats import mean, z_scores
from config.config_loader import get_anomaly_config

logger = logging.getLogger(__name__)


def detect_unusual_charges(
    subscriptions: List[Subscription],
    payments: List[Payment],
    threshold: float | None = None,
    now: datetime | date | str | None = None,
) -> List[UnusualCharge]:
    """
    Identify statistically unusual charges and recently added subscriptions.

    Args:
        subscriptions: Known subscriptions, used to attach context and to find
            new ones.
        payments: Payment history. subscription_id need not match a known
            subscription.
        threshold: z-score above which a payment is reported. If None, uses
            config default (2.5).
        now: Reference time for the recency pass. Defaults to the system clock.

    Returns:
        Statistical outliers first (grouped by subscription in order of first
        appearance), then one entry per new subscription.
    """
    config = get_anomaly_config()
    messages = config["messages"]
    if threshold is None:
        threshold = config["default_threshold"]

    by_id = {s.id: s for s in subscriptions}
    unusual: List[UnusualCharge] = []

    # --- Pass 1: z-score outliers per subscription ---
    for subscription_id, group in _group_by_subscription(payments).items():
        if len(group) < config["min_payments"]:
            continue

        amounts = [p.amount for p in group]
        group_mean = mean(amounts)
        deviations = z_scores(amounts)
        subscription = by_id.get(subscription_id)

        for payment, deviation in zip(group, deviations):
            if deviation > threshold:
                unusual.append(UnusualCharge(
                    payment=payment,
                    subscription=subscription,
                    reason=messages["higher"] if payment.amount > group_mean else messages["lower"],
                    deviation=round(float(deviation), 2),
                ))

    # --- Pass 2: subscriptions added recently ---
    cutoff = resolve_now(now) - pd.DateOffset(months=config["new_subscription_months"])
    for sub in subscriptions:
        if sub.status != "active" or pd.Timestamp(sub.start_date) < cutoff:
            continue
        unusual.append(UnusualCharge(
            payment=Payment(
                id="new",
                subscription_id=sub.id,
                amount=sub.price,
                date=sub.start_date,
                status="pending",
            ),
            subscription=sub,
            reason=messages["new_subscription"],
            deviation=0,
        ))

    logger.debug(f"Unusual charges detected: {len(unusual)} (threshold={threshold}).")
    return unusual


def _group_by_subscription(payments: List[Payment]) -> Dict[str, List[Payment]]:
    """Groups payments by subscription_id, preserving first-seen order."""
    groups: Dict[str, List[Payment]] = OrderedDict()
    for payment in payments:
        groups.setdefault(payment.subscription_id, []).append(payment)
    return groups
