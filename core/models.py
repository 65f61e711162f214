"""
models.py
----------
Core domain models. These are the typed contracts between engine layers.

Inputs (owned by the app's storage layer, read-only here):
    - Subscription / BillingCycle: what the user pays for and how often.
    - Payment: a single historical charge against a subscription.

Outputs (immutable, recomputed on every call, never persisted by the engine):
    - MonthlyTotal, TrendResult, SeasonalPattern, SpendingPrediction,
      UnusualCharge, ValueScore, SpendingSummary, DuplicateGroup, SpendingInsight.

Every output exposes to_dict(), which yields a JSON-compatible dict keyed
with the app's camelCase field names.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd


def to_date(value: Any) -> date:
    """
    Coerces an ISO string, datetime, pandas Timestamp or date into a date.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Invalid date value: {value!r}")
    return pd.Timestamp(value).date()


# =============================================================================
# INPUTS
# =============================================================================

@dataclass
class BillingCycle:
    unit: str                        # "daily" | "weekly" | "monthly" | "yearly"
    interval: int = 1                # Units between charges, >= 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BillingCycle":
        return cls(unit=str(data["unit"]), interval=int(data.get("interval", 1)))

    def to_dict(self) -> Dict[str, Any]:
        return {"unit": self.unit, "interval": self.interval}


@dataclass
class Subscription:
    """A recurring service the user pays for."""

    id: str
    name: str
    price: float                     # Currency-agnostic unit amount, >= 0
    billing_cycle: BillingCycle
    status: str                      # "active" | "paused" | "cancelled" | "pending"
    start_date: date

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subscription":
        """Builds a Subscription from the app's camelCase record."""
        cycle = data.get("billingCycle", data.get("billing_cycle"))
        if not isinstance(cycle, BillingCycle):
            cycle = BillingCycle.from_dict(cycle)
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            price=float(data["price"]),
            billing_cycle=cycle,
            status=str(data.get("status", "active")),
            start_date=to_date(data.get("startDate", data.get("start_date"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "billingCycle": self.billing_cycle.to_dict(),
            "status": self.status,
            "startDate": self.start_date.isoformat(),
        }


@dataclass
class Payment:
    """A single charge. subscription_id is not enforced to exist."""

    id: str
    subscription_id: str
    amount: float                    # May be zero or negative (credits)
    date: date
    status: str = "paid"             # "paid" | "pending" | "failed"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Payment":
        return cls(
            id=str(data["id"]),
            subscription_id=str(data.get("subscriptionId", data.get("subscription_id"))),
            amount=float(data["amount"]),
            date=to_date(data["date"]),
            status=str(data.get("status", "paid")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subscriptionId": self.subscription_id,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "status": self.status,
        }


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class MonthlyTotal:
    label: str                       # e.g. "Mar 2025"
    month_start: date
    total: float

    def to_dict(self) -> Dict[str, Any]:
        return {"month": self.label, "monthStart": self.month_start.isoformat(), "total": self.total}


@dataclass(frozen=True)
class TrendResult:
    direction: str                   # "increasing" | "decreasing" | "stable"
    percentage: float                # Absolute value, 1 decimal
    absolute_change: float           # Last bucket minus first bucket
    forecast: float                  # Projected next-period total
    confidence: str                  # "high" | "medium" | "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction,
            "percentage": self.percentage,
            "absoluteChange": self.absolute_change,
            "forecast": self.forecast,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class SeasonalPattern:
    month: int                       # 0 = January ... 11 = December
    average_spending: float
    is_peak: bool = False
    is_low: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "averageSpending": self.average_spending,
            "isPeak": self.is_peak,
            "isLow": self.is_low,
        }


@dataclass(frozen=True)
class SpendingPrediction:
    next_month: float
    next_quarter: float
    next_year: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextMonth": self.next_month,
            "nextQuarter": self.next_quarter,
            "nextYear": self.next_year,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class UnusualCharge:
    payment: Payment
    subscription: Optional[Subscription]
    reason: str
    deviation: float                 # |z-score|, 2 decimals; 0 for new subscriptions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payment": self.payment.to_dict(),
            "subscription": self.subscription.to_dict() if self.subscription else None,
            "reason": self.reason,
            "deviation": self.deviation,
        }


@dataclass(frozen=True)
class ValueScore:
    subscription: Subscription
    score: int                       # 0–100
    cost_per_use: float
    value_tier: str                  # "excellent" | "good" | "average" | "poor"
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscription": self.subscription.to_dict(),
            "score": self.score,
            "costPerUse": self.cost_per_use,
            "valueTier": self.value_tier,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class SpendingSummary:
    total_monthly: float
    total_yearly: float
    average_per_subscription: float
    most_expensive: Optional[Subscription]
    cheapest: Optional[Subscription]
    active_count: int
    paused_count: int
    cancelled_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMonthly": self.total_monthly,
            "totalYearly": self.total_yearly,
            "averagePerSubscription": self.average_per_subscription,
            "mostExpensiveSubscription": self.most_expensive.to_dict() if self.most_expensive else None,
            "cheapestSubscription": self.cheapest.to_dict() if self.cheapest else None,
            "activeSubscriptionsCount": self.active_count,
            "pausedSubscriptionsCount": self.paused_count,
            "cancelledSubscriptionsCount": self.cancelled_count,
        }


@dataclass(frozen=True)
class DuplicateGroup:
    name: str
    duplicates: List[Subscription]
    potential_savings: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duplicates": [s.to_dict() for s in self.duplicates],
            "potentialSavings": self.potential_savings,
        }


@dataclass(frozen=True)
class SpendingInsight:
    type: str                        # "warning" | "info" | "success" | "tip"
    title: str
    description: str
    action: Optional[str] = None
    value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type, "title": self.title, "description": self.description}
        # Optional keys are omitted rather than serialized as null
        if self.action is not None:
            data["action"] = self.action
        if self.value is not None:
            data["value"] = self.value
        return data
