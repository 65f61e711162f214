"""
pipeline.py
------------
Main orchestration layer. Wires together every analysis stage:
    1. Trend analysis           →  TrendResult
    2. Seasonal patterns        →  12 SeasonalPatterns
    3. Prediction               →  SpendingPrediction (uses the trend)
    4. Unusual charges          →  UnusualCharges
    5. Value scoring            →  ValueScores
    6. Spending summary         →  SpendingSummary + insight cards

This is the calling layer for the analytics functions. They raise on
malformed input; the pipeline catches per stage, logs the failure and
substitutes a safe default so one bad stage never blanks the whole report.

Usage:
    from pipeline import AnalyticsPipeline

    pipeline = AnalyticsPipeline(now="2025-06-15")
    report = pipeline.run(subscriptions, payments, usage_counts)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from analytics.anomaly import detect_unusual_charges
from analytics.prediction import predict_spending
from analytics.seasonal import detect_seasonal_patterns
from analytics.spending import generate_insights, spending_summary
from analytics.trend import analyze_trend
from analytics.value_scoring import calculate_value_scores
from core.aggregation import resolve_now
from core.models import (
    Payment,
    SeasonalPattern,
    SpendingInsight,
    SpendingPrediction,
    SpendingSummary,
    Subscription,
    TrendResult,
    UnusualCharge,
    ValueScore,
)
from config.config_loader import get_output_config, get_trend_config

logger = logging.getLogger(__name__)


EMPTY_TREND = TrendResult(direction="stable", percentage=0, absolute_change=0, forecast=0, confidence="low")
EMPTY_PREDICTION = SpendingPrediction(next_month=0, next_quarter=0, next_year=0)
EMPTY_SUMMARY = SpendingSummary(
    total_monthly=0, total_yearly=0, average_per_subscription=0,
    most_expensive=None, cheapest=None,
    active_count=0, paused_count=0, cancelled_count=0,
)


@dataclass
class AnalyticsReport:
    """Everything the analytics screen needs, computed from one snapshot."""
    generated_at: str
    trend: TrendResult
    seasonal_patterns: List[SeasonalPattern]
    prediction: SpendingPrediction
    unusual_charges: List[UnusualCharge]
    value_scores: List[ValueScore]
    summary: SpendingSummary
    insights: List[SpendingInsight]
    failed_stages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "trend": self.trend.to_dict(),
            "seasonalPatterns": [p.to_dict() for p in self.seasonal_patterns],
            "prediction": self.prediction.to_dict(),
            "unusualCharges": [c.to_dict() for c in self.unusual_charges],
            "valueScores": [v.to_dict() for v in self.value_scores],
            "summary": self.summary.to_dict(),
            "insights": [i.to_dict() for i in self.insights],
            "failedStages": list(self.failed_stages),
        }


class AnalyticsPipeline:
    """
    End-to-end spending analytics over a subscriptions/payments snapshot.

    Holds only call parameters; it carries no state between runs.
    """

    def __init__(
        self,
        now: datetime | date | str | None = None,
        months: int | None = None,
        anomaly_threshold: float | None = None,
    ):
        """
        Args:
            now: Reference time for every stage. None reads the system clock
                once per run.
            months: Trend window override. Defaults to config value.
            anomaly_threshold: z-score threshold override. Defaults to config value.
        """
        self.now = now
        self.months = months
        self.anomaly_threshold = anomaly_threshold

        logger.info(
            f"Pipeline initialized. "
            f"Trend window: {months or get_trend_config()['default_months']} months. "
            f"Reference time: {now or 'system clock'}."
        )

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def run(
        self,
        subscriptions: List[Subscription],
        payments: List[Payment],
        usage_counts: Optional[Dict[str, int]] = None,
    ) -> AnalyticsReport:
        """
        Run every analysis stage.

        Args:
            subscriptions: Subscription snapshot.
            payments: Payment history.
            usage_counts: Optional {subscription_id: uses} for value scoring.

        Returns:
            AnalyticsReport. Stages that raised are listed in failed_stages and
            carry their default value.
        """
        # Pin the clock so every stage sees the same reference time
        now = resolve_now(self.now)
        failed: List[str] = []

        logger.info(
            f"Pipeline starting. Input: {len(subscriptions):,} subscriptions, "
            f"{len(payments):,} payments."
        )

        trend = self._stage(
            "trend", failed, EMPTY_TREND,
            lambda: analyze_trend(subscriptions, payments, self.months, now),
        )
        seasonal = self._stage(
            "seasonal_patterns", failed, [],
            lambda: detect_seasonal_patterns(payments),
        )
        prediction = self._stage(
            "prediction", failed, EMPTY_PREDICTION,
            lambda: predict_spending(subscriptions, payments, trend, now),
        )
        unusual = self._stage(
            "unusual_charges", failed, [],
            lambda: detect_unusual_charges(subscriptions, payments, self.anomaly_threshold, now),
        )
        value_scores = self._stage(
            "value_scores", failed, [],
            lambda: calculate_value_scores(subscriptions, payments, usage_counts),
        )
        summary = self._stage(
            "summary", failed, EMPTY_SUMMARY,
            lambda: spending_summary(subscriptions),
        )
        insights = self._stage(
            "insights", failed, [],
            lambda: generate_insights(subscriptions, payments, now),
        )

        logger.info(
            f"Pipeline complete. Trend: {trend.direction} ({trend.percentage}%). "
            f"Unusual charges: {len(unusual):,}. Scored: {len(value_scores):,}. "
            f"Failed stages: {failed or 'none'}."
        )

        return AnalyticsReport(
            generated_at=now.isoformat(),
            trend=trend,
            seasonal_patterns=seasonal,
            prediction=prediction,
            unusual_charges=unusual,
            value_scores=value_scores,
            summary=summary,
            insights=insights,
            failed_stages=failed,
        )

    # -------------------------------------------------------------------------
    # OUTPUT SERIALIZATION
    # -------------------------------------------------------------------------

    @staticmethod
    def value_scores_frame(report: AnalyticsReport) -> pd.DataFrame:
        """Flat DataFrame of value scores, highest score first."""
        columns = [
            "subscription_id", "name", "price", "billing_unit",
            "score", "value_tier", "cost_per_use", "recommendations",
        ]
        rows = [
            {
                "subscription_id": v.subscription.id,
                "name": v.subscription.name,
                "price": v.subscription.price,
                "billing_unit": v.subscription.billing_cycle.unit,
                "score": v.score,
                "value_tier": v.value_tier,
                "cost_per_use": v.cost_per_use,
                "recommendations": " | ".join(v.recommendations),
            }
            for v in report.value_scores
        ]
        return pd.DataFrame(rows, columns=columns)

    @staticmethod
    def unusual_charges_frame(report: AnalyticsReport) -> pd.DataFrame:
        """Flat DataFrame of unusual charges in detection order."""
        date_format = get_output_config()["date_format"]
        columns = [
            "payment_id", "subscription_id", "subscription_name",
            "amount", "date", "reason", "deviation",
        ]
        rows = [
            {
                "payment_id": c.payment.id,
                "subscription_id": c.payment.subscription_id,
                "subscription_name": c.subscription.name if c.subscription else None,
                "amount": c.payment.amount,
                "date": c.payment.date.strftime(date_format),
                "reason": c.reason,
                "deviation": c.deviation,
            }
            for c in report.unusual_charges
        ]
        return pd.DataFrame(rows, columns=columns)

    # -------------------------------------------------------------------------
    # INTERNAL
    # -------------------------------------------------------------------------

    @staticmethod
    def _stage(name: str, failed: List[str], default: Any, compute: Callable[[], Any]) -> Any:
        try:
            return compute()
        except Exception:
            logger.exception(f"Stage '{name}' failed; using default.")
            failed.append(name)
            return default
