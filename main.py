"""
main.py
--------
Entry point for the Subscription Spending Analytics engine.

Loads a subscriptions/payments snapshot, runs the full analytics pipeline,
and writes the report to the outputs/ folder.

Usage (from the project root):
    python main.py --snapshot path/to/snapshot.json

    # Or from CSV exports:
    python main.py --subscriptions subs.csv --payments payments.csv
    python main.py --snapshot snapshot.json --usage usage.csv --months 12
    python main.py --snapshot snapshot.json --now 2025-06-15 --threshold 2.0
"""

import sys
import os
import json
import argparse
import logging
from datetime import datetime

# Ensure project root is on path (for runs from any working directory)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from pipeline import AnalyticsPipeline, AnalyticsReport
from core.loader import (
    load_payments_csv,
    load_snapshot_json,
    load_subscriptions_csv,
    load_usage_csv,
)


# =============================================================================
# LOGGING SETUP
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("main")


MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Subscription Spending Analytics — trends, forecasts, anomalies and value scores."
    )
    parser.add_argument(
        "--snapshot", type=str, default=None,
        help="Path to a JSON snapshot with 'subscriptions' and 'payments' arrays."
    )
    parser.add_argument(
        "--subscriptions", type=str, default=None,
        help="Path to subscriptions CSV (used when --snapshot is not given)."
    )
    parser.add_argument(
        "--payments", type=str, default=None,
        help="Path to payments CSV (used when --snapshot is not given)."
    )
    parser.add_argument(
        "--usage", type=str, default=None,
        help="Optional CSV of subscription_id,usage_count for value scoring."
    )
    parser.add_argument(
        "--months", type=int, default=None,
        help="Trend window in calendar months. Defaults to config value (6)."
    )
    parser.add_argument(
        "--threshold", type=float, default=None,
        help="z-score threshold for unusual charges. Defaults to config value (2.5)."
    )
    parser.add_argument(
        "--now", type=str, default=None,
        help="Reference date (YYYY-MM-DD). Defaults to the system clock."
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Output directory. Defaults to outputs/ in project root."
    )
    args = parser.parse_args(argv)

    if args.snapshot is None and (args.subscriptions is None or args.payments is None):
        parser.error("provide --snapshot, or both --subscriptions and --payments")

    return args


# =============================================================================
# MAIN
# =============================================================================

def main(argv=None):
    args = parse_args(argv)
    output_dir = args.output_dir or os.path.join(PROJECT_ROOT, "outputs")
    os.makedirs(output_dir, exist_ok=True)

    # --- Load snapshot ---
    for path in (args.snapshot, args.subscriptions, args.payments, args.usage):
        if path is not None and not os.path.exists(path):
            logger.error(f"Input file not found: {path}")
            sys.exit(1)

    if args.snapshot:
        subscriptions, payments = load_snapshot_json(args.snapshot)
    else:
        subscriptions = load_subscriptions_csv(args.subscriptions)
        payments = load_payments_csv(args.payments)

    usage_counts = load_usage_csv(args.usage) if args.usage else None

    # --- Run pipeline ---
    pipeline = AnalyticsPipeline(now=args.now, months=args.months, anomaly_threshold=args.threshold)
    report = pipeline.run(subscriptions, payments, usage_counts)

    # --- Output ---
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    report_path = os.path.join(output_dir, f"report_{timestamp}.json")
    with open(report_path, "w") as f:
        json.dump(report.to_dict(), f, indent=2)
    logger.info(f"Report saved to: {report_path}")

    scores_path = os.path.join(output_dir, f"value_scores_{timestamp}.csv")
    pipeline.value_scores_frame(report).to_csv(scores_path, index=False)
    logger.info(f"Value scores saved to: {scores_path}")

    unusual = pipeline.unusual_charges_frame(report)
    if not unusual.empty:
        unusual_path = os.path.join(output_dir, f"unusual_charges_{timestamp}.csv")
        unusual.to_csv(unusual_path, index=False)
        logger.info(f"Unusual charges saved to: {unusual_path}")

    for stage in report.failed_stages:
        logger.warning(f"Stage '{stage}' fell back to its default output.")

    _print_summary(report)


def _print_summary(report: AnalyticsReport):
    """Prints a clean summary to the console."""
    print("\n" + "=" * 80)
    print("  SUBSCRIPTION SPENDING SUMMARY")
    print("=" * 80)

    s = report.summary
    print(f"\n  Monthly: {s.total_monthly:>10,.2f}    Yearly: {s.total_yearly:>10,.2f}")
    print(f"  Active: {s.active_count}   Paused: {s.paused_count}   Cancelled: {s.cancelled_count}")

    t = report.trend
    print(f"\n  Trend: {t.direction} ({t.percentage:.1f}%), confidence {t.confidence}, "
          f"forecast {t.forecast:,.2f}")

    p = report.prediction
    print(f"  Next month: {p.next_month:,.2f}   Next quarter: {p.next_quarter:,.2f}   "
          f"Next year: {p.next_year:,.2f}")
    for rec in p.recommendations:
        print(f"    - {rec}")

    peaks = [MONTH_NAMES[sp.month] for sp in report.seasonal_patterns if sp.is_peak]
    lows = [MONTH_NAMES[sp.month] for sp in report.seasonal_patterns if sp.is_low]
    print(f"\n  Seasonal peak: {', '.join(peaks) or '-'}   Low: {', '.join(lows) or '-'}")

    print(f"\n  Unusual charges: {len(report.unusual_charges)}")
    for charge in report.unusual_charges:
        name = charge.subscription.name if charge.subscription else charge.payment.subscription_id
        print(f"    {name:30s} {charge.payment.amount:>10,.2f}  {charge.reason}")

    print("\n  Value scores:")
    print("  " + "-" * 60)
    for v in report.value_scores:
        print(f"    {v.subscription.name:30s} {v.score:>3d}  {v.value_tier:10s} "
              f"cost/use {v.cost_per_use:,.2f}")

    print("=" * 80 + "\n")


if __name__ == "__main__":
    main()
