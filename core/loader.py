"""
loader.py
----------
Turns exported app data into engine models.

Supported sources:
    - CSV exports (one file per record type), read with pandas.
    - A JSON snapshot {"subscriptions": [...], "payments": [...]} using the
      app's camelCase record shape.

Loaders validate their input and raise; they never substitute defaults for
missing columns.
"""

import json
import logging
from typing import Dict, List, Tuple

import pandas as pd

from core.models import BillingCycle, Payment, Subscription, to_date

logger = logging.getLogger(__name__)


SUBSCRIPTION_COLUMNS = [
    "id", "name", "price", "billing_unit", "billing_interval", "status", "start_date",
]
PAYMENT_COLUMNS = ["id", "subscription_id", "amount", "date", "status"]
USAGE_COLUMNS = ["subscription_id", "usage_count"]


def _require_columns(df: pd.DataFrame, required: List[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


# -----------------------------------------------------------------------------
# DATAFRAME -> MODELS
# -----------------------------------------------------------------------------

def subscriptions_from_frame(df: pd.DataFrame) -> List[Subscription]:
    _require_columns(df, SUBSCRIPTION_COLUMNS)
    return [
        Subscription(
            id=str(row["id"]),
            name=str(row["name"]),
            price=float(row["price"]),
            billing_cycle=BillingCycle(
                unit=str(row["billing_unit"]),
                interval=int(row["billing_interval"]),
            ),
            status=str(row["status"]),
            start_date=to_date(row["start_date"]),
        )
        for row in df.to_dict(orient="records")
    ]


def payments_from_frame(df: pd.DataFrame) -> List[Payment]:
    _require_columns(df, PAYMENT_COLUMNS)
    return [
        Payment(
            id=str(row["id"]),
            subscription_id=str(row["subscription_id"]),
            amount=float(row["amount"]),
            date=to_date(row["date"]),
            status=str(row["status"]),
        )
        for row in df.to_dict(orient="records")
    ]


def usage_from_frame(df: pd.DataFrame) -> Dict[str, int]:
    _require_columns(df, USAGE_COLUMNS)
    return {
        str(row["subscription_id"]): int(row["usage_count"])
        for row in df.to_dict(orient="records")
    }


# -----------------------------------------------------------------------------
# FILES -> MODELS
# -----------------------------------------------------------------------------

def load_subscriptions_csv(path: str) -> List[Subscription]:
    # Keep ids as strings so "007" does not become 7
    df = pd.read_csv(path, dtype={"id": str})
    subscriptions = subscriptions_from_frame(df)
    logger.info(f"Loaded {len(subscriptions):,} subscriptions from {path}.")
    return subscriptions


def load_payments_csv(path: str) -> List[Payment]:
    df = pd.read_csv(path, dtype={"id": str, "subscription_id": str})
    payments = payments_from_frame(df)
    logger.info(f"Loaded {len(payments):,} payments from {path}.")
    return payments


def load_usage_csv(path: str) -> Dict[str, int]:
    df = pd.read_csv(path, dtype={"subscription_id": str})
    return usage_from_frame(df)


def load_snapshot_json(path: str) -> Tuple[List[Subscription], List[Payment]]:
    """
    Reads a JSON snapshot with "subscriptions" and "payments" arrays.

    Raises:
        KeyError: If a record is missing a required field.
        ValueError: If a date cannot be parsed.
    """
    with open(path, "r") as f:
        data = json.load(f)

    subscriptions = [Subscription.from_dict(s) for s in data.get("subscriptions", [])]
    payments = [Payment.from_dict(p) for p in data.get("payments", [])]
    logger.info(
        f"Loaded snapshot {path}: {len(subscriptions):,} subscriptions, "
        f"{len(payments):,} payments."
    )
    return subscriptions, payments
