"""
value_scoring.py
-----------------
Heuristic value score (0–100) per active subscription.

Scoring follows a consistent pattern:
    1. Start from a base score.
    2. Apply additive adjustments for price relative to the portfolio mean,
       usage frequency (only when a usage map is supplied) and billing cycle.
    3. Clamp to [0, 100] and map to a value tier.

Weights, thresholds and recommendation texts come from config.yaml.
"""

from typing import Dict, List, Optional

from core.aggregation import monthly_cost
from core.models import Payment, Subscription, ValueScore
from core.stats import mean
from config.config_loader import get_value_scoring_config


def calculate_value_scores(
    subscriptions: List[Subscription],
    payments: List[Payment],
    usage_counts: Optional[Dict[str, int]] = None,
) -> List[ValueScore]:
    """
    Score every active subscription.

    Args:
        subscriptions: All subscriptions. Inactive ones are not scored but
            still count toward the average price.
        payments: Accepted for interface symmetry; not used by the heuristic.
        usage_counts: Optional {subscription_id: uses per month}. When None,
            usage adjustments are disabled. An empty dict still enables them
            (every subscription then has usage 0).

    Returns:
        ValueScore list sorted by score, highest first. Ties keep input order.
    """
    config = get_value_scoring_config()
    if not subscriptions:
        return []

    average_price = mean([s.price for s in subscriptions])
    scores: List[ValueScore] = []

    for sub in subscriptions:
        if sub.status != "active":
            continue

        cost = monthly_cost(sub)
        usage = (usage_counts or {}).get(sub.id) or 0
        cost_per_use = cost / usage if usage > 0 else cost

        score = _score(sub, average_price, usage, usage_counts is not None, config)

        scores.append(ValueScore(
            subscription=sub,
            score=score,
            cost_per_use=round(cost_per_use, 2),
            value_tier=_assign_tier(score, config["tiers"]),
            recommendations=_recommendations(
                score, usage, usage_counts is not None, cost_per_use, cost, config
            ),
        ))

    return sorted(scores, key=lambda v: v.score, reverse=True)


def _score(
    sub: Subscription,
    average_price: float,
    usage: int,
    has_usage: bool,
    config: dict,
) -> int:
    score = config["base_score"]

    # Price relative to the mean price of all subscriptions
    price_cfg = config["price"]
    if sub.price < average_price * price_cfg["cheap_ratio"]:
        score += price_cfg["adjustment"]
    elif sub.price > average_price * price_cfg["expensive_ratio"]:
        score -= price_cfg["adjustment"]

    if has_usage:
        usage_cfg = config["usage"]
        if usage > usage_cfg["heavy_threshold"]:
            score += usage_cfg["heavy_bonus"]
        elif usage < usage_cfg["light_threshold"]:
            score -= usage_cfg["light_penalty"]

    # Monthly billing is easier to walk away from than yearly
    cycle_cfg = config["billing_cycle"]
    if sub.billing_cycle.unit == "monthly":
        score += cycle_cfg["monthly_bonus"]
    elif sub.billing_cycle.unit == "yearly":
        score -= cycle_cfg["yearly_penalty"]

    return int(round(max(0, min(100, score))))


def _assign_tier(score: int, tiers: Dict[str, int]) -> str:
    """Maps a score to the first tier whose minimum it reaches."""
    for tier_name, minimum in tiers.items():
        if score >= minimum:
            return tier_name
    return "poor"


def _recommendations(
    score: int,
    usage: int,
    has_usage: bool,
    cost_per_use: float,
    cost: float,
    config: dict,
) -> List[str]:
    messages = config["messages"]
    tiers = config["tiers"]
    recommendations: List[str] = []

    if score < tiers["average"]:
        recommendations.append(messages["cancel"])
    elif score < tiers["good"]:
        recommendations.append(messages["alternatives"])

    if has_usage and usage < config["usage"]["pause_threshold"]:
        recommendations.append(messages["pause"])

    if cost_per_use > cost * config["cost_per_use_ratio"]:
        recommendations.append(messages["use_more"])

    return recommendations
