"""
Pricing service for calculating insurance premiums.
"""

from typing import Dict, Any, Tuple
import logging
import math

from premium_engine.cache import config_cache
from premium_engine.errors import QuoteValidationError
from premium_engine.schemas import PremiumBreakdown, PaymentOptions
from premium_engine.services.risk import normalize_category

logger = logging.getLogger("premium_engine")


def resolve_coverage_multiplier(coverage_level: str, pricing: Dict[str, Any] = None) -> Tuple[str, float]:
    """
    Resolve a coverage tier (or one of its aliases) to its multiplier.

    Tiers: basic 0.7, standard 1.0, comprehensive 1.4, premium 1.8.
    Aliases: liability -> basic, collision -> standard, full -> premium.
    Unknown tiers price at 1.0 and are returned as-is.

    Returns:
        Tuple of (resolved tier, multiplier)
    """
    pricing = pricing or config_cache.get_rating_config()["pricing"]
    tier = normalize_category(coverage_level)
    tier = pricing["coverage_aliases"].get(tier, tier)

    multiplier = pricing["coverage"].get(tier)
    if multiplier is None:
        logger.warning(
            f"Unknown coverage_level '{coverage_level}', using default multiplier "
            f"{pricing['coverage_default']}"
        )
        return tier, pricing["coverage_default"]
    return tier, multiplier


def calculate_payment_options(final_premium: float, pricing: Dict[str, Any] = None) -> PaymentOptions:
    pricing = pricing or config_cache.get_rating_config()["pricing"]
    installments = pricing["installments"]
    return PaymentOptions(
        annual=round(final_premium / installments["annual"], 2),
        semi_annual=round(final_premium / installments["semi_annual"], 2),
        monthly=round(final_premium / installments["monthly"], 2)
    )


def calculate_premium(
    risk_score: float,
    market_adjustment: float,
    coverage_level: str,
    rating: Dict[str, Any] = None
) -> PremiumBreakdown:
    """
    Calculate the itemized premium.

    Pipeline:
    1. risk_adjusted = base_premium * (1 + risk_score * 2)
    2. coverage_adjusted = risk_adjusted * coverage_multiplier
    3. market_adjusted = coverage_adjusted * market_adjustment
    4. final = market_adjusted * (1 + profit_margin + operational_costs + reserve)

    Args:
        risk_score: Weighted risk score in [0, 1]
        market_adjustment: Multiplicative market adjustment (> 0)
        coverage_level: Coverage tier or alias
        rating: Rating config (defaults to the cached config)

    Returns:
        PremiumBreakdown with every intermediate stage
    """
    if not math.isfinite(risk_score) or not 0.0 <= risk_score <= 1.0:
        raise QuoteValidationError(f"risk_score must be within [0, 1], got {risk_score}")
    if not math.isfinite(market_adjustment) or market_adjustment <= 0:
        raise QuoteValidationError(f"market_adjustment must be a positive finite number, got {market_adjustment}")

    pricing = (rating or config_cache.get_rating_config())["pricing"]
    base_premium = float(pricing["base_premium"])

    # 1. Risk
    risk_multiplier = 1 + risk_score * pricing["risk_loading"]
    risk_adjusted_premium = base_premium * risk_multiplier

    # 2. Coverage
    tier, coverage_multiplier = resolve_coverage_multiplier(coverage_level, pricing)
    coverage_adjusted_premium = risk_adjusted_premium * coverage_multiplier

    # 3. Market
    market_adjusted_premium = coverage_adjusted_premium * market_adjustment

    # 4. Costs, margin and reserve
    operational_costs = market_adjusted_premium * pricing["operational_costs"]
    profit_margin = market_adjusted_premium * pricing["profit_margin"]
    regulatory_reserve = market_adjusted_premium * pricing["reserve_requirement"]
    cost_loading = 1 + pricing["profit_margin"] + pricing["operational_costs"] + pricing["reserve_requirement"]
    final_premium = market_adjusted_premium * cost_loading

    return PremiumBreakdown(
        base_premium=base_premium,
        risk_adjusted_premium=risk_adjusted_premium,
        coverage_adjusted_premium=coverage_adjusted_premium,
        market_adjusted_premium=market_adjusted_premium,
        operational_costs=operational_costs,
        profit_margin=profit_margin,
        regulatory_reserve=regulatory_reserve,
        final_premium=final_premium,
        coverage_level=tier,
        multipliers={
            "risk": risk_multiplier,
            "coverage": coverage_multiplier,
            "market": market_adjustment,
            "cost_loading": cost_loading,
        },
        adjustments={
            "risk": risk_adjusted_premium - base_premium,
            "coverage": coverage_adjusted_premium - risk_adjusted_premium,
            "market": market_adjusted_premium - coverage_adjusted_premium,
            "costs_and_margin": final_premium - market_adjusted_premium,
        },
        payment_options=calculate_payment_options(final_premium, pricing)
    )
