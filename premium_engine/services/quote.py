"""
Quote service: the entry points the outer layers call.
"""

from typing import Dict, Any, List, Union, Mapping
from datetime import datetime
import logging

import numpy as np
from pydantic import ValidationError

from premium_engine.cache import config_cache
from premium_engine.errors import QuoteValidationError
from premium_engine.schemas import ApplicantProfile, MarketSnapshot, Quote
from premium_engine.services.explanation import generate_explanation
from premium_engine.services.market import (
    MarketState,
    compute_market_adjustment,
    validate_snapshot,
)
from premium_engine.services.pricing import calculate_premium
from premium_engine.services.reference_risk import calculate_reference_risk_profile, cross_check
from premium_engine.services.risk import calculate_risk_assessment

logger = logging.getLogger("premium_engine")


def validate_profile(profile: Union[ApplicantProfile, Mapping[str, Any]]) -> ApplicantProfile:
    """Return a validated profile or raise QuoteValidationError."""
    if isinstance(profile, ApplicantProfile):
        return profile
    try:
        return ApplicantProfile.model_validate(dict(profile))
    except ValidationError as e:
        raise QuoteValidationError.from_pydantic(e) from e
    except (TypeError, ValueError) as e:
        raise QuoteValidationError(f"Invalid applicant profile: {e}") from e


def compute_quote(
    profile: Union[ApplicantProfile, Mapping[str, Any]],
    market: Union[MarketState, MarketSnapshot],
    now: datetime,
    rating: Dict[str, Any] = None,
    rules: List[Dict[str, Any]] = None
) -> Quote:
    """
    Compute a complete quote.

    This function:
    1. Validates the profile and a caller-supplied snapshot
       (fails before any pricing stage)
    2. Scores risk with the weighted model
    3. Cross-checks the score against the reference model
    4. Computes the market adjustment from a single snapshot
    5. Prices the premium pipeline
    6. Generates the rationale

    Args:
        profile: Applicant profile or a mapping to validate into one
        market: Market state (snapshotted once) or snapshot
        now: Quote timestamp, also drives the calendar market factors
        rating: Rating config (defaults to the cached config)
        rules: Explanation rules (default to the cached rule file)

    Returns:
        Quote; identical inputs produce an identical quote
    """
    applicant = validate_profile(profile)
    rating = rating or config_cache.get_rating_config()
    if isinstance(market, MarketState):
        snapshot = market.snapshot()
    else:
        snapshot = validate_snapshot(market, rating)

    risk_assessment = calculate_risk_assessment(applicant, rating)
    reference_check = cross_check(
        risk_assessment,
        calculate_reference_risk_profile(applicant, rating),
        rating
    )
    market_analysis = compute_market_adjustment(snapshot, now, rating)

    pricing = calculate_premium(
        risk_assessment.total_score,
        market_analysis.adjustment,
        applicant.coverage_level,
        rating
    )

    explanation = generate_explanation(risk_assessment, market_analysis, rules)

    logger.debug(
        f"Quote computed | risk_score={risk_assessment.total_score:.4f} | "
        f"risk_level={risk_assessment.risk_level} | "
        f"market_adjustment={market_analysis.adjustment:.4f} | "
        f"final_premium={pricing.final_premium:.2f}"
    )

    return Quote(
        risk_assessment=risk_assessment,
        market_analysis=market_analysis,
        pricing=pricing,
        explanation=explanation,
        reference_check=reference_check,
        timestamp=now
    )


def tick_market(market: MarketState, rng: np.random.Generator = None, now: datetime = None) -> MarketSnapshot:
    """
    Advance the market by one drift tick.

    Args:
        market: Process-wide market state, mutated in place
        rng: Random generator (a fresh unseeded one when omitted)
        now: Tick time

    Returns:
        Snapshot of the state after the tick
    """
    snapshot = market.drift(rng if rng is not None else np.random.default_rng(), now)
    logger.debug(
        f"Market tick | tick={snapshot.tick_count} | "
        f"competitive_index={snapshot.competitive_index:.4f} | "
        f"claims_trend={snapshot.claims_trend:.4f}"
    )
    return snapshot
