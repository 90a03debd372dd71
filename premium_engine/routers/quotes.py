"""
Quotes router for premium quote requests.
"""

from fastapi import APIRouter, Depends, Query, Request
from typing import Optional
from datetime import datetime
import logging

from premium_engine.deps import get_market_state
from premium_engine.schemas import ApplicantProfile, Quote
from premium_engine.services.market import MarketState
from premium_engine.services.quote import compute_quote

logger = logging.getLogger("premium_engine")

router = APIRouter()


@router.post("/quotes", response_model=Quote)
async def create_quote(
    profile: ApplicantProfile,
    request_obj: Request,
    as_of: Optional[datetime] = Query(None, description="Quote time; defaults to now"),
    market: MarketState = Depends(get_market_state)
):
    """
    Create a new premium quote.

    This endpoint:
    1. Validates the applicant profile
    2. Takes one snapshot of the market state
    3. Scores risk, computes the market adjustment and prices the premium
    4. Returns the quote with its breakdown and rationale

    The same profile, market snapshot and `as_of` always return the same quote.
    """
    request_id = getattr(request_obj.state, "request_id", "unknown")
    now = as_of or datetime.now()
    snapshot = market.snapshot()

    logger.info(
        f"Processing quote request | request_id={request_id} | "
        f"coverage={profile.coverage_level} | market_tick={snapshot.tick_count}"
    )

    quote = compute_quote(profile, snapshot, now)

    logger.info(
        f"Quote created | request_id={request_id} | "
        f"risk_level={quote.risk_assessment.risk_level} | "
        f"risk_score={quote.risk_assessment.total_score:.4f} | "
        f"market_adjustment={quote.market_analysis.adjustment:.4f} | "
        f"final_premium={quote.pricing.final_premium:.2f}"
    )

    return quote
