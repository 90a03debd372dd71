"""
Market router for inspecting and advancing the simulated market.
"""

from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
import logging

import numpy as np

from premium_engine.deps import get_market_state, get_drift_rng
from premium_engine.schemas import (
    MarketSnapshot,
    MarketStatusResponse,
    SimulationRequest,
    SimulationResult,
)
from premium_engine.services.market import MarketState, compute_market_adjustment
from premium_engine.services.quote import tick_market
from premium_engine.services.simulate import run_market_simulation

logger = logging.getLogger("premium_engine")

router = APIRouter()


@router.get("/market", response_model=MarketStatusResponse)
async def get_market(market: MarketState = Depends(get_market_state)):
    """Current market factors and the adjustment they produce now."""
    snapshot = market.snapshot()
    return MarketStatusResponse(
        state=snapshot,
        analysis=compute_market_adjustment(snapshot, datetime.now())
    )


@router.post("/market/tick", response_model=MarketSnapshot)
async def force_market_tick(
    market: MarketState = Depends(get_market_state),
    rng: np.random.Generator = Depends(get_drift_rng)
):
    """Apply one drift tick immediately."""
    snapshot = tick_market(market, rng)
    logger.info(f"Forced market tick | tick={snapshot.tick_count}")
    return snapshot


@router.post("/market/simulate", response_model=SimulationResult)
async def simulate_market(
    request: SimulationRequest,
    market: MarketState = Depends(get_market_state)
):
    """
    Run the drift process forward from the current market state.

    This endpoint:
    1. Copies the current market state
    2. Drifts the copy `tick_count` times with a seeded generator
    3. Returns adjustment statistics and the final state

    The live market state is left untouched.
    """
    try:
        results = run_market_simulation(
            tick_count=request.tick_count,
            seed=request.seed,
            start=market.snapshot()
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SimulationResult(**results)
