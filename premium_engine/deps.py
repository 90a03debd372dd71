"""
Dependencies that hand the process-wide market objects to endpoints.
"""

from fastapi import Request
import numpy as np

from premium_engine.services.market import MarketState


def get_market_state(request: Request) -> MarketState:
    """The single MarketState created at process start."""
    return request.app.state.market


def get_drift_rng(request: Request) -> np.random.Generator:
    """Random generator shared by the drift ticker and forced ticks."""
    return request.app.state.drift_rng
