"""
Simulation service for market drift analysis.
"""

from typing import Dict, Any, List
from datetime import datetime
import statistics

import numpy as np

from premium_engine.cache import config_cache
from premium_engine.schemas import MarketSnapshot
from premium_engine.services.market import MarketState, MARKET_FACTORS, compute_market_adjustment

MAX_TICKS = 10000


def run_market_simulation(
    tick_count: int,
    seed: int = 42,
    start: MarketSnapshot = None,
    now: datetime = None,
    rating: Dict[str, Any] = None
) -> Dict[str, Any]:
    """
    Run the drift process forward on a private copy of the market.

    The process-wide state is never touched. Calendar factors are held at
    `now` so the statistics reflect drift alone.

    Args:
        tick_count: Number of drift ticks (1-10000)
        seed: Seed for the drift generator
        start: Starting snapshot (documented defaults when omitted)
        now: Timestamp for the calendar factors
        rating: Rating config (defaults to the cached config)

    Returns:
        Adjustment path statistics, final state and factors sitting on a bound
    """
    if tick_count <= 0 or tick_count > MAX_TICKS:
        raise ValueError(f"tick_count must be between 1 and {MAX_TICKS}, got {tick_count}")

    rating = rating or config_cache.get_rating_config()
    market = rating["market"]
    now = now or datetime.now()

    values = start.model_dump() if start is not None else market["defaults"]
    state = MarketState(values, market["bounds"], market["drift_steps"])
    rng = np.random.default_rng(seed)

    adjustments = _simulate_path(state, rng, tick_count, now, rating)
    final_state = state.snapshot()

    return {
        "tick_count": tick_count,
        "seed": seed,
        "adjustment_statistics": _path_statistics(adjustments),
        "final_state": final_state,
        "factors_at_bounds": _factors_at_bounds(final_state, state.bounds),
    }


def _simulate_path(
    state: MarketState,
    rng: np.random.Generator,
    tick_count: int,
    now: datetime,
    rating: Dict[str, Any]
) -> List[float]:
    """Drift once per tick and record the adjustment after each."""
    adjustments = []
    for _ in range(tick_count):
        snapshot = state.drift(rng, now)
        adjustments.append(compute_market_adjustment(snapshot, now, rating).adjustment)
    return adjustments


def _path_statistics(adjustments: List[float]) -> Dict[str, float]:
    path = np.asarray(adjustments)
    return {
        "mean": statistics.mean(adjustments),
        "std_dev": statistics.stdev(adjustments) if len(adjustments) > 1 else 0.0,
        "min": float(path.min()),
        "max": float(path.max()),
        "p05": float(np.percentile(path, 5)),
        "p95": float(np.percentile(path, 95)),
        "final": adjustments[-1],
    }


def _factors_at_bounds(snapshot: MarketSnapshot, bounds: Dict[str, tuple]) -> List[str]:
    """Names of factors pinned at either end of their clamp range."""
    pinned = []
    for name in MARKET_FACTORS:
        low, high = bounds[name]
        value = getattr(snapshot, name)
        if value <= low or value >= high:
            pinned.append(name)
    return pinned
