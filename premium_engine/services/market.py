"""
Market service: simulated market state, adjustment factor and drift.
"""

from typing import Dict, Any, Optional, Union
from datetime import datetime
from threading import Lock
import logging
import math

import numpy as np

from premium_engine.cache import config_cache
from premium_engine.errors import QuoteValidationError
from premium_engine.schemas import MarketSnapshot, MarketAnalysis

logger = logging.getLogger("premium_engine")

MARKET_FACTORS = (
    "competitive_index",
    "economic_factor",
    "regulatory_factor",
    "claims_trend",
    "claim_frequency",
    "inflation_rate",
    "market_volatility",
)


class MarketState:
    """
    Mutable, lock-guarded market conditions.

    One instance is created at process start and passed to every call.
    Readers take snapshots; drift() is the only writer.
    """

    def __init__(self, values: Dict[str, float], bounds: Dict[str, Any], steps: Dict[str, float]):
        self._defaults = {name: float(values[name]) for name in MARKET_FACTORS}
        self._values = dict(self._defaults)
        self._bounds = {name: (float(bounds[name][0]), float(bounds[name][1])) for name in MARKET_FACTORS}
        self._steps = {name: float(steps[name]) for name in MARKET_FACTORS}
        self._tick_count = 0
        self._last_tick_at: Optional[datetime] = None
        self._lock = Lock()

    @classmethod
    def from_config(cls, rating: Dict[str, Any] = None) -> "MarketState":
        """Create a state initialised to the documented defaults."""
        market = (rating or config_cache.get_rating_config())["market"]
        return cls(market["defaults"], market["bounds"], market["drift_steps"])

    @property
    def bounds(self) -> Dict[str, tuple]:
        return dict(self._bounds)

    def snapshot(self) -> MarketSnapshot:
        """Return an immutable copy of the current values."""
        with self._lock:
            return MarketSnapshot(
                **self._values,
                tick_count=self._tick_count,
                last_tick_at=self._last_tick_at
            )

    def drift(self, rng: np.random.Generator, now: Optional[datetime] = None) -> MarketSnapshot:
        """
        Perturb every factor by an independent uniform step and clamp it.

        Args:
            rng: Random generator supplying the perturbations
            now: Time of the tick (defaults to the current time)

        Returns:
            Snapshot taken inside the same critical section
        """
        with self._lock:
            for name in MARKET_FACTORS:
                step = self._steps[name]
                low, high = self._bounds[name]
                value = self._values[name] + rng.uniform(-step, step)
                self._values[name] = float(min(max(value, low), high))
            self._tick_count += 1
            self._last_tick_at = now or datetime.now()
            return MarketSnapshot(
                **self._values,
                tick_count=self._tick_count,
                last_tick_at=self._last_tick_at
            )

    def reset(self):
        """Restore the defaults (useful for testing)."""
        with self._lock:
            self._values = dict(self._defaults)
            self._tick_count = 0
            self._last_tick_at = None


def validate_snapshot(snapshot: MarketSnapshot, rating: Dict[str, Any] = None) -> MarketSnapshot:
    """
    Reject a snapshot with non-finite or out-of-bounds factors.

    States produced by drift() always pass; caller-built snapshots may not.
    """
    bounds = (rating or config_cache.get_rating_config())["market"]["bounds"]
    errors = []
    for name in MARKET_FACTORS:
        value = getattr(snapshot, name)
        low, high = bounds[name]
        if not math.isfinite(value):
            errors.append(f"{name}: must be a finite number, got {value}")
        elif not low <= value <= high:
            errors.append(f"{name}: must be within [{low}, {high}], got {value}")

    if errors:
        raise QuoteValidationError(f"Invalid market snapshot: {'; '.join(errors)}", errors)
    return snapshot


def seasonal_factor(now: datetime, market: Dict[str, Any] = None) -> float:
    """Winter months price higher than the rest of the year."""
    seasonal = (market or config_cache.get_rating_config()["market"])["seasonal"]
    return seasonal["winter"] if now.month in seasonal["winter_months"] else seasonal["off_season"]


def weekend_factor(now: datetime, market: Dict[str, Any] = None) -> float:
    market = market or config_cache.get_rating_config()["market"]
    return market["weekend"] if now.weekday() >= 5 else 1.0


def compute_market_adjustment(
    market_state: Union[MarketState, MarketSnapshot],
    now: datetime,
    rating: Dict[str, Any] = None
) -> MarketAnalysis:
    """
    Compute the multiplicative market adjustment.

    Formula: adjustment = competitive * seasonal * weekend * economic
             * regulatory * claims_trend * claims_frequency * inflation

    Where:
    - seasonal: 1.08 November-March, 0.95 otherwise
    - weekend: 0.95 Saturday/Sunday, 1.0 otherwise
    - claims_frequency: 1 + (claim_frequency - 0.10) * 2
    - inflation: 1 + inflation_rate

    Args:
        market_state: Market state or snapshot (a state is snapshotted first)
        now: Timestamp the calendar factors are derived from
        rating: Rating config (defaults to the cached config)

    Returns:
        MarketAnalysis with the adjustment and its named factors
    """
    snapshot = market_state.snapshot() if isinstance(market_state, MarketState) else market_state
    market = (rating or config_cache.get_rating_config())["market"]

    factors = {
        "competitive": snapshot.competitive_index,
        "seasonal": seasonal_factor(now, market),
        "weekend": weekend_factor(now, market),
        "economic": snapshot.economic_factor,
        "regulatory": snapshot.regulatory_factor,
        "claims_trend": snapshot.claims_trend,
        "claims_frequency": 1 + (
            snapshot.claim_frequency - market["claims_frequency_baseline"]
        ) * market["claims_frequency_sensitivity"],
        "inflation": 1 + snapshot.inflation_rate,
    }

    adjustment = 1.0
    for value in factors.values():
        adjustment *= value

    # Informational only; volatility does not move the price. Both hours inclusive
    open_hour, close_hour = market["business_hours"]
    volatility = snapshot.market_volatility
    if open_hour <= now.hour <= close_hour:
        volatility += market["business_hours_volatility"]

    return MarketAnalysis(
        adjustment=adjustment,
        factors=factors,
        volatility=volatility,
        as_of=now
    )
