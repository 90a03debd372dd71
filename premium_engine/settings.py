"""
Process settings read from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "config")


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    return value if value is not None and value != "" else default


@dataclass(frozen=True)
class Settings:
    rating_config_path: str
    explanation_rules_path: str
    market_tick_seconds: float
    market_seed: Optional[int]
    slow_quote_ms: float
    log_level: str


def get_settings() -> Settings:
    """
    Build settings from environment variables.

    Env:
      RATING_CONFIG_PATH      (default: bundled config/rating.yaml)
      EXPLANATION_RULES_PATH  (default: bundled config/explanations.yaml)
      MARKET_TICK_SECONDS     (default: 3)
      MARKET_SEED             (optional, seeds the drift generator)
      SLOW_QUOTE_MS           (default: 250)
      LOG_LEVEL               (default: INFO)
    """
    seed = _env("MARKET_SEED")
    return Settings(
        rating_config_path=_env("RATING_CONFIG_PATH", os.path.join(CONFIG_DIR, "rating.yaml")),
        explanation_rules_path=_env(
            "EXPLANATION_RULES_PATH", os.path.join(CONFIG_DIR, "explanations.yaml")
        ),
        market_tick_seconds=float(_env("MARKET_TICK_SECONDS", "3")),
        market_seed=int(seed) if seed is not None else None,
        slow_quote_ms=float(_env("SLOW_QUOTE_MS", "250")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
