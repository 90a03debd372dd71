"""
Config cache module for rating tables and explanation rules.

This module keeps the parsed YAML configuration in memory so that
quote requests never touch the disk.
"""

import math
from typing import Dict, Any, List, Optional
from threading import Lock

import yaml

from premium_engine.errors import RatingConfigError
from premium_engine.settings import get_settings

REQUIRED_SECTIONS = ("risk", "reference_risk", "pricing", "market")


def load_yaml(path: str) -> Dict[str, Any]:
    """Read a YAML mapping from disk."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise RatingConfigError(f"Config file not found at {path}") from e
    except yaml.YAMLError as e:
        raise RatingConfigError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise RatingConfigError(f"Config file {path} must contain a mapping")
    return data


def validate_rating_config(rating: Dict[str, Any]) -> None:
    """Check the sections and weight table the engine relies on."""
    missing = [section for section in REQUIRED_SECTIONS if section not in rating]
    if missing:
        raise RatingConfigError(f"Rating config missing sections: {', '.join(missing)}")

    weights = rating["risk"].get("weights", {})
    if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-9):
        raise RatingConfigError(f"Risk weights must sum to 1.0, got {sum(weights.values())}")

    market = rating["market"]
    for name, value in market["defaults"].items():
        low, high = market["bounds"][name]
        if not low <= value <= high:
            raise RatingConfigError(
                f"Market default {name}={value} outside its bounds [{low}, {high}]"
            )


class ConfigCache:
    """Thread-safe configuration cache."""

    def __init__(self, rating_path: Optional[str] = None, rules_path: Optional[str] = None):
        self._rating_path = rating_path
        self._rules_path = rules_path
        self._rating: Optional[Dict[str, Any]] = None
        self._rules: Optional[List[Dict[str, Any]]] = None
        self._lock = Lock()

    def get_rating_config(self) -> Dict[str, Any]:
        """Get cached rating tables, loading from disk if not cached."""
        if self._rating is None:
            with self._lock:
                if self._rating is None:  # Double-check locking
                    path = self._rating_path or get_settings().rating_config_path
                    rating = load_yaml(path)
                    validate_rating_config(rating)
                    self._rating = rating
        return self._rating

    def get_explanation_rules(self) -> List[Dict[str, Any]]:
        """Get cached explanation rules."""
        if self._rules is None:
            with self._lock:
                if self._rules is None:
                    path = self._rules_path or get_settings().explanation_rules_path
                    self._rules = load_yaml(path).get("rules", [])
        return self._rules

    def clear_cache(self):
        """Clear all cached data (useful for testing)."""
        with self._lock:
            self._rating = None
            self._rules = None

# Global cache instance
config_cache = ConfigCache()
