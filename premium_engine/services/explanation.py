"""
Explanation service for YAML-based pricing rationale rules.
"""

from typing import Dict, Any, List, Optional

from premium_engine.cache import config_cache
from premium_engine.schemas import RiskAssessment, MarketAnalysis


def _rule_value(rule: Dict[str, Any], context: Dict[str, Dict[str, float]]) -> Optional[float]:
    """Look up the value a rule tests, or None when it is not available."""
    source = context.get(rule.get("source"), {})
    value = source.get(rule.get("field"))
    if isinstance(value, (int, float)):
        return float(value)
    return None


def evaluate_rule(rule: Dict[str, Any], context: Dict[str, Dict[str, float]]) -> Optional[str]:
    """
    Evaluate one rule against the context.

    `above` is checked first; `below` only when `above` did not match.

    Returns:
        The matching message, or None
    """
    value = _rule_value(rule, context)
    if value is None:
        return None

    if "above" in rule and value > rule["above"]:
        return rule.get("above_message")
    if "below" in rule and value < rule["below"]:
        return rule.get("below_message")
    return None


def generate_explanation(
    risk_assessment: RiskAssessment,
    market_analysis: MarketAnalysis,
    rules: List[Dict[str, Any]] = None
) -> List[str]:
    """
    Generate rationale strings in rule order.

    Args:
        risk_assessment: Weighted risk assessment
        market_analysis: Market adjustment and its factors
        rules: Rule list (defaults to the cached explanation rules)

    Returns:
        Messages of every rule that matched, in rule order
    """
    if rules is None:
        rules = config_cache.get_explanation_rules()

    context = {
        "risk": {name: factor.score for name, factor in risk_assessment.breakdown.items()},
        "market": dict(market_analysis.factors),
    }

    explanations = []
    for rule in rules:
        message = evaluate_rule(rule, context)
        if message:
            explanations.append(message)

    return explanations
