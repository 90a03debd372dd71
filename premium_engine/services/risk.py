"""
Risk scoring service for the weighted applicant risk model.

Every factor produces a sub-score in [0, 1]; the total is the weighted sum
of the sub-scores, clamped to [0, 1].
"""

from typing import Dict, Any, Optional, Tuple, List
import logging
import re

from premium_engine.cache import config_cache
from premium_engine.schemas import ApplicantProfile, FactorScore, RiskAssessment

logger = logging.getLogger("premium_engine")

# Evaluation order, which is also the breakdown order
FACTOR_ORDER = (
    "age",
    "driving_history",
    "vehicle",
    "location",
    "credit",
    "mileage",
    "experience",
)

ZIP_PATTERN = re.compile(r"^(\d{5})(-\d{4})?$")


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def _risk_table(name: str, table: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if table is not None:
        return table
    return config_cache.get_rating_config()["risk"][name]


def normalize_category(value: Any) -> str:
    """Lower-case and trim a categorical input; None becomes ''."""
    return str(value if value is not None else "").strip().lower()


def calculate_age_risk(age: int, table: Dict[str, Any] = None) -> float:
    """
    U-shaped age curve.

    Young drivers start at 0.8 at 16 and fall 0.05 per year until 25.
    Senior drivers rise 0.02 per year after 65. In between the score sits
    near 0.2 with a shallow dip centred on 45.
    """
    t = _risk_table("age", table)
    if age < t["young_limit"]:
        score = t["young_base"] - (age - t["young_start"]) * t["young_slope"]
    elif age > t["senior_limit"]:
        score = t["senior_base"] + (age - t["senior_limit"]) * t["senior_slope"]
    else:
        score = t["prime_base"] + abs(age - t["prime_center"]) * t["prime_slope"]
    return _clamp(score)


def calculate_driving_risk(accidents: int, violations: int, table: Dict[str, Any] = None) -> float:
    """Base risk plus a fixed penalty per accident and per violation, capped at 1."""
    t = _risk_table("driving_history", table)
    score = t["base"] + accidents * t["per_accident"] + violations * t["per_violation"]
    return _clamp(score)


def calculate_vehicle_risk(
    vehicle_type: str,
    vehicle_value: float,
    table: Dict[str, Any] = None
) -> Tuple[float, Optional[str]]:
    """
    Vehicle type risk scaled by value relative to the reference value.

    Returns:
        Tuple of (score, warning) where warning is set when the type was
        not recognised and the default type risk was used.
    """
    t = _risk_table("vehicle", table)
    key = normalize_category(vehicle_type)
    warning = None

    type_risk = t["types"].get(key)
    if type_risk is None:
        type_risk = t["default"]
        warning = f"Unknown vehicle_type '{vehicle_type}', using default risk {type_risk}"

    value_multiplier = min(vehicle_value / t["reference_value"], t["max_value_multiplier"])
    return _clamp(type_risk * value_multiplier), warning


def resolve_area(location: str, table: Dict[str, Any] = None) -> Optional[str]:
    """
    Resolve a zip code or area name to urban/suburban/rural.

    Zip codes are classified by their last digit. Returns None when the
    location cannot be resolved.
    """
    t = _risk_table("location", table)
    key = normalize_category(location)

    if key in t["areas"]:
        return key

    match = ZIP_PATTERN.match(key)
    if match:
        last_digit = int(match.group(1)[-1])
        return "urban" if last_digit < t["zip_urban_below"] else "rural"

    return None


def calculate_location_risk(location: str, table: Dict[str, Any] = None) -> Tuple[float, Optional[str]]:
    """Categorical location risk. Unresolvable locations use the default."""
    t = _risk_table("location", table)
    area = resolve_area(location, t)
    if area is None:
        return t["default"], f"Unknown location '{location}', using default risk {t['default']}"
    return t["areas"][area], None


def calculate_credit_risk(credit_score: int, table: Dict[str, Any] = None) -> float:
    t = _risk_table("credit", table)
    for band in t["bands"]:
        if credit_score >= band["floor"]:
            return band["score"]
    return t["default"]


def calculate_mileage_risk(annual_mileage: int, table: Dict[str, Any] = None) -> float:
    t = _risk_table("mileage", table)
    return min(annual_mileage / t["cap"], 1.0) * t["scale"]


def calculate_experience_risk(years_licensed: int, table: Dict[str, Any] = None) -> float:
    """Falls linearly with licensing years down to a floor."""
    t = _risk_table("experience", table)
    return _clamp(max(t["base"] - years_licensed * t["per_year"], t["floor"]))


def map_score_to_risk_level(score: float, risk_table: Dict[str, Any] = None) -> str:
    """
    Map a total score to a risk level.

    Levels:
    - Low: <0.3
    - Medium: <0.5
    - High: <0.7
    - Very High: else
    """
    if risk_table is None:
        risk_table = config_cache.get_rating_config()["risk"]
    for level in risk_table["levels"]:
        if score < level["limit"]:
            return level["label"]
    return risk_table["top_level"]


def calculate_risk_assessment(
    profile: ApplicantProfile,
    rating: Dict[str, Any] = None
) -> RiskAssessment:
    """
    Calculate the weighted risk assessment for an applicant.

    Args:
        profile: Validated applicant profile
        rating: Rating config (defaults to the cached config)

    Returns:
        RiskAssessment with total score, ordered per-factor breakdown,
        risk level and any unknown-category warnings
    """
    risk = (rating or config_cache.get_rating_config())["risk"]
    weights = risk["weights"]
    warnings: List[str] = []

    vehicle_score, vehicle_warning = calculate_vehicle_risk(
        profile.vehicle_type, profile.vehicle_value, risk["vehicle"]
    )
    location_score, location_warning = calculate_location_risk(profile.location, risk["location"])

    scores = {
        "age": calculate_age_risk(profile.age, risk["age"]),
        "driving_history": calculate_driving_risk(
            profile.accidents, profile.violations, risk["driving_history"]
        ),
        "vehicle": vehicle_score,
        "location": location_score,
        "credit": calculate_credit_risk(profile.credit_score, risk["credit"]),
        "mileage": calculate_mileage_risk(profile.annual_mileage, risk["mileage"]),
        "experience": calculate_experience_risk(profile.years_licensed, risk["experience"]),
    }

    for warning in (vehicle_warning, location_warning):
        if warning:
            logger.warning(warning)
            warnings.append(warning)

    breakdown: Dict[str, FactorScore] = {}
    total_score = 0.0
    for name in FACTOR_ORDER:
        contribution = scores[name] * weights[name]
        total_score += contribution
        breakdown[name] = FactorScore(
            score=scores[name],
            weight=weights[name],
            contribution=contribution
        )

    total_score = _clamp(total_score)

    return RiskAssessment(
        total_score=total_score,
        breakdown=breakdown,
        risk_level=map_score_to_risk_level(total_score, risk),
        warnings=warnings
    )
