"""
Multiplicative reference risk model.

Each factor is a banded multiplier centred near 1.0 and the total is
base_risk (100) times their product. This model never prices a quote;
it only cross-checks that the weighted assessment lands in a plausible
range.
"""

from typing import Dict, Any, List
import logging

from premium_engine.cache import config_cache
from premium_engine.schemas import ApplicantProfile, RiskAssessment, ReferenceCheck
from premium_engine.services.risk import normalize_category, resolve_area

logger = logging.getLogger("premium_engine")


def _band_below(value: float, bands: List[Dict[str, float]], default: float) -> float:
    for band in bands:
        if value < band["below"]:
            return band["multiplier"]
    return default


def _band_above(value: float, bands: List[Dict[str, float]], default: float) -> float:
    for band in bands:
        if value > band["above"]:
            return band["multiplier"]
    return default


def classify_driving_record(accidents: int, violations: int) -> str:
    """
    Collapse incident counts into a driving record category.

    - clean: no incidents
    - minor: violations only
    - major: one accident
    - severe: two or more accidents
    """
    if accidents >= 2:
        return "severe"
    if accidents == 1:
        return "major"
    if violations > 0:
        return "minor"
    return "clean"


def calculate_reference_risk_profile(
    profile: ApplicantProfile,
    rating: Dict[str, Any] = None
) -> Dict[str, float]:
    """
    Calculate the multiplicative reference risk profile.

    Formula: total = base_risk * age * gender * location * vehicle_age
             * vehicle_type * driving * credit * mileage

    Args:
        profile: Validated applicant profile
        rating: Rating config (defaults to the cached config)

    Returns:
        Mapping of every multiplier plus base_risk and total_risk
    """
    rating = rating or config_cache.get_rating_config()
    ref = rating["reference_risk"]

    area = resolve_area(profile.location, rating["risk"]["location"])
    vehicle_age = (
        ref["reference_year"] - profile.vehicle_year if profile.vehicle_year is not None else None
    )

    multipliers = {
        "age": _band_below(profile.age, ref["age_bands"], ref["age_default"]),
        "gender": ref["gender"].get(normalize_category(profile.gender), ref["gender_default"]),
        "location": ref["location"].get(area, ref["location_default"]),
        "vehicle_age": (
            _band_below(vehicle_age, ref["vehicle_age_bands"], ref["vehicle_age_default"])
            if vehicle_age is not None else 1.0
        ),
        "vehicle_type": ref["vehicle_type"].get(
            normalize_category(profile.vehicle_type), ref["vehicle_type_default"]
        ),
        "driving": ref["driving_record"][
            classify_driving_record(profile.accidents, profile.violations)
        ],
        "credit": _band_above(profile.credit_score, ref["credit_bands"], ref["credit_default"]),
        "mileage": _band_below(profile.annual_mileage, ref["mileage_bands"], ref["mileage_default"]),
    }

    total = float(ref["base_risk"])
    for value in multipliers.values():
        total *= value

    return {"base_risk": float(ref["base_risk"]), **multipliers, "total_risk": total}


def map_reference_total_to_level(total: float, rating: Dict[str, Any] = None) -> str:
    ref = (rating or config_cache.get_rating_config())["reference_risk"]
    for level in ref["levels"]:
        if total < level["limit"]:
            return level["label"]
    return ref["top_level"]


def cross_check(
    assessment: RiskAssessment,
    reference_profile: Dict[str, float],
    rating: Dict[str, Any] = None
) -> ReferenceCheck:
    """
    Compare the weighted assessment with the reference model.

    The two agree when their levels are at most one step apart.
    """
    rating = rating or config_cache.get_rating_config()
    labels = [level["label"] for level in rating["risk"]["levels"]] + [rating["risk"]["top_level"]]

    reference_level = map_reference_total_to_level(reference_profile["total_risk"], rating)
    distance = abs(labels.index(assessment.risk_level) - labels.index(reference_level))
    agrees = distance <= 1

    if not agrees:
        logger.warning(
            f"Risk models disagree | weighted_level={assessment.risk_level} | "
            f"weighted_score={assessment.total_score:.4f} | "
            f"reference_level={reference_level} | "
            f"reference_total={reference_profile['total_risk']:.2f}"
        )

    return ReferenceCheck(
        reference_total=reference_profile["total_risk"],
        reference_level=reference_level,
        level=assessment.risk_level,
        agrees=agrees
    )
