"""
Pydantic schemas for applicant input, market state and quote output.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime

# Youngest age at which a licence can be held
MIN_LICENSING_AGE = 14


class ApplicantProfile(BaseModel):
    """Applicant attributes for a single quote request."""
    model_config = ConfigDict(frozen=True)

    age: int = Field(ge=16, le=100, description="Applicant age in years")
    years_licensed: int = Field(0, ge=0, le=84, description="Years holding a licence")
    accidents: int = Field(0, ge=0, le=50, description="At-fault accidents in the lookback period")
    violations: int = Field(0, ge=0, le=50, description="Moving violations in the lookback period")
    vehicle_type: str = Field("sedan", description="sedan, suv, truck, sports, luxury or economy")
    vehicle_value: float = Field(25000.0, ge=0, description="Vehicle value in dollars")
    vehicle_year: Optional[int] = Field(None, ge=1950, le=2100, description="Model year")
    location: str = Field("suburban", description="5-digit zip code or urban/suburban/rural")
    credit_score: int = Field(700, ge=300, le=850, description="Credit score")
    annual_mileage: int = Field(12000, ge=0, description="Miles driven per year")
    coverage_level: str = Field("standard", description="basic, standard, comprehensive or premium")
    gender: Optional[str] = Field(None, description="Used by the reference model only")

    @model_validator(mode="after")
    def check_licensing_history(self):
        if self.years_licensed > self.age - MIN_LICENSING_AGE:
            raise ValueError(
                f"years_licensed ({self.years_licensed}) cannot exceed age minus "
                f"{MIN_LICENSING_AGE} ({self.age - MIN_LICENSING_AGE})"
            )
        return self


class MarketSnapshot(BaseModel):
    """Point-in-time copy of the simulated market state."""
    model_config = ConfigDict(frozen=True)

    competitive_index: float
    economic_factor: float
    regulatory_factor: float
    claims_trend: float
    claim_frequency: float
    inflation_rate: float
    market_volatility: float
    tick_count: int = 0
    last_tick_at: Optional[datetime] = None


class FactorScore(BaseModel):
    """One risk factor's sub-score and its weight in the total."""
    model_config = ConfigDict(frozen=True)

    score: float
    weight: float
    contribution: float


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_score: float = Field(ge=0, le=1)
    breakdown: Dict[str, FactorScore]
    risk_level: str
    warnings: List[str] = []


class MarketAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    adjustment: float
    factors: Dict[str, float]
    volatility: float
    as_of: datetime


class PaymentOptions(BaseModel):
    """Installment amounts, rounded to cents."""
    model_config = ConfigDict(frozen=True)

    annual: float
    semi_annual: float
    monthly: float


class PremiumBreakdown(BaseModel):
    """Every stage of the premium pipeline, in pipeline order."""
    model_config = ConfigDict(frozen=True)

    base_premium: float
    risk_adjusted_premium: float
    coverage_adjusted_premium: float
    market_adjusted_premium: float
    operational_costs: float
    profit_margin: float
    regulatory_reserve: float
    final_premium: float
    coverage_level: str
    multipliers: Dict[str, float]
    adjustments: Dict[str, float]
    payment_options: PaymentOptions


class ReferenceCheck(BaseModel):
    """Plausibility check against the multiplicative reference model."""
    model_config = ConfigDict(frozen=True)

    reference_total: float
    reference_level: str
    level: str
    agrees: bool


class Quote(BaseModel):
    """Quote response. Never mutated once created."""
    model_config = ConfigDict(frozen=True)

    risk_assessment: RiskAssessment
    market_analysis: MarketAnalysis
    pricing: PremiumBreakdown
    explanation: List[str]
    reference_check: ReferenceCheck
    timestamp: datetime


class MarketStatusResponse(BaseModel):
    """Current market state and the adjustment it produces right now."""
    state: MarketSnapshot
    analysis: MarketAnalysis


class SimulationRequest(BaseModel):
    """Market drift simulation request."""
    tick_count: int = Field(gt=0, le=10000, description="Number of drift ticks to run")
    seed: int = Field(42, description="Seed for the drift generator")


class SimulationResult(BaseModel):
    """Market drift simulation result."""
    tick_count: int
    seed: int
    adjustment_statistics: Dict[str, float]
    final_state: MarketSnapshot
    factors_at_bounds: List[str]
