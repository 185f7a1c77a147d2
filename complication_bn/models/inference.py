"""Inference Model: evidence in, posterior estimates out."""

from enum import Enum
from typing import List, Union

from pydantic import BaseModel, Field, field_validator

from complication_bn.models.network import NodeVariable


class Evidence(BaseModel):
    """An observed truth assignment. Never mutates the network."""

    variable: NodeVariable
    value: bool

    @field_validator("variable", mode="before")
    @classmethod
    def _coerce_variable(cls, v):
        # RiskFactor / Complication members share NodeVariable's values
        if isinstance(v, Enum):
            return v.value
        return v


class InferenceResult(BaseModel):
    """Posterior estimate for one variable. A query return value, never persisted."""

    variable: Union[NodeVariable, str]      # str only for identifiers the network does not know
    probability_true: float
    probability_false: float
    prior_probability: float
    risk_multiplier: float                  # probability_true / prior_probability
    explanation: str


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class RiskThresholds(BaseModel):
    """Overall-risk cut points. A score must strictly exceed a threshold to reach its level."""

    critical: float = Field(ge=0.0, le=1.0, default=0.15)
    high: float = Field(ge=0.0, le=1.0, default=0.08)
    moderate: float = Field(ge=0.0, le=1.0, default=0.04)

    def classify(self, score: float) -> RiskLevel:
        if score > self.critical:
            return RiskLevel.CRITICAL
        if score > self.high:
            return RiskLevel.HIGH
        if score > self.moderate:
            return RiskLevel.MODERATE
        return RiskLevel.LOW


class FullInferenceResult(BaseModel):
    """Every complication queried against the same evidence, highest risk first."""

    complications: List[InferenceResult]
    highest_risk_complication: InferenceResult
    evidence: List[Evidence]
    overall_risk_score: float               # Mean probability_true over all complications
    risk_level: RiskLevel


class EliminationResult(BaseModel):
    """Exact posterior from variable elimination. Both zero when evidence has no support."""

    probability_true: float = 0.0
    probability_false: float = 0.0
