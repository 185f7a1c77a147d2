"""Learning Model: outcome observations and the recalibration settings."""

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from complication_bn.models.inference import Evidence
from complication_bn.models.network import Complication


class ObservationRecord(BaseModel):
    """A ground-truth outcome. Append-only; the unit of learning."""

    evidence: List[Evidence] = []
    complication: Complication
    occurred: bool
    timestamp: datetime

    @field_validator("complication", mode="before")
    @classmethod
    def _coerce_complication(cls, v):
        if isinstance(v, Enum):
            return v.value
        return v


class ComplicationRate(BaseModel):
    observed: int = 0
    total: int = 0
    rate: float = 0.0


class ObservationStats(BaseModel):
    total_observations: int
    complication_rates: Dict[Complication, ComplicationRate] = {}


class LearningConfig(BaseModel):
    """Configuration for CPT recalibration from observed outcomes."""

    learning_rate: float = Field(gt=0.0, le=1.0, default=0.1)
    min_observations: int = Field(ge=1, default=5)
    max_adjustment: float = Field(ge=0.0, le=1.0, default=0.1)
    min_probability: float = Field(ge=0.0, le=1.0, default=0.001)
    max_probability: float = Field(ge=0.0, le=1.0, default=0.95)
    storage_prefix: str = "recovery_pilot_cbn_"

    @property
    def observations_key(self) -> str:
        return f"{self.storage_prefix}observations"

    @property
    def adjustments_key(self) -> str:
        return f"{self.storage_prefix}cpt_adj"
