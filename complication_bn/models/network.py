"""Network Model: variables, CPT rows and nodes of the complication DAG."""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class RiskFactor(str, Enum):
    """Observable pre-operative risk factors. Root nodes of the DAG."""

    AGE_OVER_65 = "age_over_65"
    AGE_OVER_75 = "age_over_75"
    OBESITY = "obesity"
    DIABETES = "diabetes"
    SMOKING = "smoking"
    IMMUNOSUPPRESSION = "immunosuppression"
    MAJOR_SURGERY = "major_surgery"
    EMERGENCY_SURGERY = "emergency_surgery"
    PROLONGED_SURGERY = "prolonged_surgery"
    GENERAL_ANESTHESIA = "general_anesthesia"
    IMMOBILITY = "immobility"
    MALNUTRITION = "malnutrition"
    RENAL_DISEASE = "renal_disease"
    PRIOR_DVT = "prior_dvt"
    COPD = "copd"
    HEART_FAILURE = "heart_failure"


class Complication(str, Enum):
    """Post-operative complications the network estimates."""

    SSI = "surgical_site_infection"
    DVT = "deep_vein_thrombosis"
    PE = "pulmonary_embolism"
    PNEUMONIA = "pneumonia"
    UTI = "urinary_tract_infection"
    ILEUS = "ileus"
    DEHISCENCE = "wound_dehiscence"
    BLEEDING = "postoperative_bleeding"
    AKI = "acute_kidney_injury"


class NodeVariable(str, Enum):
    """
    Every variable in the network: 16 risk factors followed by 9 complications.

    Member order is the canonical variable ordering used for factor keys.
    Members compare and hash equal to the matching RiskFactor / Complication
    member and to their raw string value.
    """

    AGE_OVER_65 = "age_over_65"
    AGE_OVER_75 = "age_over_75"
    OBESITY = "obesity"
    DIABETES = "diabetes"
    SMOKING = "smoking"
    IMMUNOSUPPRESSION = "immunosuppression"
    MAJOR_SURGERY = "major_surgery"
    EMERGENCY_SURGERY = "emergency_surgery"
    PROLONGED_SURGERY = "prolonged_surgery"
    GENERAL_ANESTHESIA = "general_anesthesia"
    IMMOBILITY = "immobility"
    MALNUTRITION = "malnutrition"
    RENAL_DISEASE = "renal_disease"
    PRIOR_DVT = "prior_dvt"
    COPD = "copd"
    HEART_FAILURE = "heart_failure"

    SSI = "surgical_site_infection"
    DVT = "deep_vein_thrombosis"
    PE = "pulmonary_embolism"
    PNEUMONIA = "pneumonia"
    UTI = "urinary_tract_infection"
    ILEUS = "ileus"
    DEHISCENCE = "wound_dehiscence"
    BLEEDING = "postoperative_bleeding"
    AKI = "acute_kidney_injury"

    @classmethod
    def from_value(cls, value: object) -> Optional["NodeVariable"]:
        """Resolve a NodeVariable, RiskFactor, Complication or raw string. None if unknown."""
        if isinstance(value, Enum):
            value = value.value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_complication(self) -> bool:
        return self.value in _COMPLICATION_VALUES

    @property
    def is_risk_factor(self) -> bool:
        return not self.is_complication

    @property
    def order(self) -> int:
        """Position in the canonical variable ordering."""
        return _CANONICAL_ORDER[self]


_COMPLICATION_VALUES = frozenset(c.value for c in Complication)
_CANONICAL_ORDER: Dict[NodeVariable, int] = {v: i for i, v in enumerate(NodeVariable)}

VariableLike = Union[NodeVariable, RiskFactor, Complication, str]


def to_complication(value: object) -> Optional[Complication]:
    """Resolve a complication identifier. None for risk factors and unknown values."""
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        return None
    try:
        return Complication(value)
    except ValueError:
        return None


class CPTEntry(BaseModel):
    """One row of a conditional probability table: a full parent assignment."""

    parent_values: Dict[NodeVariable, bool] = {}
    probability_true: float = Field(ge=0.0, le=1.0)

    @property
    def probability_false(self) -> float:
        return 1.0 - self.probability_true


class BayesNode(BaseModel):
    """A node in the complication DAG. Owned exclusively by its network."""

    id: NodeVariable
    name: str
    parents: List[NodeVariable] = []
    children: List[NodeVariable] = []
    cpt: List[CPTEntry]
    prior_probability: float = Field(ge=0.0, le=1.0)   # Base rate without parents

    @property
    def is_root(self) -> bool:
        return not self.parents


class NetworkNodeSummary(BaseModel):
    """Structure-only view of a node, for visualization."""

    id: NodeVariable
    name: str
    parents: List[NodeVariable]
    children: List[NodeVariable]
