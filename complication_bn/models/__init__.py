"""Complication Bayesian Network data models."""

from complication_bn.models.inference import (
    EliminationResult,
    Evidence,
    FullInferenceResult,
    InferenceResult,
    RiskLevel,
    RiskThresholds,
)
from complication_bn.models.learning import (
    ComplicationRate,
    LearningConfig,
    ObservationRecord,
    ObservationStats,
)
from complication_bn.models.network import (
    BayesNode,
    Complication,
    CPTEntry,
    NetworkNodeSummary,
    NodeVariable,
    RiskFactor,
)

__all__ = [
    "BayesNode",
    "Complication",
    "ComplicationRate",
    "CPTEntry",
    "EliminationResult",
    "Evidence",
    "FullInferenceResult",
    "InferenceResult",
    "LearningConfig",
    "NetworkNodeSummary",
    "NodeVariable",
    "ObservationRecord",
    "ObservationStats",
    "RiskFactor",
    "RiskLevel",
    "RiskThresholds",
]
