"""Tests for core data models."""

from datetime import datetime, timezone

import pytest

from complication_bn.models import (
    BayesNode,
    Complication,
    ComplicationRate,
    CPTEntry,
    EliminationResult,
    Evidence,
    LearningConfig,
    NodeVariable,
    ObservationRecord,
    RiskFactor,
    RiskLevel,
    RiskThresholds,
)
from complication_bn.models.network import to_complication


class TestNodeVariable:
    def test_twenty_five_variables(self):
        assert len(NodeVariable) == 25
        assert len(RiskFactor) == 16
        assert len(Complication) == 9

    def test_risk_factors_precede_complications(self):
        order = [v.order for v in NodeVariable]
        assert order == list(range(25))
        assert all(NodeVariable(rf.value).order < 16 for rf in RiskFactor)
        assert all(NodeVariable(c.value).order >= 16 for c in Complication)

    def test_from_value_accepts_every_form(self):
        assert NodeVariable.from_value(Complication.DVT) is NodeVariable.DVT
        assert NodeVariable.from_value(RiskFactor.COPD) is NodeVariable.COPD
        assert NodeVariable.from_value("pulmonary_embolism") is NodeVariable.PE
        assert NodeVariable.from_value(NodeVariable.SSI) is NodeVariable.SSI

    def test_from_value_unknown(self):
        assert NodeVariable.from_value("broken_leg") is None
        assert NodeVariable.from_value(None) is None
        assert NodeVariable.from_value(42) is None

    def test_kind(self):
        assert NodeVariable.SSI.is_complication
        assert not NodeVariable.SSI.is_risk_factor
        assert NodeVariable.SMOKING.is_risk_factor

    def test_members_equal_across_enums(self):
        assert NodeVariable.SSI == Complication.SSI
        assert NodeVariable.DIABETES == RiskFactor.DIABETES
        assert Complication.SSI in [NodeVariable.SSI]

    def test_to_complication(self):
        assert to_complication("ileus") is Complication.ILEUS
        assert to_complication(NodeVariable.AKI) is Complication.AKI
        assert to_complication(RiskFactor.SMOKING) is None
        assert to_complication("nope") is None


class TestEvidence:
    def test_coerces_risk_factor_member(self):
        e = Evidence(variable=RiskFactor.DIABETES, value=True)
        assert e.variable is NodeVariable.DIABETES

    def test_coerces_complication_member(self):
        e = Evidence(variable=Complication.DVT, value=False)
        assert e.variable is NodeVariable.DVT
        assert e.value is False

    def test_rejects_unknown_variable(self):
        with pytest.raises(Exception):
            Evidence(variable="broken_leg", value=True)


class TestCPTEntry:
    def test_probability_false_is_complement(self):
        entry = CPTEntry(parent_values={NodeVariable.DVT: True}, probability_true=0.3)
        assert entry.probability_false == pytest.approx(0.7)

    def test_probability_bounds(self):
        with pytest.raises(Exception):
            CPTEntry(parent_values={}, probability_true=1.5)
        with pytest.raises(Exception):
            CPTEntry(parent_values={}, probability_true=-0.1)


class TestBayesNode:
    def test_root_node(self):
        node = BayesNode(
            id=NodeVariable.COPD,
            name="COPD",
            cpt=[CPTEntry(parent_values={}, probability_true=0.1)],
            prior_probability=0.1,
        )
        assert node.is_root
        assert node.children == []


class TestRiskThresholds:
    def test_defaults(self):
        thresholds = RiskThresholds()
        assert thresholds.critical == 0.15
        assert thresholds.high == 0.08
        assert thresholds.moderate == 0.04

    def test_classify_is_strict(self):
        thresholds = RiskThresholds()
        assert thresholds.classify(0.2) == RiskLevel.CRITICAL
        assert thresholds.classify(0.15) == RiskLevel.HIGH
        assert thresholds.classify(0.08) == RiskLevel.MODERATE
        assert thresholds.classify(0.04) == RiskLevel.LOW
        assert thresholds.classify(0.0) == RiskLevel.LOW


class TestLearningModels:
    def test_learning_config_defaults(self):
        config = LearningConfig()
        assert config.learning_rate == 0.1
        assert config.min_observations == 5
        assert config.max_adjustment == 0.1
        assert config.min_probability == 0.001
        assert config.max_probability == 0.95
        assert config.observations_key == "recovery_pilot_cbn_observations"
        assert config.adjustments_key == "recovery_pilot_cbn_cpt_adj"

    def test_learning_config_validation(self):
        with pytest.raises(Exception):
            LearningConfig(learning_rate=0)
        with pytest.raises(Exception):
            LearningConfig(min_observations=0)

    def test_observation_record(self):
        record = ObservationRecord(
            evidence=[Evidence(variable=RiskFactor.SMOKING, value=True)],
            complication=NodeVariable.SSI,
            occurred=True,
            timestamp=datetime.now(timezone.utc),
        )
        assert record.complication is Complication.SSI
        assert record.evidence[0].variable is NodeVariable.SMOKING

    def test_rate_defaults(self):
        rate = ComplicationRate()
        assert rate.observed == 0
        assert rate.total == 0
        assert rate.rate == 0.0

    def test_elimination_result_defaults_to_zero(self):
        result = EliminationResult()
        assert result.probability_true == 0.0
        assert result.probability_false == 0.0
