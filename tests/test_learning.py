"""Tests for the Learning Engine."""

import pytest

from complication_bn.graph.builder import build_network
from complication_bn.learning.engine import LearningEngine
from complication_bn.models.inference import Evidence
from complication_bn.models.learning import LearningConfig
from complication_bn.models.network import Complication, NodeVariable, RiskFactor


def _record_many(engine: LearningEngine, complication: Complication, outcomes) -> None:
    for occurred in outcomes:
        engine.record(
            [Evidence(variable=RiskFactor.DIABETES, value=True)],
            complication,
            occurred,
        )


class TestLearningEngine:
    def setup_method(self):
        self.engine = LearningEngine()

    def test_record_appends(self):
        record = self.engine.record([], Complication.SSI, True)
        assert record.complication is Complication.SSI
        assert record.occurred is True
        assert record.timestamp.tzinfo is not None
        assert len(self.engine.get_observations()) == 1

    def test_observations_returned_as_copy(self):
        self.engine.record([], Complication.SSI, True)
        self.engine.get_observations().clear()
        assert len(self.engine.get_observations()) == 1

    def test_no_update_below_minimum_sample(self):
        _record_many(self.engine, Complication.SSI, [True] * 4)
        assert self.engine.observed_rate(Complication.SSI) is None
        assert self.engine.update_adjustment(Complication.SSI, 0.03) is None
        assert self.engine.adjustments == {}

    def test_update_at_minimum_sample(self):
        _record_many(self.engine, Complication.SSI, [True] * 5)
        updated = self.engine.update_adjustment(Complication.SSI, 0.03)
        assert updated == pytest.approx(0.1 * (1.0 - 0.03))
        assert self.engine.adjustments[Complication.SSI] == pytest.approx(updated)

    def test_adjustment_is_bounded(self):
        _record_many(self.engine, Complication.SSI, [True] * 5)
        for _ in range(5):
            self.engine.update_adjustment(Complication.SSI, 0.03)
        assert self.engine.adjustments[Complication.SSI] == pytest.approx(0.1)

    def test_negative_drift(self):
        _record_many(self.engine, Complication.AKI, [False] * 5)
        updated = self.engine.update_adjustment(Complication.AKI, 0.05)
        assert updated == pytest.approx(-0.005)

    def test_counts_only_matching_complication(self):
        _record_many(self.engine, Complication.DVT, [True] * 10)
        _record_many(self.engine, Complication.SSI, [True, False])
        assert self.engine.update_adjustment(Complication.SSI, 0.03) is None

    def test_custom_config(self):
        engine = LearningEngine(LearningConfig(learning_rate=0.5, min_observations=2, max_adjustment=0.2))
        _record_many(engine, Complication.UTI, [True, True])
        assert engine.update_adjustment(Complication.UTI, 0.025) == pytest.approx(0.2)

    def test_stats(self):
        _record_many(self.engine, Complication.SSI, [True, False, True])
        _record_many(self.engine, Complication.DVT, [False])
        stats = self.engine.get_stats()
        assert stats.total_observations == 4
        ssi = stats.complication_rates[Complication.SSI]
        assert ssi.total == 3
        assert ssi.observed == 2
        assert ssi.rate == pytest.approx(2 / 3)
        assert stats.complication_rates[Complication.DVT].rate == 0.0
        assert Complication.PE not in stats.complication_rates

    def test_reset(self):
        _record_many(self.engine, Complication.SSI, [True] * 5)
        self.engine.update_adjustment(Complication.SSI, 0.03)
        self.engine.reset()
        assert self.engine.get_observations() == []
        assert self.engine.adjustments == {}


class TestApplyAdjustments:
    def test_shifts_every_row(self):
        engine = LearningEngine(adjustments={Complication.PE: 0.1})
        nodes = build_network()
        base = [e.probability_true for e in nodes[NodeVariable.PE].cpt]
        engine.apply_adjustments(nodes)
        adjusted = [e.probability_true for e in nodes[NodeVariable.PE].cpt]
        for before, after in zip(base, adjusted):
            assert after == pytest.approx(min(0.95, before + 0.1))

    def test_clamps_to_floor(self):
        engine = LearningEngine(adjustments={Complication.PE: -0.1})
        nodes = build_network()
        engine.apply_adjustments(nodes)
        assert nodes[NodeVariable.PE].cpt[0].probability_true == pytest.approx(0.001)

    def test_leaves_priors_and_other_nodes(self):
        engine = LearningEngine(adjustments={Complication.SSI: 0.05})
        nodes = build_network()
        pristine = build_network()
        engine.apply_adjustments(nodes)
        assert nodes[NodeVariable.SSI].prior_probability == pristine[NodeVariable.SSI].prior_probability
        assert nodes[NodeVariable.DVT].cpt == pristine[NodeVariable.DVT].cpt
