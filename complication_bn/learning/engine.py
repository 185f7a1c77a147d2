"""
Learning Engine: recalibrates complication CPTs from observed outcomes.

This is a proportional-feedback controller, not a Bayesian update. Once a
complication has enough recorded outcomes, the gap between its observed
rate and its literature prior nudges a bounded additive adjustment:

    adjustment += learning_rate * (observed_rate - prior)
    adjustment  = clamp(adjustment, -max_adjustment, max_adjustment)

Every CPT row of that complication is then shifted by the adjustment.
Priors themselves are never modified.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from complication_bn.graph.builder import NetworkGraph
from complication_bn.graph.cpt import adjust_cpt
from complication_bn.models.inference import Evidence
from complication_bn.models.learning import (
    ComplicationRate,
    LearningConfig,
    ObservationRecord,
    ObservationStats,
)
from complication_bn.models.network import Complication, NodeVariable

logger = logging.getLogger(__name__)


class LearningEngine:
    """
    Owns the observation log and the per-complication CPT adjustments.
    Not thread-safe.
    """

    def __init__(
        self,
        config: Optional[LearningConfig] = None,
        observations: Optional[List[ObservationRecord]] = None,
        adjustments: Optional[Dict[Complication, float]] = None,
    ):
        self.config = config or LearningConfig()
        self._observations: List[ObservationRecord] = list(observations or [])
        self._adjustments: Dict[Complication, float] = dict(adjustments or {})

    @property
    def adjustments(self) -> Dict[Complication, float]:
        return dict(self._adjustments)

    def get_observations(self) -> List[ObservationRecord]:
        """A copy of the observation log, oldest first."""
        return list(self._observations)

    def record(
        self,
        evidence: List[Evidence],
        complication: Complication,
        occurred: bool,
    ) -> ObservationRecord:
        """Append one outcome to the log."""
        record = ObservationRecord(
            evidence=list(evidence),
            complication=complication,
            occurred=occurred,
            timestamp=datetime.now(timezone.utc),
        )
        self._observations.append(record)
        return record

    def observed_rate(self, complication: Complication) -> Optional[float]:
        """Occurrence rate for a complication, or None below the minimum sample size."""
        outcomes = [o.occurred for o in self._observations if o.complication == complication]
        if len(outcomes) < self.config.min_observations:
            return None
        return sum(outcomes) / len(outcomes)

    def update_adjustment(self, complication: Complication, prior: float) -> Optional[float]:
        """
        Move the complication's adjustment toward its observed drift from prior.
        Returns the new adjustment, or None when there is not enough data yet.
        """
        rate = self.observed_rate(complication)
        if rate is None:
            return None

        drift = rate - prior
        bound = self.config.max_adjustment
        current = self._adjustments.get(complication, 0.0)
        updated = max(-bound, min(bound, current + self.config.learning_rate * drift))
        self._adjustments[complication] = updated

        logger.info(
            "CPT adjustment for %s: %.4f -> %.4f (observed %.4f, prior %.4f)",
            complication.value, current, updated, rate, prior,
        )
        return updated

    def apply_adjustments(self, nodes: NetworkGraph) -> None:
        """
        Shift each adjusted complication's CPT rows in place.
        Expects unadjusted CPTs, i.e. a freshly built network.
        """
        for complication, adjustment in self._adjustments.items():
            node = nodes.get(NodeVariable(complication.value))
            if node is None:
                continue
            node.cpt = adjust_cpt(
                node.cpt,
                adjustment,
                self.config.min_probability,
                self.config.max_probability,
            )

    def get_stats(self) -> ObservationStats:
        """Per-complication occurrence counts and rates."""
        counts: Dict[Complication, ComplicationRate] = {}
        for obs in self._observations:
            stats = counts.setdefault(obs.complication, ComplicationRate())
            stats.total += 1
            if obs.occurred:
                stats.observed += 1

        for stats in counts.values():
            stats.rate = stats.observed / stats.total if stats.total > 0 else 0.0

        return ObservationStats(
            total_observations=len(self._observations),
            complication_rates=counts,
        )

    def reset(self) -> None:
        """Forget every observation and adjustment."""
        self._observations.clear()
        self._adjustments.clear()
