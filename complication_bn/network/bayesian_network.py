"""
Complication Bayesian Network: public query API.

Composes the fixed DAG, both inference modes, and the learning loop behind
one long-lived object constructed by the host application.

Behavioral Contract:
- Never raises across this boundary for bad identifiers or evidence.
  Unknown complications yield an "Unknown complication" result; malformed
  evidence items are dropped.
- Learning state is loaded from the injected store at construction and
  written back after every mutating call. Storage failures are logged only.
- Not internally thread-safe; wrap in an external mutex for concurrent use.
"""

import logging
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from complication_bn.graph.builder import NetworkGraph, build_network
from complication_bn.inference import direct
from complication_bn.inference.elimination import variable_elimination
from complication_bn.learning.engine import LearningEngine
from complication_bn.learning.store import (
    InMemoryObservationStore,
    NetworkStatePersistence,
    ObservationStore,
)
from complication_bn.models.inference import (
    EliminationResult,
    Evidence,
    FullInferenceResult,
    InferenceResult,
    RiskThresholds,
)
from complication_bn.models.learning import (
    LearningConfig,
    ObservationRecord,
    ObservationStats,
)
from complication_bn.models.network import (
    BayesNode,
    Complication,
    NetworkNodeSummary,
    NodeVariable,
    RiskFactor,
    VariableLike,
    to_complication,
)

logger = logging.getLogger(__name__)


def normalize_evidence(evidence: Optional[Iterable[Any]]) -> List[Evidence]:
    """
    Coerce caller evidence into Evidence models.

    Accepts Evidence instances, {"variable": ..., "value": ...} mappings and
    (variable, value) pairs. Anything else, or any item naming an unknown
    variable, is skipped.
    """
    if evidence is None or isinstance(evidence, (str, bytes)):
        return []
    try:
        items = list(evidence)
    except TypeError:
        logger.debug("Ignoring non-iterable evidence %r", evidence)
        return []

    normalized: List[Evidence] = []
    for item in items:
        if isinstance(item, Evidence):
            normalized.append(item)
            continue

        if isinstance(item, dict):
            variable, value = item.get("variable"), item.get("value")
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            variable, value = item
        else:
            logger.debug("Skipping malformed evidence item %r", item)
            continue

        resolved = NodeVariable.from_value(variable)
        if resolved is None or not isinstance(value, bool):
            logger.debug("Skipping evidence item %r", item)
            continue
        try:
            normalized.append(Evidence(variable=resolved, value=value))
        except ValidationError:
            logger.debug("Skipping invalid evidence item %r", item)

    return normalized


class ComplicationBayesianNetwork:
    """
    Post-operative complication risk model.

    Estimates complication probabilities from boolean risk-factor evidence,
    by a fast approximate path (query_complication) or exactly
    (variable_elimination), and recalibrates its CPTs from recorded outcomes.
    """

    def __init__(
        self,
        store: Optional[ObservationStore] = None,
        learning_config: Optional[LearningConfig] = None,
        risk_thresholds: Optional[RiskThresholds] = None,
    ):
        self.learning_config = learning_config or LearningConfig()
        self.risk_thresholds = risk_thresholds or RiskThresholds()
        self._persistence = NetworkStatePersistence(
            store if store is not None else InMemoryObservationStore(),
            self.learning_config,
        )
        self._learning = LearningEngine(
            config=self.learning_config,
            observations=self._persistence.load_observations(),
            adjustments=self._persistence.load_adjustments(),
        )
        self._nodes: NetworkGraph = self._build()

    def _build(self) -> NetworkGraph:
        """Fresh literature network with the learned adjustments applied."""
        nodes = build_network()
        self._learning.apply_adjustments(nodes)
        return nodes

    def _persist(self) -> None:
        self._persistence.save(
            self._learning.get_observations(),
            self._learning.adjustments,
        )

    # --- Structure ---

    def get_node(self, variable: VariableLike) -> Optional[BayesNode]:
        """A copy of the node for a variable, or None if unknown."""
        resolved = NodeVariable.from_value(variable)
        node = self._nodes.get(resolved) if resolved is not None else None
        return node.model_copy(deep=True) if node is not None else None

    def get_complications(self) -> List[BayesNode]:
        return [self.get_node(c) for c in Complication if NodeVariable(c.value) in self._nodes]

    def get_risk_factors(self) -> List[BayesNode]:
        return [self.get_node(rf) for rf in RiskFactor if NodeVariable(rf.value) in self._nodes]

    def get_network_structure(self) -> List[NetworkNodeSummary]:
        """Nodes with their edges, for visualization."""
        return [
            NetworkNodeSummary(
                id=node.id,
                name=node.name,
                parents=list(node.parents),
                children=list(node.children),
            )
            for node in self._nodes.values()
        ]

    # --- Inference ---

    def query_complication(
        self,
        complication: VariableLike,
        evidence: Optional[Iterable[Any]] = None,
    ) -> InferenceResult:
        """
        Approximate P(complication | evidence) from the node's own CPT.
        See complication_bn.inference.direct for the approximation used.
        """
        resolved = NodeVariable.from_value(complication)
        if resolved is None:
            return direct.unknown_result(complication)
        return direct.query_node(self._nodes, resolved, normalize_evidence(evidence))

    def query_all_complications(
        self, evidence: Optional[Iterable[Any]] = None
    ) -> FullInferenceResult:
        """All complications, highest probability first, with an overall risk level."""
        return direct.query_all(
            self._nodes, normalize_evidence(evidence), self.risk_thresholds
        )

    def variable_elimination(
        self,
        variable: VariableLike,
        evidence: Optional[Iterable[Any]] = None,
    ) -> EliminationResult:
        """Exact posterior for any variable. {0, 0} if unknown or the evidence is contradictory."""
        resolved = NodeVariable.from_value(variable)
        if resolved is None:
            return EliminationResult()
        return variable_elimination(self._nodes, resolved, normalize_evidence(evidence))

    # --- Learning ---

    def record_observation(
        self,
        evidence: Optional[Iterable[Any]],
        complication: VariableLike,
        occurred: bool,
    ) -> Optional[ObservationRecord]:
        """
        Log a ground-truth outcome, recalibrate that complication's CPT once
        enough outcomes exist, and persist. Returns None for an unknown complication.
        """
        resolved = to_complication(complication)
        if resolved is None:
            logger.debug("Ignoring observation for unknown complication %r", complication)
            return None

        record = self._learning.record(normalize_evidence(evidence), resolved, bool(occurred))

        node = self._nodes[NodeVariable(resolved.value)]
        if self._learning.update_adjustment(resolved, node.prior_probability) is not None:
            self._nodes = self._build()

        self._persist()
        return record

    def get_observation_stats(self) -> ObservationStats:
        return self._learning.get_stats()

    def get_observations(self) -> List[ObservationRecord]:
        return self._learning.get_observations()

    def reset_learning(self) -> None:
        """Drop observations and adjustments; restore the literature network."""
        self._learning.reset()
        self._nodes = self._build()
        self._persist()
        logger.info("Complication network learning state reset")


def create_complication_bayesian_network(
    store: Optional[ObservationStore] = None,
    learning_config: Optional[LearningConfig] = None,
    risk_thresholds: Optional[RiskThresholds] = None,
) -> ComplicationBayesianNetwork:
    """Construct a network, loading any learning state held by the store."""
    return ComplicationBayesianNetwork(
        store=store,
        learning_config=learning_config,
        risk_thresholds=risk_thresholds,
    )
