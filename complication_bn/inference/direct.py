"""
Direct (approximate) inference: single-node queries in O(|parents|).

This is a fast path, NOT a marginal posterior. Unobserved parents are matched
as false, then the matched row is scaled by (1 - prior * 0.5) once per
unobserved parent. Use variable_elimination for exact posteriors.
"""

from typing import Dict, List, Optional

from complication_bn.graph.builder import NetworkGraph
from complication_bn.models.inference import (
    Evidence,
    FullInferenceResult,
    InferenceResult,
    RiskThresholds,
)
from complication_bn.models.network import (
    BayesNode,
    Complication,
    CPTEntry,
    NodeVariable,
)

UNOBSERVED_PARENT_WEIGHT = 0.5
NO_RISK_FACTORS = "No specific risk factors identified"
UNKNOWN_COMPLICATION = "Unknown complication"


def evidence_map(evidence: List[Evidence]) -> Dict[NodeVariable, bool]:
    """Collapse an evidence list into variable -> value. Later items win."""
    return {e.variable: e.value for e in evidence}


def _best_matching_entry(
    node: BayesNode, parent_values: Dict[NodeVariable, bool]
) -> Optional[CPTEntry]:
    """The first CPT row agreeing with the most assigned parent values."""
    best: Optional[CPTEntry] = None
    best_score = -1

    for entry in node.cpt:
        score = 0
        consistent = True
        for parent, value in entry.parent_values.items():
            if parent not in parent_values:
                continue
            if parent_values[parent] != value:
                consistent = False
                break
            score += 1
        if consistent and score > best_score:
            best = entry
            best_score = score

    return best


def approximate_probability(
    node: BayesNode,
    nodes: NetworkGraph,
    observed: Dict[NodeVariable, bool],
) -> float:
    """P(node = true) from the best-matching CPT row plus the unobserved-parent correction."""
    parent_values: Dict[NodeVariable, bool] = {}
    for parent in node.parents:
        if parent in observed:
            parent_values[parent] = observed[parent]
        elif parent in nodes:
            parent_values[parent] = False

    match = _best_matching_entry(node, parent_values)
    if match is None:
        return node.prior_probability

    prob = match.probability_true
    for parent in node.parents:
        if parent in observed:
            continue
        parent_node = nodes.get(parent)
        if parent_node is not None:
            prob *= 1.0 - parent_node.prior_probability * UNOBSERVED_PARENT_WEIGHT

    return max(0.0, min(1.0, prob))


def explain(node: BayesNode, nodes: NetworkGraph, evidence: List[Evidence]) -> str:
    """Name the true evidence variables that are direct parents of the node."""
    active: List[str] = []
    for e in evidence:
        if not e.value or e.variable not in node.parents:
            continue
        parent_node = nodes.get(e.variable)
        name = parent_node.name if parent_node else e.variable.value
        if name not in active:
            active.append(name)

    if active:
        return f"Risk elevated by: {', '.join(active)}"
    return NO_RISK_FACTORS


def unknown_result(variable: object) -> InferenceResult:
    """Zero-probability result for an identifier the network does not know."""
    label = getattr(variable, "value", variable)
    return InferenceResult(
        variable=str(label),
        probability_true=0.0,
        probability_false=1.0,
        prior_probability=0.0,
        risk_multiplier=1.0,
        explanation=UNKNOWN_COMPLICATION,
    )


def query_node(
    nodes: NetworkGraph, variable: NodeVariable, evidence: List[Evidence]
) -> InferenceResult:
    """Approximate posterior for one node given evidence."""
    node = nodes.get(variable)
    if node is None:
        return unknown_result(variable)

    prob = approximate_probability(node, nodes, evidence_map(evidence))
    prior = node.prior_probability
    risk_multiplier = prob / prior if prior > 0 else 1.0

    return InferenceResult(
        variable=node.id,
        probability_true=prob,
        probability_false=1.0 - prob,
        prior_probability=prior,
        risk_multiplier=risk_multiplier,
        explanation=explain(node, nodes, evidence),
    )


def query_all(
    nodes: NetworkGraph,
    evidence: List[Evidence],
    thresholds: RiskThresholds,
) -> FullInferenceResult:
    """Every complication, sorted by probability (ties keep enumeration order)."""
    results = [
        query_node(nodes, NodeVariable(c.value), evidence) for c in Complication
    ]
    # sorted() is stable
    results = sorted(results, key=lambda r: r.probability_true, reverse=True)

    overall = sum(r.probability_true for r in results) / len(results)

    return FullInferenceResult(
        complications=results,
        highest_risk_complication=results[0],
        evidence=list(evidence),
        overall_risk_score=overall,
        risk_level=thresholds.classify(overall),
    )
