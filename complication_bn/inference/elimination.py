"""
Exact inference by variable elimination.

The query and evidence variables are first pruned to their ancestor closure,
then that sub-network is converted into a pgmpy DiscreteBayesianNetwork
(one TabularCPD per node, states "false" / "true") and answered with
pgmpy's VariableElimination. Observed variables are reduced away before any
factor product, so cost follows the unobserved part of the closure.
"""

import math
from collections import deque
from itertools import product
from typing import Dict, List, Optional, Sequence

from pgmpy.factors.discrete import TabularCPD
from pgmpy.inference import VariableElimination
from pgmpy.models import DiscreteBayesianNetwork

from complication_bn.graph.builder import NetworkGraph
from complication_bn.models.inference import EliminationResult, Evidence
from complication_bn.models.network import BayesNode, NodeVariable

STATES = ["false", "true"]


def state_of(value: bool) -> str:
    return STATES[1] if value else STATES[0]


def relevant_variables(
    nodes: NetworkGraph,
    query: NodeVariable,
    evidence: List[Evidence],
) -> List[NodeVariable]:
    """Ancestor closure of the query and evidence variables, in breadth-first discovery order."""
    seen: List[NodeVariable] = []
    queue = deque([query] + [e.variable for e in evidence])

    while queue:
        current = queue.popleft()
        if current in seen or current not in nodes:
            continue
        seen.append(current)
        queue.extend(nodes[current].parents)

    return seen


def to_tabular_cpd(node: BayesNode) -> TabularCPD:
    """
    The node's CPT as a pgmpy TabularCPD.

    Columns follow pgmpy's layout: one per parent assignment, parents in
    declared order with the last parent varying fastest, "false" before "true".
    """
    name = node.id.value
    rows = {
        tuple(entry.parent_values[p] for p in node.parents): entry.probability_true
        for entry in node.cpt
    }

    p_true: List[float] = []
    for assignment in product((False, True), repeat=len(node.parents)):
        p_true.append(rows[assignment])

    state_names = {name: list(STATES)}
    state_names.update({p.value: list(STATES) for p in node.parents})

    return TabularCPD(
        variable=name,
        variable_card=2,
        values=[[1.0 - p for p in p_true], p_true],
        evidence=[p.value for p in node.parents] or None,
        evidence_card=[2] * len(node.parents) or None,
        state_names=state_names,
    )


def build_model(nodes: NetworkGraph, variables: Sequence[NodeVariable]) -> DiscreteBayesianNetwork:
    """A pgmpy model over an ancestrally closed subset of the network."""
    ordered = sorted(variables, key=lambda v: v.order)
    edges = [
        (parent.value, variable.value)
        for variable in ordered
        for parent in nodes[variable].parents
    ]

    model = DiscreteBayesianNetwork(edges)
    model.add_nodes_from([v.value for v in ordered])
    model.add_cpds(*(to_tabular_cpd(nodes[v]) for v in ordered))
    return model


def _consistent_evidence(evidence: List[Evidence]) -> Optional[Dict[NodeVariable, bool]]:
    """Evidence as a mapping, or None if some variable is observed both ways."""
    observed: Dict[NodeVariable, bool] = {}
    for e in evidence:
        if observed.get(e.variable, e.value) != e.value:
            return None
        observed[e.variable] = e.value
    return observed


def variable_elimination(
    nodes: NetworkGraph,
    query: NodeVariable,
    evidence: List[Evidence],
) -> EliminationResult:
    """
    Exact P(query | evidence).

    Returns {0, 0} when the query is unknown or the evidence leaves no
    probability mass (e.g. contradictory observations).
    """
    if query not in nodes:
        return EliminationResult()

    evidence = [e for e in evidence if e.variable in nodes]
    observed = _consistent_evidence(evidence)
    if observed is None:
        return EliminationResult()

    # Every CPT row is strictly inside (0, 1), so consistent evidence has mass
    if query in observed:
        value = observed[query]
        return EliminationResult(
            probability_true=1.0 if value else 0.0,
            probability_false=0.0 if value else 1.0,
        )

    model = build_model(nodes, relevant_variables(nodes, query, evidence))
    posterior = VariableElimination(model).query(
        [query.value],
        evidence={v.value: state_of(val) for v, val in observed.items()},
        show_progress=False,
    )

    states = posterior.state_names[query.value]
    p_true = float(posterior.values[states.index(STATES[1])])
    p_false = float(posterior.values[states.index(STATES[0])])

    total = p_true + p_false
    if not math.isfinite(total) or total <= 0:
        return EliminationResult()

    return EliminationResult(
        probability_true=p_true / total,
        probability_false=p_false / total,
    )
