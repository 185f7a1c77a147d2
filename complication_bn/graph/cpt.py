"""
Noisy-OR CPT construction.

Each true parent independently fails to cause the child with probability
(1 - q_p); a leak term covers every cause the network does not model:

    P(child=false | S) = (1 - base_rate) * prod_{p in S} (1 - q_p)

Rows are capped at MAX_PROBABILITY so no configuration implies certainty.
"""

from typing import Dict, List, Sequence

from complication_bn.models.network import CPTEntry, NodeVariable

MAX_PROBABILITY = 0.95


def build_noisy_or_cpt(
    parents: Sequence[NodeVariable],
    base_rate: float,
    parent_contributions: Dict[NodeVariable, float],
) -> List[CPTEntry]:
    """
    Enumerate all 2^k parent assignments exactly once.

    Parent i maps to bit i of the row index, so row 0 is the all-false
    assignment. A root node (k = 0) gets the single row {} -> base_rate.
    Parents missing from parent_contributions contribute nothing.
    """
    entries: List[CPTEntry] = []

    for config in range(1 << len(parents)):
        parent_values: Dict[NodeVariable, bool] = {}
        p_false = 1.0 - base_rate

        for i, parent in enumerate(parents):
            is_true = bool(config & (1 << i))
            parent_values[parent] = is_true
            if is_true:
                p_false *= 1.0 - parent_contributions.get(parent, 0.0)

        entries.append(CPTEntry(
            parent_values=parent_values,
            probability_true=min(MAX_PROBABILITY, 1.0 - p_false),
        ))

    return entries


def adjust_cpt(
    cpt: List[CPTEntry],
    adjustment: float,
    min_probability: float,
    max_probability: float,
) -> List[CPTEntry]:
    """Shift every row by an additive adjustment, clamped to [min_probability, max_probability]."""
    return [
        CPTEntry(
            parent_values=dict(entry.parent_values),
            probability_true=max(
                min_probability,
                min(max_probability, entry.probability_true + adjustment),
            ),
        )
        for entry in cpt
    ]
