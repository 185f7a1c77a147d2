"""
Network construction: the fixed complication DAG.

Risk factors are root nodes carrying a population prior. Each complication
declares its parents, a leak (base) rate, per-parent noisy-OR contributions
and a literature prior. Complications may parent other complications
(DVT -> PE, SSI -> Dehiscence), so the graph has more than two levels.
Children are never declared; they are derived by a single wiring pass.
"""

from typing import Dict, NamedTuple, Tuple

from complication_bn.graph.cpt import build_noisy_or_cpt
from complication_bn.models.network import BayesNode, CPTEntry, NodeVariable

NetworkGraph = Dict[NodeVariable, BayesNode]

V = NodeVariable


class ComplicationSpec(NamedTuple):
    variable: NodeVariable
    name: str
    prior: float                                  # Literature incidence
    base_rate: float                              # Noisy-OR leak
    contributions: Tuple[Tuple[NodeVariable, float], ...]   # Parent -> q_p, in parent order


RISK_FACTOR_PRIORS: Tuple[Tuple[NodeVariable, str, float], ...] = (
    (V.AGE_OVER_65, "Age > 65", 0.35),
    (V.AGE_OVER_75, "Age > 75", 0.15),
    (V.OBESITY, "Obesity (BMI > 30)", 0.35),
    (V.DIABETES, "Diabetes Mellitus", 0.25),
    (V.SMOKING, "Current Smoker", 0.15),
    (V.IMMUNOSUPPRESSION, "Immunosuppression", 0.08),
    (V.MAJOR_SURGERY, "Major Surgery", 0.40),
    (V.EMERGENCY_SURGERY, "Emergency Surgery", 0.20),
    (V.PROLONGED_SURGERY, "Prolonged Surgery (>3h)", 0.15),
    (V.GENERAL_ANESTHESIA, "General Anesthesia", 0.60),
    (V.IMMOBILITY, "Immobility/Bed Rest", 0.25),
    (V.MALNUTRITION, "Malnutrition", 0.10),
    (V.RENAL_DISEASE, "Chronic Renal Disease", 0.08),
    (V.PRIOR_DVT, "Prior DVT History", 0.05),
    (V.COPD, "COPD", 0.10),
    (V.HEART_FAILURE, "Heart Failure", 0.08),
)

COMPLICATION_SPECS: Tuple[ComplicationSpec, ...] = (
    # ~2-5% for clean surgery, higher for contaminated
    ComplicationSpec(V.SSI, "Surgical Site Infection", 0.03, 0.02, (
        (V.DIABETES, 0.06),
        (V.OBESITY, 0.05),
        (V.SMOKING, 0.04),
        (V.IMMUNOSUPPRESSION, 0.08),
        (V.MAJOR_SURGERY, 0.07),
        (V.EMERGENCY_SURGERY, 0.06),
        (V.PROLONGED_SURGERY, 0.05),
    )),
    # ~1-2% with prophylaxis
    ComplicationSpec(V.DVT, "Deep Vein Thrombosis", 0.015, 0.01, (
        (V.AGE_OVER_65, 0.03),
        (V.IMMOBILITY, 0.06),
        (V.OBESITY, 0.03),
        (V.MAJOR_SURGERY, 0.04),
        (V.PRIOR_DVT, 0.12),
        (V.HEART_FAILURE, 0.05),
    )),
    # ~0.5-1% overall; 30-50% of DVTs propagate
    ComplicationSpec(V.PE, "Pulmonary Embolism", 0.005, 0.003, (
        (V.DVT, 0.30),
        (V.IMMOBILITY, 0.02),
        (V.MAJOR_SURGERY, 0.01),
    )),
    ComplicationSpec(V.PNEUMONIA, "Postoperative Pneumonia", 0.02, 0.01, (
        (V.AGE_OVER_65, 0.04),
        (V.COPD, 0.08),
        (V.GENERAL_ANESTHESIA, 0.03),
        (V.IMMOBILITY, 0.04),
        (V.SMOKING, 0.05),
    )),
    ComplicationSpec(V.UTI, "Urinary Tract Infection", 0.025, 0.02, (
        (V.AGE_OVER_65, 0.04),
        (V.DIABETES, 0.05),
        (V.IMMOBILITY, 0.04),
    )),
    # 10-30% after abdominal surgery, ~3% otherwise
    ComplicationSpec(V.ILEUS, "Postoperative Ileus", 0.08, 0.03, (
        (V.MAJOR_SURGERY, 0.15),
        (V.GENERAL_ANESTHESIA, 0.05),
        (V.AGE_OVER_65, 0.04),
    )),
    ComplicationSpec(V.DEHISCENCE, "Wound Dehiscence", 0.015, 0.005, (
        (V.SSI, 0.15),
        (V.OBESITY, 0.04),
        (V.DIABETES, 0.03),
        (V.MALNUTRITION, 0.06),
        (V.SMOKING, 0.04),
        (V.AGE_OVER_75, 0.03),
    )),
    ComplicationSpec(V.BLEEDING, "Postoperative Bleeding", 0.025, 0.015, (
        (V.MAJOR_SURGERY, 0.05),
        (V.EMERGENCY_SURGERY, 0.06),
        (V.RENAL_DISEASE, 0.05),
    )),
    # ~5-7% for major surgery
    ComplicationSpec(V.AKI, "Acute Kidney Injury", 0.05, 0.02, (
        (V.AGE_OVER_75, 0.05),
        (V.RENAL_DISEASE, 0.15),
        (V.DIABETES, 0.04),
        (V.MAJOR_SURGERY, 0.05),
        (V.HEART_FAILURE, 0.08),
    )),
)


def _risk_factor_node(variable: NodeVariable, name: str, prior: float) -> BayesNode:
    return BayesNode(
        id=variable,
        name=name,
        parents=[],
        children=[],
        cpt=[CPTEntry(parent_values={}, probability_true=prior)],
        prior_probability=prior,
    )


def _complication_node(spec: ComplicationSpec) -> BayesNode:
    parents = [parent for parent, _ in spec.contributions]
    return BayesNode(
        id=spec.variable,
        name=spec.name,
        parents=parents,
        children=[],
        cpt=build_noisy_or_cpt(parents, spec.base_rate, dict(spec.contributions)),
        prior_probability=spec.prior,
    )


def wire_children(nodes: NetworkGraph) -> None:
    """Populate every parent's children from the declared parent lists. Run once per build."""
    for node in nodes.values():
        for parent_id in node.parents:
            parent = nodes.get(parent_id)
            if parent is not None and node.id not in parent.children:
                parent.children.append(node.id)


def build_network() -> NetworkGraph:
    """Build the 25 fully-wired nodes with literature priors and unadjusted CPTs."""
    nodes: NetworkGraph = {}

    for variable, name, prior in RISK_FACTOR_PRIORS:
        nodes[variable] = _risk_factor_node(variable, name, prior)

    for spec in COMPLICATION_SPECS:
        nodes[spec.variable] = _complication_node(spec)

    wire_children(nodes)
    return nodes

