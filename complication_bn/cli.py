"""
Command-line interface for the complication network.

Every command prints JSON to stdout. Learning state persists across runs
only when --db points at a SQLite file.
"""

import argparse
import json
import logging
import sqlite3
import sys
from typing import List, Optional, Tuple

from pydantic import BaseModel

from complication_bn.learning.store import SQLiteObservationStore
from complication_bn.logging_config import configure_logging
from complication_bn.models.network import NodeVariable
from complication_bn.network.bayesian_network import ComplicationBayesianNetwork

_TRUE = {"true", "t", "yes", "y", "1"}
_FALSE = {"false", "f", "no", "n", "0"}


def parse_evidence(text: str) -> Tuple[NodeVariable, bool]:
    """VARIABLE or VARIABLE=true|false."""
    name, _, raw = text.partition("=")
    variable = NodeVariable.from_value(name.strip().lower())
    if variable is None:
        raise argparse.ArgumentTypeError(f"unknown variable: {name!r}")

    raw = raw.strip().lower() or "true"
    if raw in _TRUE:
        return variable, True
    if raw in _FALSE:
        return variable, False
    raise argparse.ArgumentTypeError(f"invalid value for {variable.value}: {raw!r}")


def _emit(payload) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [p.model_dump(mode="json") if isinstance(p, BaseModel) else p for p in payload]
    print(json.dumps(payload, indent=2))


def cmd_structure(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Print nodes and edges."""
    _emit(network.get_network_structure())
    return 0


def cmd_query(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Approximate single-complication query."""
    _emit(network.query_complication(args.complication, args.evidence))
    return 0


def cmd_query_all(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Full complication report."""
    _emit(network.query_all_complications(args.evidence))
    return 0


def cmd_exact(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Exact posterior by variable elimination."""
    result = network.variable_elimination(args.variable, args.evidence)
    _emit({"variable": args.variable, **result.model_dump()})
    return 0


def cmd_observe(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Record a ground-truth outcome."""
    record = network.record_observation(args.evidence, args.complication, args.occurred)
    if record is None:
        print(f"Error: unknown complication {args.complication!r}", file=sys.stderr)
        return 1
    _emit(record)
    return 0


def cmd_stats(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Observation statistics."""
    _emit(network.get_observation_stats())
    return 0


def cmd_reset(network: ComplicationBayesianNetwork, args: argparse.Namespace) -> int:
    """Clear the learning state."""
    network.reset_learning()
    _emit({"reset": True, "observations": len(network.get_observations())})
    return 0


def _add_evidence_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-e", "--evidence",
        action="append",
        type=parse_evidence,
        default=[],
        metavar="VAR[=true|false]",
        help="Observed variable (repeatable)",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="complication-bn",
        description="Post-operative complication Bayesian network",
    )
    parser.add_argument(
        "--db",
        help="SQLite file for learning state (in-memory when omitted)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    structure_parser = subparsers.add_parser("structure", help="Show network structure")
    structure_parser.set_defaults(func=cmd_structure)

    query_parser = subparsers.add_parser("query", help="Approximate query for one complication")
    query_parser.add_argument("complication")
    _add_evidence_arg(query_parser)
    query_parser.set_defaults(func=cmd_query)

    query_all_parser = subparsers.add_parser("query-all", help="Query every complication")
    _add_evidence_arg(query_all_parser)
    query_all_parser.set_defaults(func=cmd_query_all)

    exact_parser = subparsers.add_parser("exact", help="Exact inference by variable elimination")
    exact_parser.add_argument("variable")
    _add_evidence_arg(exact_parser)
    exact_parser.set_defaults(func=cmd_exact)

    observe_parser = subparsers.add_parser("observe", help="Record an observed outcome")
    observe_parser.add_argument("complication")
    outcome = observe_parser.add_mutually_exclusive_group(required=True)
    outcome.add_argument("--occurred", dest="occurred", action="store_true")
    outcome.add_argument("--not-occurred", dest="occurred", action="store_false")
    _add_evidence_arg(observe_parser)
    observe_parser.set_defaults(func=cmd_observe)

    stats_parser = subparsers.add_parser("stats", help="Observation statistics")
    stats_parser.set_defaults(func=cmd_stats)

    reset_parser = subparsers.add_parser("reset", help="Reset learning state")
    reset_parser.set_defaults(func=cmd_reset)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    store = None
    if args.db:
        try:
            store = SQLiteObservationStore(args.db)
        except sqlite3.Error as e:
            print(f"Error: cannot open database {args.db!r}: {e}", file=sys.stderr)
            return 1

    try:
        network = ComplicationBayesianNetwork(store=store)
        return args.func(network, args)
    finally:
        if store is not None:
            store.close()


if __name__ == "__main__":
    sys.exit(main())
