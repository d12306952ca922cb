#!/usr/bin/env python3
"""Validate the static guideline flowcharts.

Checks every branch map for the tree invariant (root present, every child
id has a record, one parent per node, everything reachable from the root)
and builds the fully-expanded layout to confirm every record is placed.

Usage: python3 scripts/validate_flowcharts.py [--flowchart ID] [--verbose]
"""

import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import argparse

from src.flowcharts import FLOWCHART_ROOT, get_flowchart, list_flowcharts, validate_flowchart
from src.tree_layout import build_layout

logger = logging.getLogger(__name__)


def check_flowchart(flowchart_id: str, verbose: bool = False) -> bool:
    nodes = get_flowchart(flowchart_id)
    problems = validate_flowchart(nodes, FLOWCHART_ROOT)

    layout = build_layout(nodes, nodes.keys(), FLOWCHART_ROOT)
    if len(layout.nodes) != len(nodes):
        problems.append(
            f"fully expanded layout shows {len(layout.nodes)} of {len(nodes)} nodes"
        )

    status = "PASS" if not problems else "FAIL"
    print(f"  [{status}] {flowchart_id} ({len(nodes)} nodes, {len(layout.edges)} edges)")
    for problem in problems:
        print(f"      - {problem}")
    if verbose:
        depth = max(n.level for n in layout.nodes) if layout.nodes else 0
        print(f"      depth: {depth}")
    return not problems


def main():
    parser = argparse.ArgumentParser(
        description="Validate the ESMO NSCLC guideline flowcharts"
    )
    parser.add_argument("--flowchart", help="Only validate this branch id")
    parser.add_argument("--verbose", action="store_true", help="Show detailed output")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    ids = [info.id for info in list_flowcharts()]
    if args.flowchart:
        if args.flowchart not in ids:
            print(f"Unknown flowchart '{args.flowchart}'. Known: {', '.join(ids)}")
            return 2
        ids = [args.flowchart]

    print("=" * 60)
    print("ESMO NSCLC -- Flowchart Validation")
    print("=" * 60)

    failed = [fc_id for fc_id in ids if not check_flowchart(fc_id, args.verbose)]

    print(f"\n{'=' * 60}")
    print(f"Validation Summary: {len(ids) - len(failed)}/{len(ids)} flowcharts valid")
    status = "ALL PASSED" if not failed else f"{len(failed)} FAILED"
    print(f"  STATUS: {status}")
    print(f"{'=' * 60}")

    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
