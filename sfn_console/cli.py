#!/usr/bin/env python3
"""
Lay out a state machine definition and print the diagram graph as JSON

Reads an Amazon States Language definition from a file (or stdin) and prints
either the layout graph (nodes/edges with coordinates) or the React Flow
elements the dashboard renders.

Usage:
    sfn-layout definition.asl.json
    sfn-layout - --format reactflow < definition.asl.json
    python -m sfn_console.cli definition.asl.json --indent 0
    sfn-layout --list-engines

Exit codes:
    0: Layout printed (an empty graph for a malformed definition)
    1: Input could not be read (missing file, not UTF-8) or bad engine settings
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sfn_console.dashboard.graph_converter import ReactFlowConverter
from sfn_console.layout.engines import available_engines, describe_engines, get_engine

logger = logging.getLogger(__name__)


def read_definition(source: str) -> str:
    """Read definition text from a path, or from stdin for '-'."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lay out a Step Functions state machine definition as a diagram graph."
    )
    parser.add_argument(
        "source",
        nargs="?",
        default="-",
        help="Path to the definition JSON ('-' for stdin, the default)"
    )
    parser.add_argument(
        "--format",
        choices=["layout", "reactflow"],
        default="layout",
        help="Output the layout graph or React Flow elements"
    )
    parser.add_argument(
        "--engine",
        choices=available_engines(),
        default=None,
        help="Layout engine (defaults to SFN_LAYOUT_ENGINE or 'top-down')"
    )
    parser.add_argument(
        "--list-engines",
        action="store_true",
        help="Print the registered engines and what they draw, then exit"
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (0 for compact output)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.list_engines:
        try:
            engines = describe_engines()
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(engines, indent=args.indent or None))
        return 0

    try:
        text = read_definition(args.source)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {args.source}: {e}", file=sys.stderr)
        return 1

    try:
        engine = get_engine(args.engine)()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    graph = engine.layout(text)
    for warning in graph.warnings:
        logger.info(f"Dropped reference: {warning}")

    if args.format == "reactflow":
        payload = ReactFlowConverter().layout_to_reactflow(graph)
    else:
        payload = graph.to_dict()

    print(json.dumps(payload, indent=args.indent or None, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
