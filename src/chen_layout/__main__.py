import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from chen_layout import (
    ALGORITHMS,
    build_chen_graph,
    fit_view,
    graph_from_dict,
    run_layout,
    targets_to_dict,
)
from chen_layout.serialization import schema_from_dict

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _positive(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lay out Chen ER diagrams")
    parser.add_argument(
        "path",
        help="JSON graph snapshot ({nodes, edges}) or schema ({tables, relations})",
    )
    parser.add_argument(
        "--algorithm",
        choices=ALGORITHMS,
        default="arrange",
        help="Layout algorithm (default: arrange)",
    )
    parser.add_argument("--width", type=_positive, default=1200, help="Container width (default: 1200)")
    parser.add_argument("--height", type=_positive, default=800, help="Container height (default: 800)")
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for initial placement jitter (default: 0)",
    )
    parser.add_argument("--output", help="Write the result JSON here instead of stdout")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    with open(args.path, encoding="utf-8") as fin:
        data = json.load(fin)

    if "tables" in data:
        logger.info("Building graph from schema in %s", args.path)
        graph = build_chen_graph(*schema_from_dict(data))
    else:
        logger.info("Reading graph snapshot from %s", args.path)
        graph = graph_from_dict(data)

    result = run_layout(graph, args.algorithm, args.width, args.height, args.seed)

    payload = {"algorithm": args.algorithm, "targets": targets_to_dict(result.targets)}
    if result.fit_view:
        view = fit_view(graph, result.targets, args.width, args.height)
        if view is not None:
            payload["view"] = {
                "zoom": view.zoom,
                "translate_x": view.translate_x,
                "translate_y": view.translate_y,
            }

    text = json.dumps(payload, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fout:
            fout.write(text + "\n")
        logger.info("Wrote %d targets to %s", len(result.targets), args.output)
    else:
        sys.stdout.write(text + "\n")


if __name__ == "__main__":
    main()
