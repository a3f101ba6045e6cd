"""
Command-line entry point: print the deduplicated tree for each argument.

    deencode Clément
    deencode -d 2 -e utf8 -e latin1 Clément
    deencode --json Clément
"""

import argparse
import logging
import sys

from core import DeencodeError, check_tractable, deencode
from engines import DEFAULT_ENGINE_KEYS, ENGINE_FACTORIES, make_engines
from render import render_artifacts, render_tree, tree_to_json

logger = logging.getLogger(__name__)

DEFAULT_MAX_NODES = 1_000_000


def build_parser():
    parser = argparse.ArgumentParser(
        prog="deencode",
        description="Explore how a string gets mangled by mismatched encode/decode steps.",
    )
    parser.add_argument("strings", nargs="*", metavar="STRING", help="input strings")
    parser.add_argument(
        "-d", "--depth", type=int, default=1,
        help="encode steps per path; each is followed by a decode (default: 1)",
    )
    parser.add_argument(
        "-e", "--engine", action="append", dest="engines", metavar="KEY",
        choices=sorted(ENGINE_FACTORIES),
        help="engine to use, repeatable, order matters "
             f"(default: {' '.join(DEFAULT_ENGINE_KEYS)})",
    )
    parser.add_argument("--list-engines", action="store_true", help="list engine keys and exit")
    parser.add_argument("--no-dedup", action="store_true", help="print the full tree")
    parser.add_argument("--json", action="store_true", help="print JSON instead of a diagram")
    parser.add_argument("--summary", action="store_true", help="also print the distinct outputs")
    parser.add_argument(
        "--max-nodes", type=int, default=DEFAULT_MAX_NODES,
        help=f"refuse trees that may exceed this many nodes (default: {DEFAULT_MAX_NODES})",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="more logging")
    return parser


def configure_logging(verbosity):
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run(args, out=None):
    out = out or sys.stdout
    if args.list_engines:
        for key, engine in zip(ENGINE_FACTORIES, make_engines(ENGINE_FACTORIES)):
            print(f"{key:12} {engine.get_name()}", file=out)
        return 0

    engines = make_engines(args.engines or DEFAULT_ENGINE_KEYS)
    estimate = check_tractable(len(engines), args.depth, args.max_nodes)
    logger.info("%d engines, depth %d: at most %d nodes per tree", len(engines), args.depth, estimate)

    for string in args.strings:
        tree = deencode(string, engines, args.depth)
        artifacts = None if args.no_dedup else tree.deduplicate()
        if args.json:
            print(tree_to_json(tree), file=out)
        else:
            print(render_tree(tree), file=out)
        if args.summary and artifacts is not None:
            print(render_artifacts(*artifacts), file=out)
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    if not args.strings and not args.list_engines:
        parser.error("at least one STRING is required")
    try:
        return run(args)
    except DeencodeError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
