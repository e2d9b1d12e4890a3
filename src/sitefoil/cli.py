"""
Module: cli

Purpose:
    Command-line entry point.

        sitefoil run -i site/ -o public/ -p 0.2 --scramble-images 0.4 --seed 7
        sitefoil maze -t site/ -o public/maze --count 50

Exit codes:
    0 - success
    1 - configuration error (nothing written)
    2 - partial success (some files missing from the output)

Key Functions:
    - main(): Parse arguments, run, return the exit code
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from sitefoil import __version__
from sitefoil.driver import RunConfig, build_maze, run_site
from sitefoil.engine import EngineConfig, SitefoilError, load_config
from sitefoil.engine.config import settings_to_engine_config
from sitefoil.engine.maze import DEFAULT_MAX_TOKENS, DEFAULT_MIN_TOKENS

logger = logging.getLogger("sitefoil")

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitefoil",
        description="Mutate a static site so scraped copies are poisoned while the structure survives.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s run -i site -o public --seed 7
  %(prog)s run -i site -o public -p 0.1 --scramble-images 0.4 --scramble-mode bytes
  %(prog)s run -i site -o public --maze-link /maze
  %(prog)s maze -t site -o public/maze --count 50
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log per-file detail")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Log warnings and errors only")

    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Transform a site directory")
    run.add_argument("-i", "--input", type=Path, required=True, help="Site to transform")
    run.add_argument("-o", "--output", type=Path, required=True, help="Output directory")
    run.add_argument("-t", "--train", type=Path, help="Train on this directory instead of the input")
    run.add_argument("-p", "--percent", type=float, dest="rate", help="Word mutation rate, 0 < p <= 1 (default: 0.2)")
    run.add_argument("--order", type=int, help="Markov context length (default: 2)")
    run.add_argument(
        "--scramble-images", type=float, dest="scramble_fraction",
        help="Fraction of images to substitute, 0..1 (default: 0.4)",
    )
    run.add_argument(
        "--scramble-mode", choices=["links", "bytes"],
        help="Rewrite references (links) or overwrite image files (bytes) (default: links)",
    )
    run.add_argument("--seed", type=int, help="Random seed (default: drawn and logged)")
    run.add_argument("--min-length", type=int, help="Shortest word eligible for mutation (default: 3)")
    run.add_argument(
        "--exclude", action="append", dest="exclude_words", metavar="WORD",
        help="Never mutate this word (repeatable)",
    )
    run.add_argument("--workers", type=int, default=4, help="Worker threads (default: 4)")
    run.add_argument("--maze-link", dest="maze_link_path", metavar="PATH", help="Embed a hidden link into PATH")
    run.add_argument("--report-dir", type=Path, help="Write timing and diagnostics reports here")
    run.add_argument("--config", type=Path, help="JSON settings file (flags override it)")
    run.set_defaults(handler=_run_command)

    maze = commands.add_parser("maze", help="Write static link-maze pages")
    maze.add_argument("-t", "--train", type=Path, required=True, help="Corpus to train on")
    maze.add_argument("-o", "--output", type=Path, required=True, help="Directory for the pages")
    maze.add_argument("--count", type=int, default=10, help="Number of pages (default: 10)")
    maze.add_argument("--link-path", default="/maze", help="URL path the pages are served under (default: /maze)")
    maze.add_argument("--min-tokens", type=int, default=DEFAULT_MIN_TOKENS, help="Minimum words per page")
    maze.add_argument("--max-tokens", type=int, default=DEFAULT_MAX_TOKENS, help="Maximum words per page")
    maze.add_argument("--order", type=int, help="Markov context length (default: 2)")
    maze.add_argument("--seed", type=int, help="Random seed (default: drawn and logged)")
    maze.add_argument("--workers", type=int, default=4, help="Worker threads (default: 4)")
    maze.set_defaults(handler=_maze_command)

    return parser


def _engine_config(args: argparse.Namespace) -> EngineConfig:
    """Settings file first, then any flags that were given."""
    base = load_config(args.config) if getattr(args, "config", None) else EngineConfig()
    settings: Dict[str, Any] = {}
    for key in ("rate", "order", "scramble_fraction", "scramble_mode", "min_length", "exclude_words", "maze_link_path"):
        value = getattr(args, key, None)
        if value is not None:
            settings[key] = value
    return settings_to_engine_config(settings, base)


def _run_command(args: argparse.Namespace) -> int:
    config = RunConfig(
        input_root=args.input,
        output_root=args.output,
        train_root=args.train,
        engine=_engine_config(args),
        seed=args.seed,
        workers=args.workers,
        report_dir=args.report_dir,
    )
    result = run_site(config)
    for issue in result.issues:
        logger.debug(f"{issue.issue_type}: {issue.path} ({issue.phase}): {issue.message}")
    print(result.summary())
    return result.exit_code


def _maze_command(args: argparse.Namespace) -> int:
    pages = build_maze(
        args.train,
        args.output,
        count=args.count,
        seed=args.seed,
        link_path=args.link_path,
        min_tokens=args.min_tokens,
        max_tokens=args.max_tokens,
        engine=_engine_config(args),
        workers=args.workers,
    )
    print(f"Wrote {len(pages)} maze pages to {args.output}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    args = _build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(message)s")

    try:
        return args.handler(args)
    except (SitefoilError, ValueError, OSError) as e:
        logger.error(f"{e}")
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
