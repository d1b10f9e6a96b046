#!/usr/bin/env python3
"""CLI for the switch engine puffer search."""

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np

from .automaton import EngineError, GridEngine, Rule
from .config import SearchConfig
from .rle import format_rle, parse_rle
from .search import SearchState, ShutdownFlag, format_status, run_search
from .signatures import DEFAULT_CATALOG
from .storage import (
    FOUND_LOG_NAME,
    FoundLog,
    OutcomeRecorder,
    StorageError,
    next_trial_index,
    prepare_output_dir,
)
from .trial import TrialRunner
from .visualize import save_image

SCRIPT_TITLE = "Switch engine orbit search"


def load_config(path, **overrides) -> SearchConfig:
    """Config file (if any) overridden by command-line flags."""
    config = SearchConfig()
    try:
        if path:
            config = SearchConfig.from_json(path)
        return config.replace(**overrides)
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading config '{path}': {e}")
        sys.exit(1)


def build_engine(config: SearchConfig) -> GridEngine:
    return GridEngine(
        size=config.grid_size,
        origin=config.origin,
        rule=Rule.from_string(config.rule),
        rng=np.random.default_rng(config.seed),
    )


def cmd_search(args):
    """Run the puffer search until interrupted."""
    config = load_config(
        args.config,
        output_dir=args.output,
        seed=args.seed,
        max_quantums=args.max_quantums,
        status_every=args.status_every,
        snapshots=True if args.snapshots else None,
    )
    engine = build_engine(config)

    try:
        output_dir = prepare_output_dir(config.output_dir, engine)
    except StorageError as e:
        print(f"Error: {e}")
        print(f"Create '{config.output_dir}' manually or choose another with --output.")
        sys.exit(1)

    print(f"Running {SCRIPT_TITLE.lower()}...")
    print(f"  Output: {output_dir}")
    print(f"  Generations per quantum: {config.gens_per_quantum}")
    print(f"  Max quanta: {config.max_quantums}")
    print(f"  Reset quanta: {', '.join(str(q) for q in config.reset_quanta)}")
    print(f"  Seed: {config.seed}")
    print()

    found_log = FoundLog(str(output_dir / FOUND_LOG_NAME)) if config.found_log else None
    first_index = next_trial_index(str(output_dir), found_log)
    if first_index:
        print(f"Continuing from trial {first_index} (earlier finds in {output_dir})")
    runner = TrialRunner(engine, config, DEFAULT_CATALOG)
    recorder = OutcomeRecorder(engine, str(output_dir), found_log=found_log,
                               snapshots=config.snapshots)

    flag = ShutdownFlag()
    try:
        with flag.installed():
            state = run_search(
                runner,
                recorder,
                status_every=config.status_every,
                state=SearchState(start_time=time.monotonic(), first_index=first_index),
                should_stop=flag,
                max_trials=args.trials,
            )
    except EngineError as e:
        print(f"Engine failure: {e}")
        sys.exit(2)

    print()
    print(format_status(state, time.monotonic()) or f"Runs:{state.trials} found:{state.found}")


def cmd_catalog(args):
    """Show the known signatures."""
    print(f"{len(DEFAULT_CATALOG)} signatures:\n")
    print(f"{'Class':<22}{'pd[q]':>8}{'pd[q-1]':>10}{'pd[q-2]':>10}")
    print("-" * 50)
    for outcome_class in DEFAULT_CATALOG.classes():
        for a, b, c in DEFAULT_CATALOG.signatures_for(outcome_class):
            print(f"{outcome_class.value:<22}{a:>8}{b:>10}{c:>10}")


def cmd_seed(args):
    """Write the seed pattern as an RLE file."""
    config = load_config(args.config)
    pattern = parse_rle(config.seed_rle)
    text = format_rle(pattern, rule=config.rule, position=config.seed_offset)
    Path(args.output).write_text(text)
    print(f"Saved seed to {args.output}")


def cmd_render(args):
    """Render a saved RLE pattern as PNG."""
    try:
        cells = parse_rle(Path(args.pattern).read_text())
    except (OSError, ValueError) as e:
        print(f"Error reading pattern '{args.pattern}': {e}")
        sys.exit(1)

    output = args.output or str(Path(args.pattern).with_suffix(".png"))
    save_image(cells, output, cell_size=args.cell_size)
    print(f"Saved image to {output}")


def main():
    parser = argparse.ArgumentParser(
        description="Switch engine puffer search - find unknown switch engine puffers in Life"
    )
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Search command
    search_parser = subparsers.add_parser("search", help="Run the puffer search")
    search_parser.add_argument("--config", type=str, default=None, help="JSON config file")
    search_parser.add_argument("-o", "--output", type=str, default=None, help="Output directory")
    search_parser.add_argument("-n", "--trials", type=int, default=None, help="Stop after this many trials")
    search_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    search_parser.add_argument("--max-quantums", type=int, default=None, help="Quanta before a trial is unidentified")
    search_parser.add_argument("--status-every", type=int, default=None, help="Trials between status lines")
    search_parser.add_argument("--snapshots", action="store_true", help="Also save PNGs of found patterns")
    search_parser.set_defaults(func=cmd_search)

    # Catalog command
    catalog_parser = subparsers.add_parser("catalog", help="List known signatures")
    catalog_parser.set_defaults(func=cmd_catalog)

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Write the seed pattern as RLE")
    seed_parser.add_argument("--config", type=str, default=None, help="JSON config file")
    seed_parser.add_argument("-o", "--output", type=str, default="seed.rle", help="Output RLE file")
    seed_parser.set_defaults(func=cmd_seed)

    # Render command
    render_parser = subparsers.add_parser("render", help="Render an RLE file as PNG")
    render_parser.add_argument("pattern", type=str, help="RLE pattern file")
    render_parser.add_argument("-o", "--output", type=str, default=None, help="Output PNG file")
    render_parser.add_argument("--cell-size", type=int, default=4, help="Cell size in pixels")
    render_parser.set_defaults(func=cmd_render)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s: %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
