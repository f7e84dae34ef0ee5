"""
Command-line interface for pypidstat.

This module parses pidstat-style arguments, resolves the target processes,
and runs the sampling loop, printing one report per interval.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from ..collectors import create_collector
from ..config import get_config, set_config_path
from ..formatting import select_palette
from ..models import AppConfig, MetricGroup, MetricSelection
from ..report import ReportRenderer
from ..sampling import Sampler
from ..system import all_pids, find_pids_by_command
from ..validation import (
    InternalInconsistencyError,
    UnimplementedError,
    ValidationError,
    handle_cli_error,
    validate_pid_list,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure root logging once; report text goes to stdout, logs to stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pypidstat",
        description="Report statistics for Linux tasks (processes and threads).",
    )
    parser.add_argument(
        "-p",
        "--pid",
        help="Comma-separated process ids to monitor, or ALL for every process.",
    )
    parser.add_argument(
        "-C",
        "--command",
        help="Only monitor processes whose command name matches this regular expression.",
    )
    parser.add_argument("-u", "--cpu", action="store_true", help="Report CPU utilization.")
    parser.add_argument("-r", "--mem", action="store_true", help="Report page faults and memory utilization.")
    parser.add_argument("-d", "--io", action="store_true", help="Report I/O statistics.")
    parser.add_argument("-w", "--ctx-switch", action="store_true", help="Report task switching activity.")
    parser.add_argument("-s", "--stack", action="store_true", help="Report stack utilization.")
    parser.add_argument("-t", "--threads", action="store_true", help="Also report every thread of each process.")
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        help="Colorize output (default from configuration).",
    )
    parser.add_argument("--config", type=Path, help="Path to a config.toml file.")
    parser.add_argument(
        "--retry",
        type=int,
        help="Read attempts per process and interval before a vanished process is dropped.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("interval", nargs="?", help="Seconds between reports.")
    parser.add_argument("count", nargs="?", help="Number of reports to print.")
    return parser


def parse_selection(args: argparse.Namespace, config: AppConfig) -> MetricSelection:
    """Metric groups from the group flags, or the configured defaults."""
    selection = MetricSelection(
        cpu=args.cpu,
        mem=args.mem,
        io=args.io,
        ctx_switch=args.ctx_switch,
        stack=args.stack,
    )
    if selection.is_empty:
        selection = MetricSelection.from_groups(MetricGroup(g) for g in config.report.default_groups)
    return selection


def resolve_targets(args: argparse.Namespace) -> List[int]:
    """
    Turn -p and -C into a sorted list of pids.

    Raises:
        ValidationError: If the arguments are malformed or select nothing.
    """
    if not args.pid and not args.command:
        raise ValidationError("Specify processes with -p or -C", field_name="-p")

    pids: Optional[List[int]] = None
    if args.pid:
        if args.pid.upper() == "ALL":
            pids = all_pids()
        else:
            pids = validate_pid_list(args.pid, field_name="-p argument")
    if args.command:
        pattern = validate_regex_pattern(args.command, field_name="-C argument")
        matched = find_pids_by_command(pattern)
        pids = matched if pids is None else sorted(set(pids) & set(matched))

    if not pids:
        raise ValidationError("No process matches the given selection", field_name="-p")
    return pids


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line entry point.

    Raises:
        SystemExit: With 0 on completion or interrupt, 1 on configuration or
            validation errors or when every target exited, 2 when the
            platform is unsupported or the last remaining target had
            inconsistent counters.
    """
    args = build_parser().parse_args(argv)

    if args.config is not None:
        set_config_path(args.config)
    try:
        config = get_config()
    except (OSError, ValueError, ValidationError) as e:
        setup_logging("WARNING")
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    setup_logging("DEBUG" if args.verbose else config.general.log_level)
    # SIGTERM ends the loop the same way Ctrl-C does
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        if args.interval is not None:
            interval = validate_positive_float(args.interval, min_value=0.01, field_name="interval")
            count = (
                validate_positive_integer(args.count, min_value=1, field_name="count")
                if args.count is not None
                else None
            )
        else:
            interval = config.collection.interval_seconds
            count = 1
        retry_attempts = (
            validate_positive_integer(args.retry, min_value=1, max_value=10, field_name="--retry")
            if args.retry is not None
            else config.collection.retry_attempts
        )
        targets = resolve_targets(args)
    except ValidationError as e:
        handle_cli_error(error=e, context="argument validation", exit_code=1, logger=logger)

    selection = parse_selection(args, config)
    palette = select_palette(args.color or config.general.color, sys.stdout.isatty())
    collector = create_collector(proc_root=config.collection.proc_root)

    logger.info(
        f"Monitoring {len(targets)} process(es) every {interval}s, "
        f"groups: {sorted(g.value for g in selection.groups)}"
    )

    with Sampler(
        collector,
        selection,
        ReportRenderer(palette),
        include_threads=args.threads,
        retry_attempts=retry_attempts,
        retry_delay=config.collection.retry_delay_seconds,
        max_workers=config.collection.max_workers,
    ) as sampler:
        try:
            remaining = sampler.run(targets, interval, count=count, stream=sys.stdout)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping.")
            sys.exit(0)
        except (UnimplementedError, InternalInconsistencyError) as e:
            handle_cli_error(
                error=e,
                context="sampling",
                exit_code=2,
                include_traceback=isinstance(e, InternalInconsistencyError),
                logger=logger,
            )

    if not remaining:
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main_cli()
