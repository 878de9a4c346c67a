"""Log rollover service — writes demo log lines with daily/size rollover and retention sweeps."""

import argparse
import logging
import random
import signal
import sys
import time
from datetime import datetime

from rollover.config import load_config, load_yaml_config
from rollover.coordinator import InitializationError, RotationCoordinator, WriteFailure
from rollover.naming import NamingScheme, RolloverMode
from rollover.sweeper import RetentionSweeper

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [log-rollover] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


def generate_entry(seq: int = 0) -> bytes:
    """One demo record: local timestamp, sequence number and a random payload size."""
    stamp = datetime.now().isoformat(timespec="milliseconds")
    payload = "." * random.randint(8, 64)
    return f"{stamp} seq={seq:08d} {payload}\n".encode("ascii")


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Log Rollover Service")
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file with a 'rotation' section",
    )
    parser.add_argument(
        "--sweep-once", action="store_true",
        help="Run a single retention sweep and exit",
    )
    parser.add_argument(
        "--rate", type=float, default=20.0,
        help="Demo lines written per second (default: 20)",
    )
    return parser


def sweep_once(config) -> int:
    if config.mode is RolloverMode.NONE:
        logger.info("Rollover disabled (no size limit, not daily); nothing to sweep")
        return 0
    sweeper = RetentionSweeper(NamingScheme.from_config(config), config.file_count)
    try:
        result = sweeper.sweep()
    except OSError as exc:
        logger.error("Cannot sweep %s: %s", config.directory, exc)
        return 1
    logger.info(
        "Sweep complete: %d deleted, %d failed, %d kept",
        len(result.deleted), len(result.failed), len(result.kept),
    )
    return 1 if result.failed else 0


def main(argv=None) -> int:
    args = build_cli_parser().parse_args(argv)
    config = load_config(load_yaml_config(args.config))
    logger.info(
        "Config: prefix=%s, dir=%s, limit=%d bytes, daily=%s, file_count=%d",
        config.file_prefix, config.directory, config.size_limit_bytes,
        config.daily, config.file_count,
    )

    if args.sweep_once:
        return sweep_once(config)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    coordinator = RotationCoordinator(config)
    try:
        coordinator.initialize()
    except InitializationError as exc:
        logger.error("%s", exc)
        return 1

    entries_written = 0
    delay = 1.0 / args.rate if args.rate > 0 else 0
    try:
        while _running:
            try:
                archived = coordinator.write(generate_entry(entries_written))
            except WriteFailure as exc:
                logger.error("Dropped entry: %s", exc)
            else:
                entries_written += 1
                if archived:
                    logger.info("Archived: %s (%d entries written so far)", archived, entries_written)
            time.sleep(delay)
    except KeyboardInterrupt:
        pass
    finally:
        coordinator.shutdown()

    logger.info("Shut down cleanly. Total entries written: %d", entries_written)
    return 0


if __name__ == "__main__":
    sys.exit(main())
