from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
from logging.handlers import RotatingFileHandler

from processors.file_processor import DEFAULT_MAX_TRIES, DEFAULT_SETTLE_SECONDS, LOGGER_NAME
from processors.traversal import organize_once
from watcher import watch_dir


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def setup_logger(logfile: str | None = None, verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Console gets the bare message so "Moved: ..." lines read cleanly
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console)

    if logfile:
        # Rotating file handler to avoid unbounded log growth
        handler = RotatingFileHandler(logfile, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(handler)

    return logger


DEFAULT_SOURCE = "."
DEFAULT_DEST = "./organized"
DEFAULT_MODE = "once"
MODES = ("once", "watch")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sort files into category folders by extension")
    parser.add_argument(
        "-source", "--source",
        default=DEFAULT_SOURCE,
        help=f"Source directory (default {DEFAULT_SOURCE})"
    )
    parser.add_argument(
        "-dest", "--dest",
        default=DEFAULT_DEST,
        help=f"Destination directory (default {DEFAULT_DEST})"
    )
    parser.add_argument("-mode", "--mode", default=DEFAULT_MODE, help="Mode: once or watch")
    parser.add_argument("-dry", "--dry", action="store_true", help="Dry run (no changes)")
    parser.add_argument(
        "-no-recursive", "--no-recursive",
        dest="no_recursive",
        action="store_true",
        help="Do not traverse or watch subdirectories"
    )
    parser.add_argument("--settle", type=float, default=DEFAULT_SETTLE_SECONDS, help="Seconds to wait between file-size checks")
    parser.add_argument("--tries", type=int, default=DEFAULT_MAX_TRIES, help="Number of size checks before giving up on a file")
    parser.add_argument("--logfile", default=None, help="Also write a rotating log to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output")
    return parser.parse_args(argv)


def install_stop_handlers(stop: threading.Event) -> None:
    def _request_stop(signum, frame):
        print("\nStopping watcher...")
        stop.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logger = setup_logger(args.logfile, verbose=args.verbose)

    try:
        ensure_dir(args.dest)
    except OSError as exc:
        logger.error("cannot create destination %s: %s", args.dest, exc)
        return 1

    if args.mode == "once":
        try:
            summary = organize_once(
                args.source,
                args.dest,
                no_recursive=args.no_recursive,
                dry_run=args.dry,
                settle_seconds=args.settle,
                max_tries=args.tries,
                logger=logger,
            )
        except OSError as exc:
            logger.error("organize failed: %s", exc)
            return 1
        logger.debug(
            "Done: %d moved, %d planned, %d failed", summary.moved, summary.planned, summary.failed
        )
    elif args.mode == "watch":
        stop = threading.Event()
        install_stop_handlers(stop)
        try:
            watch_dir(
                args.source,
                args.dest,
                args.no_recursive,
                args.dry,
                stop,
                settle_seconds=args.settle,
                max_tries=args.tries,
                logger=logger,
            )
        except OSError as exc:
            logger.error("watch failed: %s", exc)
            return 1
        logger.debug("Stopped")
    else:
        print("Invalid mode. Use 'once' or 'watch'.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
