"""File processing utilities for the folder organizer.

`process_new_file` is the per-file pipeline shared by the one-shot walk and
the watcher: classify the file, wait for its size to settle, pick a free name
in the category folder and move it there.
"""
from __future__ import annotations

import logging
import os
import shutil
import time
from typing import Optional

from processors.categories import classify
from processors.errors import (
    FileStatError,
    FileStillChangingError,
    MoveError,
    SourceRemovalError,
)

LOGGER_NAME = "folder_organizer"

DEFAULT_SETTLE_SECONDS = 0.5
DEFAULT_MAX_TRIES = 5


def get_logger(logger: Optional[logging.Logger] = None) -> logging.Logger:
    return logger or logging.getLogger(LOGGER_NAME)


def wait_for_complete_file(
    path: str,
    check_interval: float = DEFAULT_SETTLE_SECONDS,
    attempts: int = DEFAULT_MAX_TRIES,
) -> None:
    """Block until two consecutive size readings of `path` are equal.

    Raises FileStatError as soon as the file cannot be stat'ed and
    FileStillChangingError once `attempts` readings have gone by without a
    repeat.
    """
    prev_size = -1
    for _ in range(attempts):
        try:
            size = os.path.getsize(path)
        except OSError as exc:
            raise FileStatError(f"stat {path}: {exc}", path) from exc
        if size == prev_size:
            return
        prev_size = size
        time.sleep(check_interval)
    raise FileStillChangingError(f"file {path} is still changing", path)


def unique_destination(target_dir: str, base_name: str) -> str:
    """Return a path in `target_dir` that does not exist yet.

    Tries `base_name` first, then `1_base_name`, `2_base_name`, ...
    """
    dest = os.path.join(target_dir, base_name)
    i = 1
    while os.path.exists(dest):
        dest = os.path.join(target_dir, f"{i}_{base_name}")
        i += 1
    return dest


def move_file(
    src: str,
    dst: str,
    dry_run: bool = False,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Move `src` to `dst` and return `dst`.

    - In dry-run mode only announces the move.
    - Creates the parent folder of `dst` if needed.
    - Falls back to copy + delete when a rename is not possible (e.g. across
      devices).
    """
    logger = get_logger(logger)

    if dry_run:
        logger.info("[dry-run] %s → %s", src, dst)
        return dst

    os.makedirs(os.path.dirname(dst), exist_ok=True)

    try:
        os.rename(src, dst)
    except OSError as rename_error:
        try:
            shutil.copy2(src, dst)
        except OSError as copy_error:
            raise MoveError(src, dst, rename_error, copy_error) from copy_error
        try:
            os.remove(src)
        except OSError as remove_error:
            raise SourceRemovalError(src, dst, remove_error) from remove_error

    logger.info("Moved: %s → %s", src, dst)
    return dst


def process_new_file(
    path: str,
    dest_dir: str,
    dry_run: bool = False,
    settle_seconds: float = DEFAULT_SETTLE_SECONDS,
    max_tries: int = DEFAULT_MAX_TRIES,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Sort `path` into its category folder under `dest_dir`.

    Returns the destination path. Any failure is raised to the caller.
    """
    target_dir = os.path.join(dest_dir, classify(path))
    wait_for_complete_file(path, settle_seconds, max_tries)
    dest = unique_destination(target_dir, os.path.basename(path))
    return move_file(path, dest, dry_run=dry_run, logger=logger)


def inside_dir(directory: str, path: str) -> bool:
    """True if `path` is `directory` or lies somewhere below it."""
    directory = os.path.abspath(directory)
    path = os.path.abspath(path)
    try:
        return os.path.commonpath([directory, path]) == directory
    except ValueError:
        # different drives on Windows
        return False
