"""One-shot organizing pass over a source tree."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from processors.file_processor import (
    DEFAULT_MAX_TRIES,
    DEFAULT_SETTLE_SECONDS,
    get_logger,
    inside_dir,
    process_new_file,
)


@dataclass
class OrganizeSummary:
    moved: int = 0
    planned: int = 0
    failed: int = 0


def _raise(error: OSError) -> None:
    raise error


def organize_once(
    source: str,
    dest: str,
    no_recursive: bool = False,
    dry_run: bool = False,
    settle_seconds: float = DEFAULT_SETTLE_SECONDS,
    max_tries: int = DEFAULT_MAX_TRIES,
    logger: Optional[logging.Logger] = None,
) -> OrganizeSummary:
    """Walk `source` once and sort every file into `dest`.

    The destination subtree is never entered, even when it sits inside
    `source`. With `no_recursive` only files directly in `source` are handled.
    Symlinks to directories are moved like files.
    Per-file failures are logged and skipped; a directory that cannot be read
    aborts the walk with its OSError.
    """
    logger = get_logger(logger)
    source = os.path.abspath(source)
    dest = os.path.abspath(dest)
    summary = OrganizeSummary()

    if source == dest:
        return summary

    for dirpath, dirnames, filenames in os.walk(source, onerror=_raise):
        # links to directories are moved as links, never followed
        links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        if no_recursive:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in links and os.path.join(dirpath, d) != dest
            )

        for name in sorted(filenames + links):
            path = os.path.join(dirpath, name)
            if inside_dir(dest, path):
                continue
            try:
                process_new_file(
                    path,
                    dest,
                    dry_run=dry_run,
                    settle_seconds=settle_seconds,
                    max_tries=max_tries,
                    logger=logger,
                )
                if dry_run:
                    summary.planned += 1
                else:
                    summary.moved += 1
            except Exception as exc:
                logger.error("move failed: %s", exc)
                summary.failed += 1

    return summary
