"""Continuous organizing driven by watchdog filesystem events.

The watchdog handler only queues paths. A single consumer thread takes them
off the queue in order and runs the same per-file pipeline as the one-shot
walk, so nothing here moves two files at once.
"""
from __future__ import annotations

import logging
import os
import queue
import stat
import threading
import time
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from processors.file_processor import (
    DEFAULT_MAX_TRIES,
    DEFAULT_SETTLE_SECONDS,
    get_logger,
    inside_dir,
    process_new_file,
)

_STOP = object()


class OrganizeEventHandler(FileSystemEventHandler):
    """Forward created, modified and moved-in paths to `events`."""

    def __init__(self, events: queue.Queue) -> None:
        super().__init__()
        self.events = events

    def on_created(self, event):
        self.events.put(os.fsdecode(event.src_path))

    def on_modified(self, event):
        self.events.put(os.fsdecode(event.src_path))

    def on_moved(self, event):
        self.events.put(os.fsdecode(event.dest_path))


class WatchEngine:
    def __init__(
        self,
        source: str,
        dest: str,
        no_recursive: bool = False,
        dry_run: bool = False,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        max_tries: int = DEFAULT_MAX_TRIES,
        logger: Optional[logging.Logger] = None,
        observer=None,
    ) -> None:
        self.source = os.path.abspath(source)
        self.dest = os.path.abspath(dest)
        self.no_recursive = no_recursive
        self.dry_run = dry_run
        self.settle_seconds = settle_seconds
        self.max_tries = max_tries
        self.logger = get_logger(logger)
        self.observer = observer if observer is not None else Observer()
        self.events: queue.Queue = queue.Queue()
        self.handler = OrganizeEventHandler(self.events)
        self.watch_set: set[str] = set()
        self._consumer: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    def add_dir(self, directory: str) -> None:
        """Start watching `directory` unless it is already watched or under dest."""
        directory = os.path.abspath(directory)
        if directory in self.watch_set or inside_dir(self.dest, directory):
            return
        try:
            self.observer.schedule(self.handler, directory, recursive=False)
        except OSError as exc:
            self.logger.error("watch add error: %s", exc)
            return
        self.watch_set.add(directory)

    def populate(self) -> None:
        """Fill the watch set with the source root and, if recursive, its subdirectories."""
        if self.no_recursive:
            self.add_dir(self.source)
            return
        # unreadable directories are skipped, not fatal
        for dirpath, dirnames, _ in os.walk(self.source):
            dirnames[:] = sorted(
                d for d in dirnames if not inside_dir(self.dest, os.path.join(dirpath, d))
            )
            self.add_dir(dirpath)

    def handle_path(self, path: str) -> None:
        try:
            st = os.stat(path)
        except OSError:
            # already moved or deleted
            return

        if stat.S_ISDIR(st.st_mode):
            if not self.no_recursive:
                self.add_dir(path)
            return

        if inside_dir(self.dest, path):
            return

        try:
            process_new_file(
                path,
                self.dest,
                dry_run=self.dry_run,
                settle_seconds=self.settle_seconds,
                max_tries=self.max_tries,
                logger=self.logger,
            )
        except Exception as exc:
            self.logger.error("move failed: %s", exc)

    def _consume(self) -> None:
        while True:
            path = self.events.get()
            # only the path in flight when stop() is called finishes
            if path is _STOP or self._stopping.is_set():
                return
            try:
                self.handle_path(path)
            except Exception as exc:
                self.logger.error("watcher error: %s", exc)

    def start(self) -> None:
        """Open the subscription, build the watch set and start consuming.

        An observer that cannot be started raises; that ends the run.
        """
        self._stopping.clear()
        self.observer.start()
        self.populate()
        self._consumer = threading.Thread(target=self._consume, name="organizer-consumer", daemon=True)
        self._consumer.start()
        self.logger.info("Watching: %s", self.source)

    def stop(self) -> None:
        self._stopping.set()
        self.observer.stop()
        self.events.put(_STOP)
        self.observer.join()
        if self._consumer is not None:
            self._consumer.join()
            self._consumer = None

    def run(self, stop_event: threading.Event, poll_seconds: float = 0.5) -> None:
        """Watch until `stop_event` is set, then shut down and return."""
        self.start()
        try:
            while not stop_event.is_set():
                time.sleep(poll_seconds)
        finally:
            self.stop()


def watch_dir(
    source: str,
    dest: str,
    no_recursive: bool,
    dry_run: bool,
    stop_event: threading.Event,
    settle_seconds: float = DEFAULT_SETTLE_SECONDS,
    max_tries: int = DEFAULT_MAX_TRIES,
    logger: Optional[logging.Logger] = None,
) -> None:
    engine = WatchEngine(
        source,
        dest,
        no_recursive=no_recursive,
        dry_run=dry_run,
        settle_seconds=settle_seconds,
        max_tries=max_tries,
        logger=logger,
    )
    engine.run(stop_event)
