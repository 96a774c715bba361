"""Processors package for the folder organizer.

File-level logic (classify, settle, rename, move, walk) lives here so the
watcher and the CLI stay small and testable.
"""

__all__ = ["categories", "errors", "file_processor", "traversal"]
