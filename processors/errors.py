"""Errors raised while settling and moving a single file.

All of them are per-file failures: the drivers log them and carry on with the
next file.
"""
from __future__ import annotations


class OrganizerError(Exception):
    """Base class for per-file failures."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class FileStatError(OrganizerError):
    """The file could not be stat'ed while waiting for it to settle."""


class FileStillChangingError(OrganizerError):
    """The file size never settled within the attempt budget."""


class MoveError(OrganizerError):
    """Both the rename and the copy fallback failed. The source is untouched."""

    def __init__(self, path: str, dst: str, rename_error: OSError, copy_error: OSError) -> None:
        super().__init__(
            f"move {path} → {dst}: rename={rename_error}, copy={copy_error}", path
        )
        self.dst = dst
        self.rename_error = rename_error
        self.copy_error = copy_error


class SourceRemovalError(OrganizerError):
    """The copy fallback succeeded but the source could not be removed.

    The file now exists at both `path` and `dst`.
    """

    def __init__(self, path: str, dst: str, error: OSError) -> None:
        super().__init__(f"remove source after copy {path}: {error}", path)
        self.dst = dst
        self.error = error
