"""Extension to category lookup."""
from __future__ import annotations

import os
from types import MappingProxyType

OTHER_CATEGORY = "other"

CATEGORY_MAP = MappingProxyType({
    ".jpg": "pics",
    ".jpeg": "pics",
    ".png": "pics",
    ".gif": "pics",

    ".pdf": "docs",
    ".docx": "docs",
    ".txt": "docs",

    ".mp4": "video",
    ".avi": "video",
    ".mov": "video",

    ".mp3": "audio",
    ".wav": "audio",

    ".zip": "archives",
    ".tar": "archives",
    ".rar": "archives",
})


def classify(path: str) -> str:
    """Return the category folder name for `path`, or "other" if unknown."""
    ext = os.path.splitext(path)[1].lower()
    return CATEGORY_MAP.get(ext, OTHER_CATEGORY)
