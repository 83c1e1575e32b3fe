"""Name normalization helpers shared by the walker and the orchestrator."""

from __future__ import annotations

import re

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_FILENAME_PATTERN = re.compile(r"[^A-Za-z0-9._-]+")


def slugify(value: str) -> str:
    """Turn a chapter display name into its directory segment.

    The name is lower-cased and every run of non-alphanumeric characters
    becomes a single ``-``, including runs at either end, so ``What's next?``
    lives in ``what-s-next-/``.
    """

    return _SLUG_PATTERN.sub("-", value.lower())


def sanitize_filename(value: str) -> str:
    """Flatten a relative path into a single blob-key-safe filename."""

    cleaned = _FILENAME_PATTERN.sub("_", value.strip()).strip("_")
    return cleaned or "file"
