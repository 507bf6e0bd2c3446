"""Deterministic slug helpers for filesystem-safe artifact names."""

from __future__ import annotations

import hashlib
import re
import unicodedata


def slugify_title(value: str, fallback: str = "chapter") -> str:
    """Return a deterministic filesystem-safe ASCII slug for a title.

    Titles without any ASCII letters or digits (for example CJK titles)
    collapse to `fallback`.
    """

    normalized = unicodedata.normalize("NFKD", value)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    collapsed = re.sub(r"[^a-z0-9]+", "-", ascii_only.lower().strip())
    slug = collapsed.strip("-")[:60].strip("-")
    return slug or fallback


def hashed_slug(value: str) -> str:
    """Return `<slug>-<hash8>` so distinct values never share a directory."""

    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:8]
    return f"{slugify_title(value, fallback='doc')}-{digest}"
