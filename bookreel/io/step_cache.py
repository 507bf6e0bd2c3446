"""Step-result caches keyed by `(document_id, step_name)`.

Responsibilities:
- Define the cache protocol that makes workflow steps resumable.
- Provide an in-memory cache with hit/miss telemetry.
- Provide a JSON-file cache that survives process restarts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..text.slug import hashed_slug
from .storage import ArtifactStore


class StepCache(Protocol):
    """Protocol for previously computed step results."""

    def get(self, document_id: str, step_name: str) -> Any | None:
        """Return the cached JSON-compatible value, or `None` on a miss."""

    def set(self, document_id: str, step_name: str, value: Any) -> None:
        """Store a JSON-compatible value."""


@dataclass(slots=True)
class InMemoryStepCache:
    """Process-local step cache."""

    entries: dict[tuple[str, str], Any] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    def get(self, document_id: str, step_name: str) -> Any | None:
        """Return cached value and update hit/miss counters."""

        key = (document_id, step_name)
        if key in self.entries:
            self.hits += 1
            return self.entries[key]
        self.misses += 1
        return None

    def set(self, document_id: str, step_name: str, value: Any) -> None:
        """Store a value under `(document_id, step_name)`."""

        self.entries[(document_id, step_name)] = value

    def hit_rate(self) -> float:
        """Return cache hit rate in [0.0, 1.0]."""

        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / float(total)


class JsonFileStepCache:
    """Step cache persisted as one JSON file per `(document, step)` pair.

    Layout: `<root>/<document-slug>-<hash>/<step-slug>-<hash>.json`.
    Unreadable entries (missing, undecodable bytes, invalid JSON, foreign shape)
    count as misses.
    """

    def __init__(self, root: Path) -> None:
        """Open the cache rooted at `root` with zeroed hit/miss counters."""

        self.store = ArtifactStore(root)
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _entry_path(document_id: str, step_name: str) -> Path:
        """Return the relative entry path for one `(document, step)` key."""

        return Path(hashed_slug(document_id)) / f"{hashed_slug(step_name)}.json"

    def get(self, document_id: str, step_name: str) -> Any | None:
        """Return the cached value, or `None` when absent or unreadable."""

        path = self._entry_path(document_id, step_name)
        if not self.store.exists(path):
            self.misses += 1
            return None
        try:
            envelope = self.store.load_json(path)
        except (OSError, ValueError):
            self.misses += 1
            return None
        if not isinstance(envelope, dict) or "value" not in envelope:
            self.misses += 1
            return None
        self.hits += 1
        return envelope["value"]

    def set(self, document_id: str, step_name: str, value: Any) -> None:
        """Persist a value along with its cache key."""

        self.store.save_json(
            self._entry_path(document_id, step_name),
            {"document_id": document_id, "step_name": step_name, "value": value},
        )
