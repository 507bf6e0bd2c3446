"""Filesystem artifact storage.

Responsibilities:
- Persist text and JSON artifacts under one root directory.
- Write atomically so an interrupted run never leaves half-written artifacts.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


class ArtifactStore:
    """Filesystem-backed artifact store rooted at one output directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store at `root`; directories are created lazily on save."""

        self.root = root

    def _resolve(self, relative_path: Path) -> Path:
        """Return the absolute path for `relative_path`, creating parent directories."""

        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def save_text(self, relative_path: Path, content: str) -> Path:
        """Save text content and return the final path."""

        path = self._resolve(relative_path)
        temp_path = path.with_name(f".{path.name}.tmp")
        temp_path.write_text(content, encoding="utf-8")
        os.replace(temp_path, path)
        return path

    def save_json(self, relative_path: Path, payload: Any) -> Path:
        """Save a JSON-serializable payload and return the final path."""

        return self.save_text(
            relative_path,
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        )

    def load_text(self, relative_path: Path) -> str:
        """Load text content from artifact storage."""

        return (self.root / relative_path).read_text(encoding="utf-8")

    def load_json(self, relative_path: Path) -> Any:
        """Load and decode a JSON artifact.

        Raises:
            json.JSONDecodeError: If the artifact is not valid JSON.
        """

        return json.loads(self.load_text(relative_path))

    def exists(self, relative_path: Path) -> bool:
        """Return whether the given artifact exists."""

        return (self.root / relative_path).is_file()
