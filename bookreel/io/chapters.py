"""Chapter artifact loading.

Responsibilities:
- Read the chapters JSON produced by an external document parser.
- Validate its shape and map failures to stage-scoped errors.

Accepted shapes:
- a list of chapter objects, or
- `{"document_id": "...", "chapters": [...]}`.

Each chapter object has `title` and `text`; `id` and `order` are optional and
default to the 1-based position and the 0-based position respectively.
Chapters are returned sorted by `order`.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any, Mapping

from ..errors import PipelineStageError
from ..models.datatypes import Chapter


@dataclass(frozen=True, slots=True)
class ChapterDocument:
    """Chapters of one document with its identifier."""

    document_id: str
    chapters: tuple[Chapter, ...]


def load_chapters(path: Path) -> ChapterDocument:
    """Load and validate a chapters JSON artifact.

    Raises:
        PipelineStageError: If the file is missing, not JSON, or malformed.
    """

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="load",
            detail=f"Chapters file not found: {path}",
            hint="Pass the JSON file produced by your document parser.",
        ) from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PipelineStageError(
            stage="load",
            detail=f"Chapters file `{path}` is not readable JSON: {exc}",
        ) from exc

    document_id = path.stem
    if isinstance(payload, Mapping):
        raw_document_id = payload.get("document_id")
        if raw_document_id is not None:
            if not isinstance(raw_document_id, str) or not raw_document_id.strip():
                raise _malformed(path, "`document_id` must be a non-empty string.")
            document_id = raw_document_id.strip()
        payload = payload.get("chapters")
    if not isinstance(payload, list):
        raise _malformed(path, "expected a list of chapters or an object with `chapters`.")

    parsed = [_parse_chapter(path, position, item) for position, item in enumerate(payload)]
    chapters = tuple(sorted(parsed, key=lambda chapter: chapter.order))
    ids = [chapter.id for chapter in chapters]
    if len(set(ids)) != len(ids):
        raise _malformed(path, "chapter `id` values must be unique.")
    return ChapterDocument(document_id=document_id, chapters=chapters)


def _parse_chapter(path: Path, position: int, item: Any) -> Chapter:
    """Validate one raw chapter object and build a `Chapter`."""

    if not isinstance(item, Mapping):
        raise _malformed(path, f"chapter #{position + 1} must be an object.")

    title = item.get("title", "")
    if not isinstance(title, str):
        raise _malformed(path, f"chapter #{position + 1} `title` must be a string.")
    text = item.get("text")
    if text is None:
        text = ""
    if not isinstance(text, str):
        raise _malformed(path, f"chapter #{position + 1} `text` must be a string.")

    raw_id = item.get("id", position + 1)
    if isinstance(raw_id, bool) or not isinstance(raw_id, str | int):
        raise _malformed(path, f"chapter #{position + 1} `id` must be a string or integer.")
    order = item.get("order", position)
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        raise _malformed(path, f"chapter #{position + 1} `order` must be a non-negative integer.")

    return Chapter(id=str(raw_id), title=title.strip(), text=text, order=order)


def _malformed(path: Path, detail: str) -> PipelineStageError:
    return PipelineStageError(
        stage="load",
        detail=f"Malformed chapters file `{path}`: {detail}",
        hint="Expected `[{\"title\": ..., \"text\": ...}, ...]`.",
    )
