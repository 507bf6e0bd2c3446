"""Core datatypes shared across Bookreel modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Model per-chapter outcomes as a tagged union instead of loosely typed dicts.
- Hold the engine-owned workflow state and its last-write-wins merge rule.

Key types:
- `Chapter`, `Segment`, `SegmentSummary`, `ChapterStatus`, `SkipOutcome`,
  `ProcessingOutcome`, `FailedOutcome`, `ChapterResult`, and `WorkflowState`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Mapping, Union


@dataclass(frozen=True, slots=True)
class Chapter:
    """A chapter produced by an external document parser.

    Attributes:
        id: Stable chapter identifier within its document.
        title: Chapter title or inferred label.
        text: Raw chapter text.
        order: 0-based position of the chapter in document order.
    """

    id: str
    title: str
    text: str
    order: int


@dataclass(frozen=True, slots=True)
class Segment:
    """A bounded contiguous slice of filtered chapter text.

    Attributes:
        index: 0-based segment index within the chapter.
        text: Segment text content.
    """

    index: int
    text: str


@dataclass(frozen=True, slots=True)
class SegmentSummary:
    """Summary output for one segment.

    `succeeded=False` marks a deterministic truncated-original fallback.
    """

    segment_index: int
    text: str
    succeeded: bool


class ChapterStatus(str, Enum):
    """Lifecycle status values shared by chapter outcomes and workflow state."""

    PENDING = "pending"
    PROCESSING = "processing"
    SKIP = "skip"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class SkipOutcome:
    """Chapter judged unsuitable for downstream production (not an error).

    `transient` marks skips caused by a passing condition such as a timeout;
    those are never cached so a resumed run retries the chapter.
    """

    reason: str
    transient: bool = False
    status: ClassVar[ChapterStatus] = ChapterStatus.SKIP


@dataclass(frozen=True, slots=True)
class ProcessingOutcome:
    """Chapter accepted for downstream stages."""

    processed_text: str
    analysis_text: str
    status: ClassVar[ChapterStatus] = ChapterStatus.PROCESSING


@dataclass(frozen=True, slots=True)
class FailedOutcome:
    """Chapter processing failed with a descriptive message."""

    error_message: str
    status: ClassVar[ChapterStatus] = ChapterStatus.FAILED


ChapterOutcome = Union[SkipOutcome, ProcessingOutcome, FailedOutcome]


def outcome_to_payload(outcome: ChapterOutcome) -> dict[str, str]:
    """Serialize a chapter outcome into a JSON-compatible payload."""

    if isinstance(outcome, ProcessingOutcome):
        return {
            "status": outcome.status.value,
            "processed_text": outcome.processed_text,
            "analysis_text": outcome.analysis_text,
        }
    if isinstance(outcome, SkipOutcome):
        return {"status": outcome.status.value, "reason": outcome.reason}
    return {"status": outcome.status.value, "error_message": outcome.error_message}


def outcome_from_payload(payload: Mapping[str, Any]) -> ChapterOutcome:
    """Rebuild a chapter outcome from a payload produced by `outcome_to_payload`.

    Raises:
        ValueError: If the payload status or required fields are invalid.
    """

    status = payload.get("status")
    if status == ChapterStatus.PROCESSING.value:
        processed_text = payload.get("processed_text")
        analysis_text = payload.get("analysis_text")
        if not isinstance(processed_text, str) or not isinstance(analysis_text, str):
            raise ValueError("Processing outcome payload requires text fields.")
        return ProcessingOutcome(processed_text=processed_text, analysis_text=analysis_text)
    if status == ChapterStatus.SKIP.value:
        return SkipOutcome(reason=str(payload.get("reason", "")))
    if status == ChapterStatus.FAILED.value:
        return FailedOutcome(error_message=str(payload.get("error_message", "")))
    raise ValueError(f"Unsupported chapter outcome status `{status}`.")


@dataclass(frozen=True, slots=True)
class ChapterResult:
    """Completed chapter record emitted to downstream consumers."""

    chapter_index: int
    chapter_title: str
    analysis_text: str
    processed_text: str
    video_plans: str = ""
    video_scripts: str = ""
    ai_prompts: str = ""

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-compatible representation of this result."""

        return {
            "chapter_index": self.chapter_index,
            "chapter_title": self.chapter_title,
            "analysis_text": self.analysis_text,
            "processed_text": self.processed_text,
            "video_plans": self.video_plans,
            "video_scripts": self.video_scripts,
            "ai_prompts": self.ai_prompts,
        }


@dataclass(frozen=True, slots=True)
class WorkflowState:
    """Accumulated state for one workflow run.

    Only the workflow engine produces new states. Stages read a state and
    return partial updates that the engine merges with `merged`.

    Attributes:
        document_id: Identifier of the processed document.
        chapters: Ordered chapter list.
        current_chapter_index: 0-based index of the chapter being processed.
        processed_text: Filtered or summarized text of the current chapter.
        analysis_text: Chapter analysis of the current chapter.
        video_plans: Video plan text of the current chapter.
        video_scripts: Video script text of the current chapter.
        ai_prompts: Storyboard/AI prompt text of the current chapter.
        results: Completed chapter results in document order.
        skipped_chapter_indices: Indices of chapters routed through skip.
        status: Current status.
        error: Last error message, if any.
    """

    document_id: str
    chapters: tuple[Chapter, ...]
    current_chapter_index: int = 0
    processed_text: str = ""
    analysis_text: str = ""
    video_plans: str = ""
    video_scripts: str = ""
    ai_prompts: str = ""
    results: tuple[ChapterResult, ...] = field(default_factory=tuple)
    skipped_chapter_indices: tuple[int, ...] = field(default_factory=tuple)
    status: ChapterStatus = ChapterStatus.PENDING
    error: str | None = None

    _CHAPTER_FIELDS: ClassVar[tuple[str, ...]] = (
        "processed_text",
        "analysis_text",
        "video_plans",
        "video_scripts",
        "ai_prompts",
    )

    @property
    def total_chapters(self) -> int:
        """Return the number of chapters in this run."""

        return len(self.chapters)

    @property
    def current_chapter(self) -> Chapter | None:
        """Return the chapter at the current index, or `None` past the end."""

        if 0 <= self.current_chapter_index < len(self.chapters):
            return self.chapters[self.current_chapter_index]
        return None

    def merged(self, update: Mapping[str, Any]) -> WorkflowState:
        """Return a new state with `update` applied field by field.

        Raises:
            ValueError: If the update names a field the state does not define.
        """

        known = {item.name for item in fields(self)}
        unknown = sorted(set(update).difference(known))
        if unknown:
            raise ValueError(f"Unknown workflow state field(s): {', '.join(unknown)}.")
        return replace(self, **dict(update))

    @classmethod
    def chapter_reset_update(cls) -> dict[str, str]:
        """Return an update clearing all per-chapter intermediate fields."""

        return {name: "" for name in cls._CHAPTER_FIELDS}
