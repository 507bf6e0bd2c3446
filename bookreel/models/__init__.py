"""Shared typed data models for Bookreel.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    Chapter,
    ChapterOutcome,
    ChapterResult,
    ChapterStatus,
    FailedOutcome,
    ProcessingOutcome,
    Segment,
    SegmentSummary,
    SkipOutcome,
    WorkflowState,
)

__all__ = [
    "Chapter",
    "ChapterOutcome",
    "ChapterResult",
    "ChapterStatus",
    "FailedOutcome",
    "ProcessingOutcome",
    "Segment",
    "SegmentSummary",
    "SkipOutcome",
    "WorkflowState",
]
