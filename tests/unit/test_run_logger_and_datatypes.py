"""Unit tests for structured run logging and core workflow datatypes."""

from __future__ import annotations

import io

import pytest

from bookreel.models.datatypes import (
    Chapter,
    ChapterStatus,
    FailedOutcome,
    ProcessingOutcome,
    SkipOutcome,
    WorkflowState,
    outcome_from_payload,
    outcome_to_payload,
)
from bookreel.telemetry.logger import RunLogger


def test_run_logger_emits_sorted_sanitized_context() -> None:
    """Log lines should have a fixed prefix and deterministic shell-safe context."""

    stream = io.StringIO()
    run_logger = RunLogger(sink=stream)
    try:
        run_logger.log_stage_start("planVideos", chapter=2)
        run_logger.log_event("chapter", "skip", reason="low score", chapter="7", note="")
        run_logger.log_stage_failure("generateAIPrompts", "OpenAIProviderError", chapter=3)
    finally:
        run_logger.close()

    assert stream.getvalue().splitlines() == [
        "[phase] level=INFO stage=planVideos event=start chapter=2",
        "[phase] level=INFO stage=chapter event=skip chapter=7 note=none reason=low_score",
        "[phase] level=ERROR stage=generateAIPrompts event=failure chapter=3 error_type=OpenAIProviderError",
    ]


def test_run_logger_respects_level_and_close() -> None:
    """Messages below the configured level and after close should not be written."""

    stream = io.StringIO()
    run_logger = RunLogger(sink=stream, level="WARNING")
    run_logger.log_stage_complete("analyzeChapter")
    run_logger.log_event("summarize", "fallback", level="WARNING", segment=0)
    run_logger.close()
    run_logger.close()
    run_logger.log_event("summarize", "fallback", level="WARNING", segment=1)

    assert stream.getvalue().splitlines() == [
        "[phase] level=WARNING stage=summarize event=fallback segment=0"
    ]



def test_run_loggers_keep_separate_sinks_and_close_in_any_order() -> None:
    """Closing an older logger after a newer one exists should not raise or cross sinks."""

    first_stream = io.StringIO()
    second_stream = io.StringIO()
    first = RunLogger(sink=first_stream)
    second = RunLogger(sink=second_stream)

    first.log_stage_start("analyzeChapter")
    second.log_stage_start("planVideos")
    first.close()
    second.log_stage_complete("planVideos")
    second.close()
    second.close()

    assert first_stream.getvalue().splitlines() == [
        "[phase] level=INFO stage=analyzeChapter event=start"
    ]
    assert second_stream.getvalue().splitlines() == [
        "[phase] level=INFO stage=planVideos event=start",
        "[phase] level=INFO stage=planVideos event=complete",
    ]

@pytest.mark.parametrize(
    "outcome",
    [
        ProcessingOutcome(processed_text="processed", analysis_text="analysis"),
        SkipOutcome(reason="Chapter analysis timed out."),
        FailedOutcome(error_message="Chapter analysis failed: quota"),
    ],
)
def test_outcome_payload_preserves_variant(outcome: object) -> None:
    """Every outcome variant should survive its cache payload form."""

    payload = outcome_to_payload(outcome)

    assert payload["status"] == outcome.status.value
    assert outcome_from_payload(payload) == outcome


@pytest.mark.parametrize(
    "payload",
    [{"status": "completed"}, {"status": "processing", "processed_text": "x"}, {}],
)
def test_outcome_from_payload_rejects_invalid_payloads(payload: dict[str, object]) -> None:
    """Unknown statuses and incomplete processing payloads should raise."""

    with pytest.raises(ValueError):
        outcome_from_payload(payload)


def test_workflow_state_merge_is_last_write_wins_and_rejects_unknown_fields() -> None:
    """Merging should replace named fields only and never mutate the original."""

    chapters = (Chapter(id="1", title="One", text="text", order=0),)
    state = WorkflowState(document_id="doc", chapters=chapters, analysis_text="old")

    merged = state.merged({"analysis_text": "new", "status": ChapterStatus.PROCESSING})

    assert merged.analysis_text == "new"
    assert merged.status is ChapterStatus.PROCESSING
    assert state.analysis_text == "old"
    assert merged.current_chapter == chapters[0]
    assert merged.merged({"current_chapter_index": 1}).current_chapter is None
    with pytest.raises(ValueError, match="Unknown workflow state field"):
        state.merged({"bogus": 1})


def test_chapter_reset_update_clears_every_per_chapter_field() -> None:
    """The reset update should blank processed text, analysis, and stage outputs."""

    assert WorkflowState.chapter_reset_update() == {
        "processed_text": "",
        "analysis_text": "",
        "video_plans": "",
        "video_scripts": "",
        "ai_prompts": "",
    }
