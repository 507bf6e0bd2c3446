"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
workflow run summaries, and dry-run chapter score rows.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import Chapter, ChapterStatus, WorkflowState
from .pipeline.chapter import ChapterAssessment


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_run_summary(state: WorkflowState) -> None:
    """Print processed/skipped counts and the final workflow status."""

    typer.echo(f"Document: {state.document_id}")
    typer.echo(f"Chapters: {state.total_chapters}")
    typer.echo(f"Processed: {len(state.results)}")
    typer.echo(f"Skipped: {len(state.skipped_chapter_indices)}")
    typer.echo(f"Status: {state.status.value}")
    if state.status is ChapterStatus.FAILED:
        typer.secho(
            f"Stopped at chapter index {state.current_chapter_index}: {state.error}",
            fg=typer.colors.RED,
            err=True,
        )


def echo_assessment_row(index: int, chapter: Chapter, assessment: ChapterAssessment) -> None:
    """Print one deterministic dry-run row for a chapter."""

    report = assessment.score_report
    score = f"{report.score:.2f}" if report is not None else "-"
    content_type = report.content_type if report is not None else "-"
    title = chapter.title or "(untitled)"
    typer.echo(
        f"{index}. {title} | filtered={assessment.filtered_length} | score={score} "
        f"| type={content_type} | decision={assessment.decision}"
    )
