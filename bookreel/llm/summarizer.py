"""Concurrent segment summarization with per-segment fallback.

Responsibilities:
- Dispatch one summary request per segment concurrently (fan-out/fan-in).
- Bound each request by a per-segment timeout and the batch by a total timeout.
- Substitute a deterministic truncated-original fallback for any failed segment.
- Return results index-aligned with the input regardless of completion order.

Concurrency model:
- `summarize` is synchronous; it drives an asyncio event loop whose tasks
  hand blocking completer calls to a dedicated thread pool sized to the batch.
- A timed-out or cancelled task only loses its own slot; siblings keep running.
- The pool is shut down without waiting, so an abandoned request never holds
  the barrier open.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from ..config import ProcessingConfig
from ..models.datatypes import Segment, SegmentSummary
from ..telemetry.logger import RunLogger
from .completion import TextCompleter
from .prompts import PromptLibrary


@dataclass(frozen=True, slots=True)
class SummaryBatchReport:
    """Outcome counters for one summarization batch."""

    total: int
    succeeded: int
    timed_out: int
    failed: int
    short_responses: int
    cancelled: int

    @property
    def fallbacks(self) -> int:
        """Return how many segments received a fallback summary."""

        return self.total - self.succeeded

    @property
    def all_failed(self) -> bool:
        """Return whether no segment produced a real summary."""

        return self.total > 0 and self.succeeded == 0


@dataclass(frozen=True, slots=True)
class _SegmentResult:
    summary: SegmentSummary
    outcome: str


class SegmentSummarizer:
    """Summarize segments through an external completer with bounded waiting."""

    TRIVIAL_SEGMENT_LENGTH = 100
    MIN_SUMMARY_LENGTH = 10

    def __init__(
        self,
        completer: TextCompleter,
        config: ProcessingConfig,
        *,
        prompts: PromptLibrary | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Bind the completer, per-segment limits, and optional run logger."""

        self.completer = completer
        self.config = config
        self.prompts = prompts or PromptLibrary()
        self.run_logger = run_logger

    def summarize(self, segments: Sequence[Segment]) -> list[SegmentSummary]:
        """Return one summary per segment, in input order."""

        summaries, _ = self.summarize_with_report(segments)
        return summaries

    def summarize_with_report(
        self, segments: Sequence[Segment]
    ) -> tuple[list[SegmentSummary], SummaryBatchReport]:
        """Return index-aligned summaries with batch outcome counters."""

        if not segments:
            return [], SummaryBatchReport(0, 0, 0, 0, 0, 0)

        results = asyncio.run(self._summarize_all(list(segments)))
        outcomes = [result.outcome for result in results]
        report = SummaryBatchReport(
            total=len(results),
            succeeded=outcomes.count("ok"),
            timed_out=outcomes.count("timeout"),
            failed=outcomes.count("error"),
            short_responses=outcomes.count("short_response"),
            cancelled=outcomes.count("cancelled"),
        )
        if self.run_logger is not None:
            self.run_logger.log_event(
                "summarize",
                "batch",
                segments=report.total,
                succeeded=report.succeeded,
                fallbacks=report.fallbacks,
                timed_out=report.timed_out,
                failed=report.failed,
                cancelled=report.cancelled,
            )
        return [result.summary for result in results], report

    def prompt_text(self, segment: Segment) -> str:
        """Return the segment text as sent to the completer, truncated if oversized."""

        limit = self.config.max_segment_length
        if len(segment.text) > limit:
            return f"{segment.text[:limit]}..."
        return segment.text

    def fallback_summary(self, segment: Segment) -> SegmentSummary:
        """Return the deterministic truncated-original fallback for a segment."""

        text = f"{self.prompt_text(segment)[: self.config.max_summary_length]}..."
        return SegmentSummary(segment_index=segment.index, text=text, succeeded=False)

    async def _summarize_all(self, segments: list[Segment]) -> list[_SegmentResult]:
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(
            max_workers=len(segments),
            thread_name_prefix="bookreel-segment",
        )
        try:
            tasks = [
                asyncio.create_task(self._summarize_one(loop, executor, segment))
                for segment in segments
            ]
            _, pending = await asyncio.wait(
                tasks, timeout=self.config.total_processing_timeout_seconds
            )
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            results: list[_SegmentResult] = []
            for segment, task in zip(segments, tasks):
                if task in pending:
                    self._log_fallback(segment, "cancelled")
                    results.append(_SegmentResult(self.fallback_summary(segment), "cancelled"))
                else:
                    results.append(task.result())
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    async def _summarize_one(
        self,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        segment: Segment,
    ) -> _SegmentResult:
        if len(segment.text) < self.TRIVIAL_SEGMENT_LENGTH:
            summary = SegmentSummary(
                segment_index=segment.index, text=segment.text.strip(), succeeded=True
            )
            return _SegmentResult(summary, "ok")

        timeout = self.config.single_segment_timeout_seconds
        prompt = self.prompts.segment_summary_prompt(
            self.prompt_text(segment), self.config.max_summary_length
        )
        call = loop.run_in_executor(
            executor,
            lambda: self.completer.complete(
                prompt,
                temperature=self.config.segment_analysis_temperature,
                timeout_seconds=timeout,
            ),
        )
        try:
            response = await asyncio.wait_for(call, timeout=timeout)
        except (asyncio.TimeoutError, TimeoutError):
            return self._fallback_result(segment, "timeout")
        except Exception as exc:
            return self._fallback_result(segment, "error", error_type=type(exc).__name__)

        text = response.strip() if isinstance(response, str) else ""
        if len(text) < self.MIN_SUMMARY_LENGTH:
            return self._fallback_result(segment, "short_response")
        return _SegmentResult(
            SegmentSummary(segment_index=segment.index, text=text, succeeded=True), "ok"
        )

    def _fallback_result(self, segment: Segment, outcome: str, **context: object) -> _SegmentResult:
        """Log a fallback and return the truncated segment text in its place."""

        self._log_fallback(segment, outcome, **context)
        return _SegmentResult(self.fallback_summary(segment), outcome)

    def _log_fallback(self, segment: Segment, reason: str, **context: object) -> None:
        """Emit one `fallback` warning for a segment when a run logger is attached."""

        if self.run_logger is not None:
            self.run_logger.log_event(
                "summarize",
                "fallback",
                level="WARNING",
                segment=segment.index,
                reason=reason,
                **context,
            )
