"""Per-chapter processing policy.

Responsibilities:
- Compose filtering, scoring, segmentation, summarization, and analysis.
- Decide Skip / Processing / Failed for one chapter without raising.
- Reuse cached outcomes keyed by `(document_id, "analyzeContent")`.

Decision order:
1. cached outcome, if any
2. missing text -> Failed (structural)
3. filtered text too short -> Skip
4. score below threshold -> Skip
5. direct text, or segment + summarize for long chapters
6. processed text too short -> Skip
7. chapter analysis: timeout or too short -> Skip, provider error -> Failed

Failed outcomes and timeout skips are not cached, so resumed runs retry them.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..config import ProcessingConfig
from ..io.step_cache import StepCache
from ..llm.analyzer import ChapterAnalyzer
from ..llm.completion import TextCompleter
from ..llm.prompts import PromptLibrary
from ..llm.summarizer import SegmentSummarizer
from ..models.datatypes import (
    Chapter,
    ChapterOutcome,
    FailedOutcome,
    ProcessingOutcome,
    SkipOutcome,
    outcome_from_payload,
    outcome_to_payload,
)
from ..telemetry.logger import RunLogger
from ..text.cleaners import ContentFilter
from ..text.scoring import ChapterScoreReport, ChapterValueScorer
from ..text.segmenter import Segmenter


ANALYZE_STEP = "analyzeContent"
MIN_PROCESSED_LENGTH = 50
MIN_ANALYSIS_LENGTH = 20

DECISION_SKIP_SHORT = "skip:short"
DECISION_SKIP_SCORE = "skip:score"
DECISION_DIRECT = "direct"
DECISION_SEGMENT = "segment"
DECISION_NO_TEXT = "fail:no-text"


@dataclass(frozen=True, slots=True)
class ChapterAssessment:
    """Offline filter/score decision for one chapter (no completion calls)."""

    filtered_length: int
    score_report: ChapterScoreReport | None
    decision: str


def assess_chapter(
    chapter: Chapter,
    config: ProcessingConfig,
    *,
    content_filter: ContentFilter | None = None,
    scorer: ChapterValueScorer | None = None,
) -> ChapterAssessment:
    """Return the offline filter/score decision for one chapter."""

    if not chapter.text:
        return ChapterAssessment(0, None, DECISION_NO_TEXT)
    content_filter = content_filter or ContentFilter()
    scorer = scorer or ChapterValueScorer(config.content_type_weights)

    filtered = content_filter.filter(chapter.text, chapter.title)
    if len(filtered) < config.min_content_length:
        return ChapterAssessment(len(filtered), None, DECISION_SKIP_SHORT)
    report = scorer.score_with_report(filtered, chapter.title)
    if report.score < config.min_chapter_score:
        decision = DECISION_SKIP_SCORE
    elif len(filtered) <= config.long_chapter_threshold:
        decision = DECISION_DIRECT
    else:
        decision = DECISION_SEGMENT
    return ChapterAssessment(len(filtered), report, decision)


class ChapterPipeline:
    """Turn one chapter into a `ChapterOutcome`."""

    def __init__(
        self,
        config: ProcessingConfig,
        completer: TextCompleter,
        *,
        cache: StepCache | None = None,
        run_logger: RunLogger | None = None,
        prompts: PromptLibrary | None = None,
        content_filter: ContentFilter | None = None,
        scorer: ChapterValueScorer | None = None,
        segmenter: Segmenter | None = None,
        summarizer: SegmentSummarizer | None = None,
        analyzer: ChapterAnalyzer | None = None,
    ) -> None:
        """Wire collaborators, building defaults from `config` where none are given."""

        prompts = prompts or PromptLibrary()
        self.config = config
        self.cache = cache
        self.run_logger = run_logger
        self.content_filter = content_filter or ContentFilter()
        self.scorer = scorer or ChapterValueScorer(config.content_type_weights)
        self.segmenter = segmenter or Segmenter(config.max_segment_length)
        self.summarizer = summarizer or SegmentSummarizer(
            completer, config, prompts=prompts, run_logger=run_logger
        )
        self.analyzer = analyzer or ChapterAnalyzer(completer, config, prompts)

    def assess(self, chapter: Chapter) -> ChapterAssessment:
        """Return the filter/score decision for a chapter without calling the completer."""

        return assess_chapter(
            chapter, self.config, content_filter=self.content_filter, scorer=self.scorer
        )

    def process(self, chapter: Chapter, document_id: str | None = None) -> ChapterOutcome:
        """Process one chapter; never raises for component or cache failures.

        Args:
            chapter: Chapter to process.
            document_id: Cache scope. Caching is disabled when `None`.
        """

        cached = self._cached_outcome(document_id)
        if cached is not None:
            return cached

        try:
            outcome = self._process_uncached(chapter)
        except Exception as exc:
            self._log("failure", chapter, level="ERROR", error_type=type(exc).__name__)
            outcome = FailedOutcome(error_message=f"Chapter processing failed: {exc}")

        self._store_outcome(document_id, outcome)
        return outcome

    def _cached_outcome(self, document_id: str | None) -> ChapterOutcome | None:
        """Return a reusable cached outcome; unreadable entries count as misses."""

        if self.cache is None or document_id is None:
            return None
        try:
            payload = self.cache.get(document_id, ANALYZE_STEP)
            if payload is None:
                return None
            outcome = outcome_from_payload(payload)
        except Exception as exc:
            if self.run_logger is not None:
                self.run_logger.log_event(
                    ANALYZE_STEP,
                    "cache_invalid",
                    level="WARNING",
                    scope=document_id,
                    error_type=type(exc).__name__,
                )
            return None
        if self.run_logger is not None:
            self.run_logger.log_event(ANALYZE_STEP, "cache_hit", scope=document_id)
        return outcome

    def _store_outcome(self, document_id: str | None, outcome: ChapterOutcome) -> None:
        """Cache settled outcomes; failures and transient skips are left to retry."""

        if self.cache is None or document_id is None:
            return
        if isinstance(outcome, FailedOutcome):
            return
        if isinstance(outcome, SkipOutcome) and outcome.transient:
            return
        try:
            self.cache.set(document_id, ANALYZE_STEP, outcome_to_payload(outcome))
        except Exception as exc:
            if self.run_logger is not None:
                self.run_logger.log_event(
                    ANALYZE_STEP,
                    "cache_write_failed",
                    level="WARNING",
                    scope=document_id,
                    error_type=type(exc).__name__,
                )

    def _process_uncached(self, chapter: Chapter) -> ChapterOutcome:
        """Run the filter, score, condense, and analyze steps for one chapter."""

        if not chapter.text:
            return FailedOutcome(
                error_message=f"Structural failure: chapter `{chapter.id}` has no text."
            )

        filtered = self.content_filter.filter(chapter.text, chapter.title)
        if len(filtered) < self.config.min_content_length:
            return self._skip(
                chapter,
                f"Filtered content too short ({len(filtered)} < {self.config.min_content_length}).",
                reason="short",
            )

        score = self.scorer.score(filtered, chapter.title)
        if score < self.config.min_chapter_score:
            return self._skip(
                chapter,
                f"Chapter score {score:.2f} below threshold {self.config.min_chapter_score:.2f}.",
                reason="score",
                score=f"{score:.2f}",
            )

        if len(filtered) <= self.config.long_chapter_threshold:
            processed = filtered
        else:
            processed = self._condense(chapter, filtered)

        if len(processed.strip()) < MIN_PROCESSED_LENGTH:
            return self._skip(chapter, "Processed text is empty or too short.", reason="empty")

        try:
            analysis = self.analyzer.analyze(chapter.title, processed)
        except TimeoutError:
            return self._skip(
                chapter, "Chapter analysis timed out.", reason="analysis_timeout", transient=True
            )
        except Exception as exc:
            self._log("failure", chapter, level="ERROR", error_type=type(exc).__name__)
            return FailedOutcome(error_message=f"Chapter analysis failed: {exc}")

        if len(analysis) < MIN_ANALYSIS_LENGTH:
            return self._skip(chapter, "Chapter analysis is empty or too short.", reason="analysis_short")
        return ProcessingOutcome(processed_text=processed, analysis_text=analysis)

    def _condense(self, chapter: Chapter, filtered: str) -> str:
        """Segment and summarize a long chapter, falling back to an excerpt."""

        segments = self.segmenter.segment(filtered)
        if segments:
            summaries, report = self.summarizer.summarize_with_report(segments)
            if not report.all_failed:
                return "\n\n".join(
                    f"Segment {summary.segment_index + 1}: {summary.text}" for summary in summaries
                )
        self._log("fallback", chapter, level="WARNING", reason="excerpt", segments=len(segments))
        return f"{filtered[: self.config.chapter_excerpt_length]}..."

    def _skip(
        self, chapter: Chapter, message: str, *, transient: bool = False, **context: object
    ) -> SkipOutcome:
        """Log a skip event and build the matching outcome."""

        self._log("skip", chapter, **context)
        return SkipOutcome(reason=message, transient=transient)

    def _log(self, event: str, chapter: Chapter, *, level: str = "INFO", **context: object) -> None:
        """Emit a chapter-scoped event when a run logger is attached."""

        if self.run_logger is not None:
            self.run_logger.log_event("chapter", event, level=level, chapter=chapter.id, **context)
