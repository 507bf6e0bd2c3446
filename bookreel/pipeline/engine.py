"""Chapter-loop workflow engine.

Responsibilities:
- Drive chapters one at a time through analysis, downstream stages, and save.
- Own the workflow state: nodes return partial updates, the engine merges them.
- Route between nodes with one transition function and halt on failure or completion.
- Convert node exceptions into a failed status instead of propagating them.

Graph:
    analyzeChapter --continue--> planVideos -> generateVideoScripts
        -> generateAIPrompts -> saveAndContinue
    analyzeChapter --skip--> saveAndContinue
    saveAndContinue --(not completed)--> analyzeChapter
    error / completed -> end
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any, Protocol

from ..config import ProcessingConfig
from ..errors import WorkflowStructureError
from ..io.step_cache import StepCache
from ..llm.completion import TextCompleter
from ..llm.prompts import PromptLibrary
from ..models.datatypes import (
    Chapter,
    ChapterResult,
    ChapterStatus,
    FailedOutcome,
    ProcessingOutcome,
    SkipOutcome,
    WorkflowState,
)
from ..telemetry.logger import RunLogger
from .chapter import ChapterPipeline
from .stages import PromptGenerator, ScriptGenerator, VideoPlanner, chapter_cache_scope


ANALYZE_NODE = "analyzeChapter"
SAVE_NODE = "saveAndContinue"

StageFn = Callable[[WorkflowState], Mapping[str, Any]]


class Route(str, Enum):
    """Outcome of the transition function."""

    ERROR = "error"
    COMPLETED = "completed"
    SKIP = "skip"
    CONTINUE = "continue"


def decide_next(status: ChapterStatus, index: int, total: int) -> Route:
    """Return the next route; priority is failed, then exhausted/completed, then skip."""

    if status is ChapterStatus.FAILED:
        return Route.ERROR
    if status is ChapterStatus.COMPLETED or index >= total:
        return Route.COMPLETED
    if status is ChapterStatus.SKIP:
        return Route.SKIP
    return Route.CONTINUE


class ChapterResultSink(Protocol):
    """Consumer notified of every completed chapter."""

    def on_chapter_result(self, result: ChapterResult) -> None:
        """Handle one completed chapter result."""


class WorkflowEngine:
    """Finite-state machine over chapters with skip, failure, and completion routing."""

    def __init__(
        self,
        chapter_pipeline: ChapterPipeline,
        *,
        stages: Sequence[tuple[str, StageFn]] = (),
        result_sink: ChapterResultSink | None = None,
        run_logger: RunLogger | None = None,
        max_steps: int | None = None,
    ) -> None:
        """Validate stage names and wire the chapter pipeline, stages, and sink."""

        names = [name for name, _ in stages]
        reserved = {ANALYZE_NODE, SAVE_NODE}
        if len(set(names)) != len(names) or reserved.intersection(names):
            raise WorkflowStructureError(
                f"Stage names must be unique and must not reuse {sorted(reserved)}: {names}."
            )

        self.chapter_pipeline = chapter_pipeline
        self.result_sink = result_sink
        self.run_logger = run_logger
        self.max_steps = max_steps
        self._downstream = names
        self._nodes: dict[str, StageFn] = {
            ANALYZE_NODE: self._analyze_chapter,
            **dict(stages),
            SAVE_NODE: self._save_and_continue,
        }

    @classmethod
    def from_config(
        cls,
        config: ProcessingConfig,
        completer: TextCompleter,
        *,
        cache: StepCache | None = None,
        result_sink: ChapterResultSink | None = None,
        run_logger: RunLogger | None = None,
    ) -> WorkflowEngine:
        """Wire the default pipeline and downstream stages around one completer."""

        prompts = PromptLibrary()
        pipeline = ChapterPipeline(
            config, completer, cache=cache, run_logger=run_logger, prompts=prompts
        )
        stages = [
            stage_type(completer, config, prompts=prompts, cache=cache)
            for stage_type in (VideoPlanner, ScriptGenerator, PromptGenerator)
        ]
        return cls(
            pipeline,
            stages=[(stage.STEP_NAME, stage) for stage in stages],
            result_sink=result_sink,
            run_logger=run_logger,
        )

    @property
    def node_names(self) -> tuple[str, ...]:
        """Return node names in graph order."""

        return tuple(self._nodes)

    def run(self, document_id: str, chapters: Sequence[Chapter]) -> WorkflowState:
        """Process all chapters and return the final state.

        The final status is `completed` or `failed`; on failure, `error` and
        `current_chapter_index` tell where the run stopped.

        Raises:
            WorkflowStructureError: If the graph exceeds its step budget or a
                node returns an invalid update.
        """

        state = WorkflowState(document_id=document_id, chapters=tuple(chapters))
        budget = self.max_steps or (len(state.chapters) * len(self._nodes) + 2)
        node: str | None = ANALYZE_NODE
        steps = 0
        while node is not None:
            steps += 1
            if steps > budget:
                raise WorkflowStructureError(
                    f"Workflow exceeded its step budget of {budget} at node `{node}`."
                )
            state = self._run_node(node, state)
            node = self._next_node(node, state)

        if state.status is not ChapterStatus.FAILED:
            state = state.merged({"status": ChapterStatus.COMPLETED})
        if self.run_logger is not None:
            self.run_logger.log_event(
                "workflow",
                "finished",
                status=state.status.value,
                index=state.current_chapter_index,
                total=state.total_chapters,
                processed=len(state.results),
                skipped=len(state.skipped_chapter_indices),
            )
        return state

    def _run_node(self, name: str, state: WorkflowState) -> WorkflowState:
        """Run one node, merge its update, and emit start/complete/failure events."""

        if self.run_logger is not None:
            self.run_logger.log_stage_start(name, chapter=state.current_chapter_index)
        try:
            update = self._nodes[name](state)
        except WorkflowStructureError:
            raise
        except Exception as exc:
            if self.run_logger is not None:
                self.run_logger.log_stage_failure(
                    name, type(exc).__name__, chapter=state.current_chapter_index
                )
            return state.merged({"status": ChapterStatus.FAILED, "error": f"{name} failed: {exc}"})

        if not isinstance(update, Mapping):
            raise WorkflowStructureError(f"Node `{name}` returned {type(update).__name__}, not a mapping.")
        try:
            if "status" in update:
                update = {**update, "status": ChapterStatus(update["status"])}
            merged = state.merged(update)
        except (ValueError, TypeError) as exc:
            raise WorkflowStructureError(f"Node `{name}` returned an invalid update: {exc}") from exc

        if self.run_logger is not None:
            if merged.status is ChapterStatus.FAILED:
                self.run_logger.log_stage_failure(
                    name, "FailedStatus", chapter=state.current_chapter_index
                )
            else:
                self.run_logger.log_stage_complete(
                    name, chapter=state.current_chapter_index, status=merged.status.value
                )
        return merged

    def _next_node(self, name: str, state: WorkflowState) -> str | None:
        """Return the node after `name`, or `None` when the run ends."""

        route = decide_next(state.status, state.current_chapter_index, state.total_chapters)
        if route in (Route.ERROR, Route.COMPLETED):
            return None
        if name == SAVE_NODE:
            return ANALYZE_NODE
        if route is Route.SKIP:
            return SAVE_NODE
        if name == ANALYZE_NODE:
            return self._downstream[0] if self._downstream else SAVE_NODE
        position = self._downstream.index(name)
        if position + 1 < len(self._downstream):
            return self._downstream[position + 1]
        return SAVE_NODE

    def _analyze_chapter(self, state: WorkflowState) -> dict[str, Any]:
        """Run the chapter pipeline and map its outcome onto a state update."""

        chapter = state.current_chapter
        if chapter is None:
            return {}
        outcome = self.chapter_pipeline.process(
            chapter, document_id=chapter_cache_scope(state.document_id, chapter.id)
        )
        if isinstance(outcome, ProcessingOutcome):
            return {
                "processed_text": outcome.processed_text,
                "analysis_text": outcome.analysis_text,
                "status": ChapterStatus.PROCESSING,
                "error": None,
            }
        if isinstance(outcome, SkipOutcome):
            return {"status": ChapterStatus.SKIP, "error": None}
        if isinstance(outcome, FailedOutcome):
            return {"status": ChapterStatus.FAILED, "error": outcome.error_message}
        raise WorkflowStructureError(f"Unsupported chapter outcome {type(outcome).__name__}.")

    def _save_and_continue(self, state: WorkflowState) -> dict[str, Any]:
        """Emit the chapter result, reset per-chapter fields, and advance the index."""

        chapter = state.current_chapter
        if chapter is None:
            raise WorkflowStructureError(
                f"`{SAVE_NODE}` reached with chapter index {state.current_chapter_index} "
                f"out of range for {state.total_chapters} chapter(s)."
            )

        update: dict[str, Any] = WorkflowState.chapter_reset_update()
        index = state.current_chapter_index
        if state.status is ChapterStatus.SKIP:
            update["skipped_chapter_indices"] = (*state.skipped_chapter_indices, index)
        else:
            if not state.processed_text or not state.analysis_text:
                return {
                    "status": ChapterStatus.FAILED,
                    "error": f"Structural failure: chapter {index} reached `{SAVE_NODE}` without analysis.",
                }
            result = ChapterResult(
                chapter_index=index,
                chapter_title=chapter.title,
                analysis_text=state.analysis_text,
                processed_text=state.processed_text,
                video_plans=state.video_plans,
                video_scripts=state.video_scripts,
                ai_prompts=state.ai_prompts,
            )
            if self.result_sink is not None:
                self.result_sink.on_chapter_result(result)
            update["results"] = (*state.results, result)

        update["current_chapter_index"] = index + 1
        update["status"] = ChapterStatus.PENDING
        return update
