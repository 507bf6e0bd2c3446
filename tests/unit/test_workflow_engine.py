"""Unit tests for chapter-loop routing, state ownership, and downstream stages."""

from __future__ import annotations

import pytest

from bookreel.config import ProcessingConfig
from bookreel.errors import WorkflowStructureError
from bookreel.io.step_cache import InMemoryStepCache
from bookreel.models.datatypes import Chapter, ChapterResult, ChapterStatus, WorkflowState
from bookreel.pipeline.chapter import ChapterPipeline
from bookreel.pipeline.engine import Route, WorkflowEngine, decide_next
from bookreel.pipeline.stages import VideoPlanner, chapter_cache_scope
from tests.fakes import (
    PLAN_TEXT,
    SCRIPT_TEXT,
    STORYBOARD_TEXT,
    FakeCompleter,
    make_prose,
    routed_response,
)


class _RecordingSink:
    def __init__(self) -> None:
        self.results: list[ChapterResult] = []

    def on_chapter_result(self, result: ChapterResult) -> None:
        self.results.append(result)


def _chapters(*texts: str) -> list[Chapter]:
    return [
        Chapter(id=str(index + 1), title=f"Chapter {index + 1}", text=text, order=index)
        for index, text in enumerate(texts)
    ]


@pytest.mark.parametrize(
    ("status", "index", "total", "expected"),
    [
        (ChapterStatus.FAILED, 0, 3, Route.ERROR),
        (ChapterStatus.FAILED, 3, 3, Route.ERROR),
        (ChapterStatus.COMPLETED, 1, 3, Route.COMPLETED),
        (ChapterStatus.PENDING, 3, 3, Route.COMPLETED),
        (ChapterStatus.SKIP, 5, 3, Route.COMPLETED),
        (ChapterStatus.SKIP, 1, 3, Route.SKIP),
        (ChapterStatus.PROCESSING, 1, 3, Route.CONTINUE),
        (ChapterStatus.PENDING, 0, 3, Route.CONTINUE),
    ],
)
def test_decide_next_priority(
    status: ChapterStatus, index: int, total: int, expected: Route
) -> None:
    """Failure outranks completion, which outranks skip."""

    assert decide_next(status, index, total) is expected


def test_run_processes_chapters_in_order_and_routes_skips(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """Processed chapters go through every stage; skipped chapters go straight to save."""

    sink = _RecordingSink()
    engine = WorkflowEngine.from_config(fast_config, fake_completer, result_sink=sink)

    state = engine.run("doc", _chapters(make_prose(2000), make_prose(150), make_prose(2500)))

    assert state.status is ChapterStatus.COMPLETED
    assert state.error is None
    assert state.current_chapter_index == 3
    assert state.skipped_chapter_indices == (1,)
    assert [result.chapter_index for result in state.results] == [0, 2]
    assert sink.results == list(state.results)
    first = state.results[0]
    assert first.chapter_title == "Chapter 1"
    assert (first.video_plans, first.video_scripts, first.ai_prompts) == (
        PLAN_TEXT,
        SCRIPT_TEXT,
        STORYBOARD_TEXT,
    )
    assert len(fake_completer.prompts_starting_with("Based on the chapter analysis")) == 2
    assert state.processed_text == ""
    assert state.analysis_text == ""


def test_failed_chapter_halts_run_with_error_and_position(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """A failed chapter should stop the run before later chapters are analyzed."""

    engine = WorkflowEngine.from_config(fast_config, fake_completer)

    state = engine.run("doc", _chapters(make_prose(2000), "", make_prose(2000)))

    assert state.status is ChapterStatus.FAILED
    assert state.error == "Structural failure: chapter `2` has no text."
    assert state.current_chapter_index == 1
    assert len(state.results) == 1
    assert len(fake_completer.prompts_starting_with("Analyze the following chapter")) == 1


def test_stage_exception_becomes_failed_status(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """A raising stage should be reported as `<stage> failed: <message>`."""

    def exploding_stage(state: WorkflowState) -> dict[str, object]:
        raise RuntimeError("renderer offline")

    engine = WorkflowEngine(
        ChapterPipeline(fast_config, fake_completer),
        stages=[("planVideos", exploding_stage)],
    )

    state = engine.run("doc", _chapters(make_prose(2000)))

    assert state.status is ChapterStatus.FAILED
    assert state.error == "planVideos failed: renderer offline"
    assert state.results == ()


def test_engine_without_stages_saves_analysis_only(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """With no downstream stages the engine should route analysis straight to save."""

    engine = WorkflowEngine(ChapterPipeline(fast_config, fake_completer))

    state = engine.run("doc", _chapters(make_prose(2000), make_prose(2000)))

    assert engine.node_names == ("analyzeChapter", "saveAndContinue")
    assert state.status is ChapterStatus.COMPLETED
    assert [result.video_plans for result in state.results] == ["", ""]


def test_empty_chapter_list_completes_immediately(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """A document without chapters should complete with no results."""

    state = WorkflowEngine.from_config(fast_config, fake_completer).run("doc", [])

    assert state.status is ChapterStatus.COMPLETED
    assert state.results == ()
    assert fake_completer.calls == []


def test_step_budget_overrun_raises(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """Exceeding the step budget should surface as a workflow structure error."""

    engine = WorkflowEngine(ChapterPipeline(fast_config, fake_completer), max_steps=3)

    with pytest.raises(WorkflowStructureError, match="step budget of 3"):
        engine.run("doc", _chapters(make_prose(2000), make_prose(2000)))


@pytest.mark.parametrize(
    "names",
    [("planVideos", "planVideos"), ("analyzeChapter",), ("saveAndContinue", "other")],
)
def test_invalid_stage_names_are_rejected(
    names: tuple[str, ...], fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """Duplicate or reserved stage names should be rejected at construction."""

    stages = [(name, lambda state: {}) for name in names]

    with pytest.raises(WorkflowStructureError):
        WorkflowEngine(ChapterPipeline(fast_config, fake_completer), stages=stages)


@pytest.mark.parametrize("update", [{"unknown_field": 1}, {"status": "exploded"}])
def test_invalid_stage_update_raises_structure_error(
    update: dict[str, object], fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """Unknown fields and invalid statuses are wiring bugs, not chapter failures."""

    engine = WorkflowEngine(
        ChapterPipeline(fast_config, fake_completer),
        stages=[("planVideos", lambda state: update)],
    )

    with pytest.raises(WorkflowStructureError, match="invalid update"):
        engine.run("doc", _chapters(make_prose(2000)))


def test_rerun_with_shared_cache_makes_no_completion_calls(fast_config: ProcessingConfig) -> None:
    """Every cached step should be reused on a second run of the same document."""

    cache = InMemoryStepCache()
    chapters = _chapters(make_prose(2000), make_prose(12000))
    first_completer = FakeCompleter()
    second_completer = FakeCompleter()

    first = WorkflowEngine.from_config(fast_config, first_completer, cache=cache).run("doc", chapters)
    second = WorkflowEngine.from_config(fast_config, second_completer, cache=cache).run("doc", chapters)

    assert first_completer.calls
    assert second_completer.calls == []
    assert second.results == first.results
    assert cache.get(chapter_cache_scope("doc", "2"), "generateAIPrompts") == STORYBOARD_TEXT


def test_stage_reports_missing_input_as_structural_failure(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """A stage invoked without its required inputs should fail without calling the completer."""

    state = WorkflowState(
        document_id="doc",
        chapters=tuple(_chapters(make_prose(2000))),
        processed_text="processed",
    )

    update = VideoPlanner(fake_completer, fast_config)(state)

    assert update["status"] is ChapterStatus.FAILED
    assert update["error"] == "Structural failure: planVideos requires `analysis_text`."
    assert fake_completer.calls == []


def test_empty_stage_completion_fails_the_run(fast_config: ProcessingConfig) -> None:
    """An empty plan should stop the run instead of producing blank artifacts."""

    def responder(prompt: str) -> str:
        if prompt.startswith("Based on the chapter analysis"):
            return "   "
        return routed_response(prompt)

    state = WorkflowEngine.from_config(fast_config, FakeCompleter(responder)).run(
        "doc", _chapters(make_prose(2000))
    )

    assert state.status is ChapterStatus.FAILED
    assert state.error == "planVideos returned an empty completion."


def test_stage_uses_its_own_temperature(
    fake_completer: FakeCompleter, fast_config: ProcessingConfig
) -> None:
    """Downstream stages should call the completer with their configured temperature."""

    WorkflowEngine.from_config(fast_config, fake_completer).run("doc", _chapters(make_prose(2000)))

    temperatures = {call["temperature"] for call in fake_completer.calls}
    assert temperatures == {fast_config.chapter_analysis_temperature, 0.6, 0.7, 0.5}
