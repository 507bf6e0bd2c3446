"""Downstream completion stages run after chapter analysis.

Responsibilities:
- Plan videos, write scripts, and generate storyboard prompts per chapter.
- Read only the state fields each stage needs and return a partial update.
- Cache each stage output under its step name within the chapter scope.

Every stage is a callable `stage(state) -> dict` so the workflow engine can
treat stages and its own nodes uniformly.
"""

from __future__ import annotations

from typing import Any, ClassVar

from ..config import ProcessingConfig
from ..io.step_cache import StepCache
from ..llm.completion import TextCompleter, complete_within
from ..llm.prompts import PromptLibrary
from ..models.datatypes import ChapterStatus, WorkflowState


def chapter_cache_scope(document_id: str, chapter_id: str) -> str:
    """Return the cache scope for one chapter of one document."""

    return f"{document_id}:{chapter_id}"


class CompletionStage:
    """Base class for stages that turn state fields into one completion output."""

    STEP_NAME: ClassVar[str]
    OUTPUT_FIELD: ClassVar[str]
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]]
    TEMPERATURE: ClassVar[float]

    def __init__(
        self,
        completer: TextCompleter,
        config: ProcessingConfig,
        *,
        prompts: PromptLibrary | None = None,
        cache: StepCache | None = None,
    ) -> None:
        """Bind the completer, timeouts, prompt templates, and optional step cache."""

        self.completer = completer
        self.config = config
        self.prompts = prompts or PromptLibrary()
        self.cache = cache

    def build_prompt(self, inputs: dict[str, str]) -> str:
        """Return the prompt for the given required inputs."""

        raise NotImplementedError

    def __call__(self, state: WorkflowState) -> dict[str, Any]:
        """Run the stage against a read-only state and return a partial update."""

        inputs = {name: getattr(state, name) for name in self.REQUIRED_FIELDS}
        missing = [name for name, value in inputs.items() if not value]
        if missing or state.current_chapter is None:
            return {
                "status": ChapterStatus.FAILED,
                "error": (
                    f"Structural failure: {self.STEP_NAME} requires "
                    f"{', '.join(f'`{name}`' for name in missing) or 'a current chapter'}."
                ),
            }

        scope = chapter_cache_scope(state.document_id, state.current_chapter.id)
        if self.cache is not None:
            cached = self.cache.get(scope, self.STEP_NAME)
            if isinstance(cached, str) and cached:
                return {self.OUTPUT_FIELD: cached, "status": ChapterStatus.PROCESSING}

        output = complete_within(
            self.completer,
            self.build_prompt(inputs),
            temperature=self.TEMPERATURE,
            timeout_seconds=self.config.chapter_analysis_timeout_seconds,
        ).strip()
        if not output:
            return {
                "status": ChapterStatus.FAILED,
                "error": f"{self.STEP_NAME} returned an empty completion.",
            }

        if self.cache is not None:
            self.cache.set(scope, self.STEP_NAME, output)
        return {self.OUTPUT_FIELD: output, "status": ChapterStatus.PROCESSING}


class VideoPlanner(CompletionStage):
    """Turn chapter analysis into a short-video production plan."""

    STEP_NAME = "planVideos"
    OUTPUT_FIELD = "video_plans"
    REQUIRED_FIELDS = ("analysis_text", "processed_text")
    TEMPERATURE = 0.6

    def build_prompt(self, inputs: dict[str, str]) -> str:
        return self.prompts.video_plan_prompt(inputs["analysis_text"], inputs["processed_text"])


class ScriptGenerator(CompletionStage):
    """Write one story script per planned video."""

    STEP_NAME = "generateVideoScripts"
    OUTPUT_FIELD = "video_scripts"
    REQUIRED_FIELDS = ("video_plans",)
    TEMPERATURE = 0.7

    def build_prompt(self, inputs: dict[str, str]) -> str:
        return self.prompts.video_script_prompt(inputs["video_plans"])


class PromptGenerator(CompletionStage):
    """Turn scripts into storyboard shots with text-to-video prompts."""

    STEP_NAME = "generateAIPrompts"
    OUTPUT_FIELD = "ai_prompts"
    REQUIRED_FIELDS = ("video_scripts",)
    TEMPERATURE = 0.5

    def build_prompt(self, inputs: dict[str, str]) -> str:
        return self.prompts.storyboard_prompt(inputs["video_scripts"])
