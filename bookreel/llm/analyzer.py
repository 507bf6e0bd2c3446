"""Chapter-level analysis through the completion capability."""

from __future__ import annotations

from ..config import ProcessingConfig
from .completion import TextCompleter, complete_within
from .prompts import PromptLibrary


class ChapterAnalyzer:
    """Ask the completer for a short-video value analysis of one chapter."""

    def __init__(
        self,
        completer: TextCompleter,
        config: ProcessingConfig,
        prompts: PromptLibrary | None = None,
    ) -> None:
        """Bind the completer, timeouts, and prompt templates."""

        self.completer = completer
        self.config = config
        self.prompts = prompts or PromptLibrary()

    def analyze(self, title: str, processed_text: str) -> str:
        """Return stripped analysis text.

        Raises:
            CompletionTimeoutError: If the analysis deadline passes.
            OpenAIProviderError: If the provider request fails.
        """

        response = complete_within(
            self.completer,
            self.prompts.chapter_analysis_prompt(title, processed_text),
            temperature=self.config.chapter_analysis_temperature,
            timeout_seconds=self.config.chapter_analysis_timeout_seconds,
        )
        return response.strip() if isinstance(response, str) else ""
