"""Text-completion capability used by summarization and analysis stages.

Responsibilities:
- Define the `TextCompleter` protocol consumed by pipeline components.
- Adapt `OpenAIChatClient` to that protocol.
- Enforce a wall-clock deadline around any completer call.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Protocol

from ..config import ProviderConfig
from ..errors import CompletionTimeoutError
from .openai_client import OpenAIChatClient, OpenAIProviderError


class TextCompleter(Protocol):
    """Protocol for a black-box text-completion service."""

    def complete(self, prompt: str, *, temperature: float, timeout_seconds: float) -> str:
        """Return completion text for `prompt`."""


class OpenAITextCompleter:
    """`TextCompleter` backed by an OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        *,
        model: str,
        client: OpenAIChatClient,
        system_prompt: str | None = None,
    ) -> None:
        """Bind a client to one model and an optional system prompt."""

        self.model = model
        self.client = client
        self.system_prompt = system_prompt

    @classmethod
    def from_config(cls, config: ProviderConfig) -> OpenAITextCompleter:
        """Build a completer from resolved provider settings."""

        client = OpenAIChatClient(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_seconds=config.request_timeout_seconds,
        )
        return cls(model=config.model, client=client)

    def complete(self, prompt: str, *, temperature: float, timeout_seconds: float) -> str:
        """Return completion text; an empty assistant message yields `""`."""

        try:
            return self.client.chat_completion_text(
                model=self.model,
                system_prompt=self.system_prompt,
                user_prompt=prompt,
                temperature=temperature,
                timeout_seconds=timeout_seconds,
            )
        except OpenAIProviderError as exc:
            if exc.failure_kind == "empty_response":
                return ""
            raise


def complete_within(
    completer: TextCompleter,
    prompt: str,
    *,
    temperature: float,
    timeout_seconds: float,
) -> str:
    """Call `completer` and give up after `timeout_seconds` of wall-clock time.

    The worker thread is abandoned, not killed, when the deadline passes.

    Raises:
        CompletionTimeoutError: If the deadline passes or the provider reports a timeout.
        OpenAIProviderError: For any other provider failure.
    """

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bookreel-completion")
    try:
        future = executor.submit(
            completer.complete,
            prompt,
            temperature=temperature,
            timeout_seconds=timeout_seconds,
        )
        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeoutError as exc:
            future.cancel()
            raise CompletionTimeoutError(
                f"Completion exceeded {timeout_seconds:g}s deadline."
            ) from exc
        except OpenAIProviderError as exc:
            if exc.failure_kind == "timeout":
                raise CompletionTimeoutError(str(exc)) from exc
            raise
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
