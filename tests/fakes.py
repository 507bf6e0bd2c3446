"""Deterministic test doubles and text builders shared across the test suite."""

from __future__ import annotations

from collections.abc import Callable
import threading
import time

ANALYSIS_TEXT = "Core idea count: 2\nRecommended video count: 2\nMain ideas: research habits."
SUMMARY_TEXT = "Key point: deliberate research beats luck."
PLAN_TEXT = "Recommended video count: 1\nVideo 1:\nTitle: Research habits"
SCRIPT_TEXT = "## Video 1: Research habits\n**Opening (30s)**: The fox asks a question."
STORYBOARD_TEXT = (
    "### Shot 1: Opening (3s)\n"
    "**Scene**: forest clearing\n"
    "**AI prompt**: a curious fox in a sunlit forest clearing, soft light"
)

_SENTENCE_TEMPLATES = (
    "Sentence {n} explains how the research team used careful data analysis to test a model",
    "In passage {n} the story follows a leader whose decision changed the company and its market",
    "Example {n} shows a practical method, a clear step, and a strategy the team can practice",
    "Reflection {n} asks about the meaning and value of each choice the character must make",
    "Case {n} adds evidence from an experiment and the result that surprised every customer",
)


def make_prose(length: int, sentences_per_paragraph: int = 5) -> str:
    """Return keyword-rich prose of exactly `length` characters with unique sentences."""

    paragraphs: list[str] = []
    total = 0
    counter = 0
    while total < length + 200:
        sentences = []
        for _ in range(sentences_per_paragraph):
            template = _SENTENCE_TEMPLATES[counter % len(_SENTENCE_TEMPLATES)]
            sentences.append(template.format(n=counter + 1) + ".")
            counter += 1
        paragraph = " ".join(sentences)
        paragraphs.append(paragraph)
        total += len(paragraph) + 2
    text = "\n\n".join(paragraphs)[:length]
    return text[:-1] + "." if not text.endswith(".") else text


def routed_response(prompt: str) -> str:
    """Return a canned completion chosen by the prompt family."""

    if prompt.startswith("Extract the core points"):
        return SUMMARY_TEXT
    if prompt.startswith("Analyze the following chapter"):
        return ANALYSIS_TEXT
    if prompt.startswith("Based on the chapter analysis"):
        return PLAN_TEXT
    if prompt.startswith("Write a story script"):
        return SCRIPT_TEXT
    if prompt.startswith("You are a professional storyboard designer"):
        return STORYBOARD_TEXT
    return "unrecognized prompt family"


class FakeCompleter:
    """Thread-safe recording completer driven by an optional responder callback."""

    def __init__(self, responder: Callable[[str], str] | None = None) -> None:
        self.responder = responder or routed_response
        self.calls: list[dict[str, object]] = []
        self._lock = threading.Lock()

    def complete(self, prompt: str, *, temperature: float, timeout_seconds: float) -> str:
        with self._lock:
            self.calls.append(
                {"prompt": prompt, "temperature": temperature, "timeout_seconds": timeout_seconds}
            )
        return self.responder(prompt)

    def prompts_starting_with(self, prefix: str) -> list[str]:
        with self._lock:
            return [str(call["prompt"]) for call in self.calls if str(call["prompt"]).startswith(prefix)]


def slow_segments(delay_seconds: float) -> Callable[[str], str]:
    """Return a responder that stalls on segment prompts and answers everything else."""

    def _respond(prompt: str) -> str:
        if prompt.startswith("Extract the core points"):
            time.sleep(delay_seconds)
        return routed_response(prompt)

    return _respond
