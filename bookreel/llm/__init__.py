"""Completion-facing abstractions for summarization and analysis.

This package defines the completion protocol, the OpenAI-compatible client,
prompt templates, and the concurrent segment summarizer.
"""

from .analyzer import ChapterAnalyzer
from .completion import OpenAITextCompleter, TextCompleter, complete_within
from .openai_client import OpenAIChatClient, OpenAIProviderError
from .prompts import PromptLibrary
from .summarizer import SegmentSummarizer, SummaryBatchReport

__all__ = [
    "ChapterAnalyzer",
    "OpenAIChatClient",
    "OpenAIProviderError",
    "OpenAITextCompleter",
    "PromptLibrary",
    "SegmentSummarizer",
    "SummaryBatchReport",
    "TextCompleter",
    "complete_within",
]
