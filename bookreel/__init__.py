"""Top-level package for Bookreel.

This package turns parsed book chapters into short-video production artifacts
through a filter, score, summarize, and analyze workflow. The main
orchestration entry point is `WorkflowEngine`.
"""

from .config import BookreelConfig, ConfigLoader, ProcessingConfig, ProviderConfig
from .pipeline import ChapterPipeline, WorkflowEngine

__all__ = [
    "BookreelConfig",
    "ChapterPipeline",
    "ConfigLoader",
    "ProcessingConfig",
    "ProviderConfig",
    "WorkflowEngine",
    "__version__",
]

__version__ = "0.1.0"
