"""Input/output components for Bookreel.

This package contains chapter loading, artifact storage, step caches, and the
markdown result writer.
"""

from .chapters import ChapterDocument, load_chapters
from .result_writer import MarkdownResultWriter
from .step_cache import InMemoryStepCache, JsonFileStepCache, StepCache
from .storage import ArtifactStore

__all__ = [
    "ArtifactStore",
    "ChapterDocument",
    "InMemoryStepCache",
    "JsonFileStepCache",
    "MarkdownResultWriter",
    "StepCache",
    "load_chapters",
]
