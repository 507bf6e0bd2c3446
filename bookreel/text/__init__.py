"""Text filtering, scoring, and segmentation utilities."""

from .cleaners import ContentFilter
from .scoring import ChapterScoreReport, ChapterValueScorer
from .segmenter import Segmenter

__all__ = ["ChapterScoreReport", "ChapterValueScorer", "ContentFilter", "Segmenter"]
