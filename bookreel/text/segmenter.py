"""Size-bounded segmentation of long chapter text.

Responsibilities:
- Split filtered chapter text into segments along paragraph and sentence boundaries.
- Guarantee every segment fits the configured maximum length.
- Stay a pure function of input text and limits.
"""

from __future__ import annotations

import re
from typing import Callable

from ..models.datatypes import Segment


class Segmenter:
    """Greedy paragraph packer with sentence and whitespace fallbacks."""

    MIN_PARAGRAPH_LENGTH = 50
    MIN_SEGMENT_LENGTH = 100
    SENTENCE_BUDGET_RATIO = 0.9

    _PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
    _SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?。！？])")
    _WORD_SPLIT_RE = re.compile(r"(\s+)")
    _NUMERAL_RE = re.compile(r"\d+")

    def __init__(self, max_segment_length: int) -> None:
        """Initialize with the hard upper bound for segment length."""

        if max_segment_length <= 0:
            raise ValueError("`max_segment_length` must be a positive integer.")
        self.max_segment_length = max_segment_length

    def segment(self, text: str) -> tuple[Segment, ...]:
        """Split text into ordered segments.

        Args:
            text: Filtered chapter text.

        Returns:
            Segments in document order, each no longer than `max_segment_length`
            and longer than `MIN_SEGMENT_LENGTH`.
        """

        pieces: list[str] = []
        current = ""
        for paragraph in self._paragraphs(text):
            if len(paragraph) > self.max_segment_length:
                if current:
                    pieces.append(current)
                    current = ""
                pieces.extend(self._split_paragraph(paragraph))
                continue

            candidate = f"{current}\n\n{paragraph}" if current else paragraph
            if len(candidate) <= self.max_segment_length:
                current = candidate
            else:
                pieces.append(current)
                current = paragraph
        if current:
            pieces.append(current)

        kept = [piece for piece in pieces if len(piece) > self.MIN_SEGMENT_LENGTH]
        return tuple(Segment(index=index, text=piece) for index, piece in enumerate(kept))

    def _paragraphs(self, text: str) -> list[str]:
        """Return stripped paragraphs worth keeping."""

        paragraphs = []
        for raw in self._PARAGRAPH_SPLIT_RE.split(text):
            paragraph = raw.strip()
            if len(paragraph) <= self.MIN_PARAGRAPH_LENGTH:
                continue
            if self._NUMERAL_RE.fullmatch(paragraph):
                continue
            paragraphs.append(paragraph)
        return paragraphs

    def _split_paragraph(self, paragraph: str) -> list[str]:
        """Split one oversized paragraph at sentence terminators."""

        budget = max(1, int(self.max_segment_length * self.SENTENCE_BUDGET_RATIO))
        sentences = [sentence for sentence in self._SENTENCE_SPLIT_RE.split(paragraph) if sentence]
        return self._accumulate(sentences, budget, fallback=self._split_sentence)

    def _split_sentence(self, sentence: str, budget: int) -> list[str]:
        """Split one oversized sentence at whitespace, hard-cutting unbroken runs."""

        words: list[str] = []
        for token in self._WORD_SPLIT_RE.split(sentence):
            if len(token) <= budget:
                words.append(token)
            else:
                words.extend(token[start : start + budget] for start in range(0, len(token), budget))
        return self._accumulate(words, budget, fallback=None)

    def _accumulate(
        self,
        units: list[str],
        budget: int,
        fallback: Callable[[str, int], list[str]] | None,
    ) -> list[str]:
        """Greedily join units into stripped chunks of at most `budget` characters."""

        chunks: list[str] = []
        current = ""
        for unit in units:
            if len(unit) > budget and fallback is not None:
                if current.strip():
                    chunks.append(current.strip())
                current = ""
                chunks.extend(fallback(unit, budget))
                continue
            if len(current) + len(unit) <= budget:
                current += unit
                continue
            if current.strip():
                chunks.append(current.strip())
            current = unit
        if current.strip():
            chunks.append(current.strip())
        return chunks
