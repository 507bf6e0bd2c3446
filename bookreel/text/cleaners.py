"""Deterministic noise filtering rules for chapter text.

Responsibilities:
- Provide composable removal rules for parser-derived book noise.
- Keep filtering pure, non-raising, and idempotent for reproducible scoring.
"""

from __future__ import annotations

import re
from typing import Protocol


class CleanerRule(Protocol):
    """Protocol for text cleaning rules."""

    def apply(self, text: str) -> str:
        """Apply a single cleaning transformation."""


class RemovePageNumbers:
    """Remove isolated numeric page markers from text."""

    def apply(self, text: str) -> str:
        """Apply page-number cleanup rule."""

        return re.sub(r"(?m)^[ \t]*\d+[ \t]*$", "", text)


class RemoveTableOfContentsLines:
    """Remove table-of-contents entries with dotted leaders or trailing page numbers."""

    _DOTTED_LEADER_RE = re.compile(r"(?m)^.{0,50}\.{3,}.{0,20}\d+[ \t]*$")
    _CJK_CHAPTER_ENTRY_RE = re.compile(r"(?m)^第[一二三四五六七八九十百\d]+章.*\d+[ \t]*$")

    def apply(self, text: str) -> str:
        """Drop dotted-leader lines and CJK chapter lines ending with a page number."""

        text = self._DOTTED_LEADER_RE.sub("", text)
        return self._CJK_CHAPTER_ENTRY_RE.sub("", text)


class RemoveCopyrightBoilerplate:
    """Remove copyright and publisher boilerplate keywords in English and Chinese."""

    _COPYRIGHT_RE = re.compile(
        r"版权所有|copyright|©|保留所有权利|all rights reserved|未经许可不得复制",
        re.IGNORECASE,
    )
    _PUBLISHER_RE = re.compile(r"ISBN|出版社|印刷|装帧|开本|印次|版次", re.IGNORECASE)

    def apply(self, text: str) -> str:
        """Strip boilerplate keywords while leaving surrounding prose intact."""

        text = self._COPYRIGHT_RE.sub("", text)
        return self._PUBLISHER_RE.sub("", text)


class RemoveUrlsAndEmails:
    """Remove web links and email addresses."""

    def apply(self, text: str) -> str:
        """Apply URL and email cleanup rule."""

        text = re.sub(r"https?://\S+", "", text)
        return re.sub(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", "", text)


class RemoveSymbolOnlyLines:
    """Remove short lines without letters or CJK and decorative symbol rows."""

    _SHORT_NON_LETTER_RE = re.compile(r"(?m)^[^一-龥a-zA-Z\n]{1,5}$")
    _DECORATIVE_RE = re.compile(r"(?m)^[★☆■□▲△●○※◆◇]+[ \t]*$")

    def apply(self, text: str) -> str:
        """Apply short-line and decorative-line cleanup rule."""

        text = self._SHORT_NON_LETTER_RE.sub("", text)
        return self._DECORATIVE_RE.sub("", text)


class RemovePageMarkers:
    """Remove inline page markers such as `第 12 页` or `page 3 of 10`."""

    def apply(self, text: str) -> str:
        """Apply inline page-marker cleanup rule."""

        text = re.sub(r"第\s*\d+\s*页|页码\s*\d+", "", text)
        return re.sub(r"\bpage\s+\d+\s+of\s+\d+\b", "", text, flags=re.IGNORECASE)


class CollapseBlankLines:
    """Collapse runs of blank lines and trim the result."""

    def apply(self, text: str) -> str:
        """Reduce 3+ consecutive line breaks to one blank line."""

        return re.sub(r"\n\s*\n\s*\n", "\n\n", text).strip()


class RemoveTitleLines:
    """Remove lines that repeat the chapter title verbatim."""

    def __init__(self, title: str) -> None:
        """Remember the stripped chapter title to match against."""

        self._title = title.strip()

    def apply(self, text: str) -> str:
        """Drop lines whose stripped content equals the chapter title."""

        if not self._title:
            return text
        return "\n".join(
            "" if line.strip() == self._title else line for line in text.split("\n")
        )


def default_rules() -> list[CleanerRule]:
    """Return the default rule sequence in application order."""

    return [
        RemovePageNumbers(),
        RemoveTableOfContentsLines(),
        RemoveCopyrightBoilerplate(),
        RemoveUrlsAndEmails(),
        RemoveSymbolOnlyLines(),
        RemovePageMarkers(),
        CollapseBlankLines(),
    ]


class ContentFilter:
    """Apply a sequence of removal rules until the text stops changing.

    Every rule only removes characters, so repeated passes converge. Running
    to a fixed point makes the filter idempotent even when one rule exposes
    noise that an earlier rule would have caught.
    """

    def __init__(self, rules: list[CleanerRule] | None = None) -> None:
        """Initialize with custom rules or the default rule sequence."""

        self.rules = rules or default_rules()

    def filter(self, text: object, title: str | None = None) -> str:
        """Return filtered text; non-string input yields an empty string."""

        if not isinstance(text, str):
            return ""
        rules = list(self.rules)
        if title:
            rules.insert(0, RemoveTitleLines(title))

        current = text
        while True:
            previous = current
            for rule in rules:
                current = rule.apply(current)
            if current == previous or len(current) >= len(previous):
                return current
