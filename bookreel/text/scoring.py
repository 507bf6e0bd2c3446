"""Heuristic chapter-value scoring.

Responsibilities:
- Score filtered chapter text on a 0..1 "worth processing" scale.
- Keep every pattern table as module-level data so each band is testable alone.
- Report per-band contributions for dry-run diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from ..config import ContentTypeWeights


BASELINE_SCORE = 0.5

TITLE_NUMBERING_PATTERN = re.compile(
    r"第[一二三四五六七八九十百\d]+[章节]|chapter|part\s+\d+|section\s+\d+",
    re.IGNORECASE,
)

NON_CONTENT_TITLES = frozenset(
    {
        "目录",
        "索引",
        "参考文献",
        "致谢",
        "附录",
        "版权",
        "序言",
        "前言",
        "后记",
        "contents",
        "table of contents",
        "index",
        "references",
        "bibliography",
        "acknowledgment",
        "acknowledgments",
        "acknowledgements",
        "appendix",
        "preface",
        "foreword",
        "afterword",
        "introduction",
        "conclusion",
    }
)

CONTENT_TYPE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "academic": (
        "研究", "分析", "理论", "方法", "实验", "数据", "结果", "结论", "发现",
        "证据", "假设", "模型", "测试", "验证",
        "research", "analysis", "theory", "method", "experiment", "data",
        "result", "evidence", "hypothesis", "model",
    ),
    "practical": (
        "方法", "技巧", "步骤", "如何", "怎样", "建议", "策略", "经验", "案例",
        "例子", "实践", "操作", "指南", "技能",
        "how to", "technique", "step", "advice", "strategy", "practice",
        "example", "guide", "skill", "tip",
    ),
    "narrative": (
        "故事", "经历", "回忆", "描述", "讲述", "叙述", "情节", "人物", "场景",
        "对话", "感受", "体验",
        "story", "memory", "remember", "character", "scene", "dialogue",
        "felt", "journey", "experience",
    ),
    "business": (
        "管理", "营销", "策略", "商业", "企业", "市场", "客户", "产品", "服务",
        "团队", "领导", "决策", "竞争",
        "management", "marketing", "business", "company", "market",
        "customer", "product", "team", "leader", "decision", "competition",
    ),
    "philosophy": (
        "思考", "观点", "理念", "价值", "意义", "本质", "存在", "认知", "思维",
        "逻辑", "判断", "选择", "人生",
        "thinking", "meaning", "value", "essence", "existence", "logic",
        "judgment", "choice", "belief", "wisdom",
    ),
}

SENTENCE_SPLIT_PATTERN = re.compile(r"[。！？.!?]")
TOC_PATTERN = re.compile(r"\.{3,}|\d+\s*$|第\d+页|page\s+\d+|\.{2,}\d+", re.MULTILINE | re.IGNORECASE)


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    """Compile one alternation for a keyword table.

    Latin keywords match at word starts so `data` does not hit `update`;
    CJK keywords match anywhere because CJK text has no word separators.
    """

    parts = []
    for keyword in keywords:
        escaped = re.escape(keyword).replace(r"\ ", r"\s+")
        parts.append(rf"\b{escaped}" if keyword.isascii() else escaped)
    return re.compile("|".join(parts), re.IGNORECASE)


_KEYWORD_PATTERNS = {
    category: _keyword_pattern(keywords) for category, keywords in CONTENT_TYPE_KEYWORDS.items()
}


@dataclass(frozen=True, slots=True)
class ChapterScoreReport:
    """Per-band breakdown of one chapter score."""

    score: float
    length_adjustment: float
    title_adjustment: float
    sentence_adjustment: float
    content_type_adjustment: float
    toc_adjustment: float
    repetition_adjustment: float
    sentence_count: int
    keyword_hits: int
    content_type: str

    def as_dict(self) -> dict[str, float | int | str]:
        """Return a JSON-compatible representation."""

        return {
            "score": self.score,
            "length_adjustment": self.length_adjustment,
            "title_adjustment": self.title_adjustment,
            "sentence_adjustment": self.sentence_adjustment,
            "content_type_adjustment": self.content_type_adjustment,
            "toc_adjustment": self.toc_adjustment,
            "repetition_adjustment": self.repetition_adjustment,
            "sentence_count": self.sentence_count,
            "keyword_hits": self.keyword_hits,
            "content_type": self.content_type,
        }


def split_sentences(text: str, min_length: int) -> list[str]:
    """Split text at sentence terminators, keeping pieces longer than `min_length`."""

    return [piece for piece in SENTENCE_SPLIT_PATTERN.split(text) if len(piece.strip()) > min_length]


def count_keyword_hits(text: str) -> dict[str, int]:
    """Count keyword hits for each content-type category."""

    return {category: len(pattern.findall(text)) for category, pattern in _KEYWORD_PATTERNS.items()}


class ChapterValueScorer:
    """Pure heuristic scorer for filtered chapter text."""

    def __init__(self, weights: ContentTypeWeights | None = None) -> None:
        """Initialize with content-type weights used to pick the dominant category."""

        self.weights = weights or ContentTypeWeights()

    def score(self, text: str, title: str | None = None) -> float:
        """Return the clamped chapter score in [0, 1]."""

        return self.score_with_report(text, title).score

    def score_with_report(self, text: str, title: str | None = None) -> ChapterScoreReport:
        """Score text and return every band's contribution."""

        sentences = split_sentences(text, min_length=8)
        length_adjustment = self._length_adjustment(len(text))
        title_adjustment = self._title_adjustment(title)
        sentence_adjustment = self._sentence_adjustment(text, sentences)
        content_type_adjustment, keyword_hits, content_type = self._content_type_adjustment(text)
        toc_adjustment = self._toc_adjustment(text, len(sentences))
        repetition_adjustment = self._repetition_adjustment(text)

        raw = (
            BASELINE_SCORE
            + length_adjustment
            + title_adjustment
            + sentence_adjustment
            + content_type_adjustment
            + toc_adjustment
            + repetition_adjustment
        )
        return ChapterScoreReport(
            score=max(0.0, min(1.0, raw)),
            length_adjustment=length_adjustment,
            title_adjustment=title_adjustment,
            sentence_adjustment=sentence_adjustment,
            content_type_adjustment=content_type_adjustment,
            toc_adjustment=toc_adjustment,
            repetition_adjustment=repetition_adjustment,
            sentence_count=len(sentences),
            keyword_hits=keyword_hits,
            content_type=content_type,
        )

    def _length_adjustment(self, length: int) -> float:
        """Penalize very short or very long text and reward mid-sized chapters."""

        if length < 200:
            return -0.4
        if 300 < length < 8000:
            return 0.2
        if length > 15000:
            return -0.1
        return 0.0

    def _title_adjustment(self, title: str | None) -> float:
        """Reward numbered titles and penalize front and back matter titles."""

        if not title:
            return 0.0
        adjustment = 0.0
        if TITLE_NUMBERING_PATTERN.search(title):
            adjustment += 0.15
        if title.strip().lower() in NON_CONTENT_TITLES:
            adjustment -= 0.6
        return adjustment

    def _sentence_adjustment(self, text: str, sentences: list[str]) -> float:
        """Penalize text with too few sentences to be narrative."""

        if len(sentences) < 3:
            return -0.4
        average_length = len(text) / len(sentences)
        if len(sentences) > 5 and average_length > 15:
            return 0.1
        return 0.0

    def _content_type_adjustment(self, text: str) -> tuple[float, int, str]:
        """Return the keyword-density adjustment, total hits, and dominant category."""

        hits = count_keyword_hits(text)
        total = sum(hits.values())
        if total > 8:
            weights = self.weights.as_dict()
            dominant = max(hits, key=lambda category: hits[category] * weights[category])
            return 0.3, total, dominant
        if total > 4:
            return 0.15, total, "unknown"
        if total < 2:
            return -0.2, total, "unknown"
        return 0.0, total, "unknown"

    def _toc_adjustment(self, text: str, sentence_count: int) -> float:
        """Penalize text dominated by table-of-contents lines."""

        matches = len(TOC_PATTERN.findall(text))
        if matches == 0:
            return 0.0
        ratio = matches / sentence_count if sentence_count else float("inf")
        if ratio > 0.3:
            return -0.5
        if matches > 15:
            return -0.3
        return 0.0

    def _repetition_adjustment(self, text: str) -> float:
        """Penalize running headers and other repeated sentences."""

        sentences = split_sentences(text, min_length=10)
        if len(sentences) < 5:
            return 0.0
        unique = {sentence.strip() for sentence in sentences}
        ratio = 1 - len(unique) / len(sentences)
        if ratio > 0.5:
            return -0.3
        if ratio > 0.3:
            return -0.1
        return 0.0
