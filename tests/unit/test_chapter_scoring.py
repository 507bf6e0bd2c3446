"""Unit tests for heuristic chapter-value scoring."""

from __future__ import annotations

import pytest

from bookreel.config import ContentTypeWeights
from bookreel.text.scoring import (
    CONTENT_TYPE_KEYWORDS,
    NON_CONTENT_TITLES,
    ChapterValueScorer,
    count_keyword_hits,
    split_sentences,
)
from tests.fakes import make_prose


def test_rich_numbered_chapter_is_clamped_to_one() -> None:
    """A long, keyword-dense, numbered chapter should score at the ceiling."""

    report = ChapterValueScorer().score_with_report(make_prose(5000), "Chapter 3")

    assert report.length_adjustment == pytest.approx(0.2)
    assert report.title_adjustment == pytest.approx(0.15)
    assert report.sentence_adjustment == pytest.approx(0.1)
    assert report.content_type_adjustment == pytest.approx(0.3)
    assert report.toc_adjustment == 0.0
    assert report.repetition_adjustment == 0.0
    assert report.score == 1.0


def test_tiny_text_is_clamped_to_zero() -> None:
    """Short text without sentences or keywords should never go below zero."""

    report = ChapterValueScorer().score_with_report("Too short.")

    assert report.length_adjustment == pytest.approx(-0.4)
    assert report.sentence_adjustment == pytest.approx(-0.4)
    assert report.content_type_adjustment == pytest.approx(-0.2)
    assert report.score == 0.0


@pytest.mark.parametrize("title", ["References", "  preface ", "目录", "ACKNOWLEDGMENTS"])
def test_non_content_titles_are_penalized(title: str) -> None:
    """Front and back matter titles should cost 0.6 regardless of case and padding."""

    report = ChapterValueScorer().score_with_report(make_prose(5000), title)

    assert report.title_adjustment == pytest.approx(-0.6)
    assert report.score < 0.6


@pytest.mark.parametrize("title", ["第三章 学习方法", "Part 2", "Section 4", "CHAPTER ONE"])
def test_numbered_titles_receive_bonus(title: str) -> None:
    """Chapter-like titles should receive the numbering bonus."""

    assert ChapterValueScorer().score_with_report("", title).title_adjustment == pytest.approx(0.15)


def test_missing_title_has_no_title_adjustment() -> None:
    """An absent title should neither help nor hurt."""

    assert ChapterValueScorer().score_with_report(make_prose(1000), None).title_adjustment == 0.0


def test_table_of_contents_text_is_penalized() -> None:
    """Text made of TOC entries without real sentences should receive the TOC penalty."""

    toc = "\n".join(f"Heading {index} ........ {index * 10}" for index in range(1, 30))

    report = ChapterValueScorer().score_with_report(toc, "Contents")

    assert report.toc_adjustment == pytest.approx(-0.5)
    assert report.score == 0.0


def test_repeated_sentences_are_penalized() -> None:
    """Highly repetitive text should lose 0.3."""

    text = " ".join(["The same long sentence keeps repeating here."] * 12)

    report = ChapterValueScorer().score_with_report(text)

    assert report.repetition_adjustment == pytest.approx(-0.3)


def test_moderate_repetition_gets_smaller_penalty() -> None:
    """A repetition ratio between 0.3 and 0.5 should lose 0.1."""

    unique = [f"Unique sentence number {index} stands alone." for index in range(5)]
    repeated = ["This duplicated sentence shows up again."] * 5
    text = " ".join(unique + repeated)

    report = ChapterValueScorer().score_with_report(text)

    assert report.repetition_adjustment == pytest.approx(-0.1)


def test_score_is_always_within_unit_interval() -> None:
    """Score should be clamped for any combination of bands."""

    scorer = ChapterValueScorer()
    samples = ["", "x", make_prose(300), make_prose(9000), make_prose(16000), "1\n2\n3\n" * 50]

    for sample in samples:
        assert 0.0 <= scorer.score(sample, "Index") <= 1.0
        assert 0.0 <= scorer.score(sample, "Chapter 9") <= 1.0


def test_dominant_content_type_follows_weights() -> None:
    """Equal keyword counts should be broken by content-type weights."""

    text = "research story " * 5

    default_report = ChapterValueScorer().score_with_report(text)
    narrative_report = ChapterValueScorer(
        ContentTypeWeights(narrative=0.9)
    ).score_with_report(text)

    assert default_report.keyword_hits == 10
    assert default_report.content_type == "academic"
    assert narrative_report.content_type == "narrative"


def test_keyword_matching_respects_latin_word_starts() -> None:
    """Latin keywords should not match inside longer words; CJK keywords match anywhere."""

    hits = count_keyword_hits("metadata metadata 我们的研究和数据")

    assert hits["academic"] == 2


def test_keyword_tables_cover_every_weighted_category() -> None:
    """Every weighted category should have a keyword table, and vice versa."""

    assert set(CONTENT_TYPE_KEYWORDS) == set(ContentTypeWeights().as_dict())
    assert all(title == title.lower() for title in NON_CONTENT_TITLES)


def test_split_sentences_drops_short_fragments() -> None:
    """Sentence splitter should ignore fragments at or below the minimum length."""

    sentences = split_sentences("Ok. This sentence is long enough! 好。这是一个足够长的中文句子内容。", 8)

    assert [sentence.strip() for sentence in sentences] == ["This sentence is long enough", "这是一个足够长的中文句子内容"]
