"""Markdown persistence for completed chapter results.

Responsibilities:
- Write one directory of markdown artifacts per completed chapter.
- Extract the per-shot text-to-video prompts into a plain text file.
- Write a JSON run summary once the workflow stops.
"""

from __future__ import annotations

from pathlib import Path
import re

from ..models.datatypes import ChapterResult, WorkflowState
from ..text.slug import slugify_title
from .storage import ArtifactStore


_AI_PROMPT_LINE_RE = re.compile(r"^\s*\*{0,2}AI prompt\*{0,2}\s*[:：]\s*(.+?)\s*$", re.IGNORECASE)


def extract_ai_prompt_lines(ai_prompts: str) -> list[str]:
    """Return the text-to-video prompt of every storyboard shot, in order."""

    prompts = []
    for line in ai_prompts.splitlines():
        match = _AI_PROMPT_LINE_RE.match(line)
        if match is not None:
            prompts.append(match.group(1))
    return prompts


class MarkdownResultWriter:
    """Chapter result sink writing markdown artifacts under an output root.

    Layout:
        chapters/NN-<slug>/1-analysis.md
        chapters/NN-<slug>/2-video-plans.md
        chapters/NN-<slug>/3-video-scripts.md
        chapters/NN-<slug>/4-ai-prompts.md
        chapters/NN-<slug>/ai-prompts.txt
        run_summary.json
    """

    _SECTIONS = (
        ("1-analysis.md", "Chapter analysis", "analysis_text"),
        ("2-video-plans.md", "Video plans", "video_plans"),
        ("3-video-scripts.md", "Video scripts", "video_scripts"),
        ("4-ai-prompts.md", "AI video prompts", "ai_prompts"),
    )

    def __init__(self, root: Path) -> None:
        """Write artifacts under `root` and track every written path."""

        self.store = ArtifactStore(root)
        self.written: list[Path] = []

    def chapter_dir(self, result: ChapterResult) -> Path:
        """Return the relative directory for one chapter result."""

        title = result.chapter_title or f"Chapter {result.chapter_index + 1}"
        return Path("chapters") / f"{result.chapter_index + 1:02d}-{slugify_title(title)}"

    def on_chapter_result(self, result: ChapterResult) -> None:
        """Persist the non-empty sections of one completed chapter."""

        directory = self.chapter_dir(result)
        title = result.chapter_title or f"Chapter {result.chapter_index + 1}"
        for filename, heading, field_name in self._SECTIONS:
            body = getattr(result, field_name)
            if not body:
                continue
            self.written.append(
                self.store.save_text(directory / filename, f"# {title} - {heading}\n\n{body}\n")
            )

        prompt_lines = extract_ai_prompt_lines(result.ai_prompts)
        if prompt_lines:
            self.written.append(
                self.store.save_text(directory / "ai-prompts.txt", "\n\n".join(prompt_lines) + "\n")
            )

    def write_run_summary(self, state: WorkflowState) -> Path:
        """Write `run_summary.json` describing where and how the run stopped."""

        summary = {
            "document_id": state.document_id,
            "status": state.status.value,
            "error": state.error,
            "stopped_at_index": state.current_chapter_index,
            "total_chapters": state.total_chapters,
            "processed_chapters": [
                {
                    "chapter_index": result.chapter_index,
                    "chapter_title": result.chapter_title,
                    "directory": self.chapter_dir(result).as_posix(),
                }
                for result in state.results
            ],
            "skipped_chapter_indices": list(state.skipped_chapter_indices),
        }
        path = self.store.save_json(Path("run_summary.json"), summary)
        self.written.append(path)
        return path
