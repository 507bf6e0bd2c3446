"""Prompt template library for completion-backed stages.

Responsibilities:
- Centralize prompt construction for segment summaries, chapter analysis,
  video planning, scripting, and storyboard prompt generation.
- Keep prompts deterministic for a given input so step caching stays valid.
"""

from __future__ import annotations


class PromptLibrary:
    """Build prompt strings for supported completion tasks."""

    def segment_summary_prompt(self, segment_text: str, max_summary_length: int) -> str:
        """Return the prompt that condenses one segment into its key points."""

        return (
            f"Extract the core points of the following passage in at most "
            f"{max_summary_length} characters.\n"
            "Requirements:\n"
            "1. Keep the one or two most important ideas.\n"
            "2. Keep important cases, examples, or data.\n"
            "3. Use concise language and preserve the author's intent.\n"
            "4. Ignore page numbers, headers, footers, and other layout noise.\n"
            "5. Answer in the language of the passage.\n"
            "Output only the core points with no commentary.\n\n"
            f"Passage:\n{segment_text}"
        )

    def chapter_analysis_prompt(self, title: str, content: str) -> str:
        """Return the prompt that evaluates a chapter's short-video potential."""

        return (
            "Analyze the following chapter and assess its value for short-video production.\n\n"
            f"Chapter title: {title}\n"
            f"Chapter content:\n{content}\n\n"
            "Answer these questions:\n"
            "1. How many independent core ideas does the chapter contain (1-5)?\n"
            "2. Is each idea supported by a concrete example?\n"
            "3. Which ideas are best suited for an engaging short video?\n"
            "4. How many videos do you recommend (1-4)?\n"
            "5. Ignore tables of contents, page numbers, and other noise.\n\n"
            "Output format:\n"
            "Core idea count: X\n"
            "Recommended video count: X\n"
            "Main ideas:\n"
            "1. [idea]\n"
            "2. [idea]\n"
            "Best idea for video: [why it works on video]\n"
            "Chapter quality: [excellent/good/fair/poor]"
        )

    def video_plan_prompt(self, analysis_text: str, processed_text: str) -> str:
        """Return the prompt that turns a chapter analysis into a video plan."""

        return (
            "Based on the chapter analysis, write a concrete short-video production plan.\n\n"
            f"Chapter analysis:\n{analysis_text}\n\n"
            f"Chapter key points:\n{processed_text}\n\n"
            "Principles:\n"
            "1. Each video focuses on exactly one core idea.\n"
            "2. Prefer the most debatable or story-rich ideas.\n"
            "3. Each video runs 2-3 minutes for short-video platforms.\n"
            "4. Consider audience reception and shareability.\n\n"
            "Output format:\n"
            "Recommended video count: X\n\n"
            "Video 1:\n"
            "Title: [catchy title]\n"
            "Core idea: [one sentence]\n"
            "Story angle: [why it deserves a video and how to tell it]\n"
            "Expected takeaway: [what viewers gain]\n\n"
            "(repeat for each video)\n\n"
            "Production notes: [overall advice for this chapter]"
        )

    def video_script_prompt(self, video_plans: str) -> str:
        """Return the prompt that writes one story script per planned video."""

        return (
            "Write a story script for every video in the following plan.\n\n"
            f"Video plan:\n{video_plans}\n\n"
            "Requirements:\n"
            "- Use animal characters: a fox (the theorist), a bear (the practitioner), "
            "and a rabbit (the curious one).\n"
            "- Every video has an opening hook, a core conflict, an explanation, "
            "and a closing reflection.\n"
            "- Keep dialogue lively and true to each character.\n"
            "- Each script is 200-300 words.\n\n"
            "Output format:\n"
            "## Video 1: [title]\n"
            "**Opening (30s)**: [suspenseful hook]\n"
            "**Conflict (60s)**: [disagreement between characters]\n"
            "**Explanation (60s)**: [knowledge and examples]\n"
            "**Closing (30s)**: [summary and reflection]"
        )

    def storyboard_prompt(self, video_scripts: str) -> str:
        """Return the prompt that turns scripts into storyboard shots for video AI tools."""

        return (
            "You are a professional storyboard designer for educational videos.\n\n"
            f"Video scripts:\n{video_scripts}\n\n"
            "Design 8-10 shots per video, each 3-5 seconds long.\n"
            "Requirements:\n"
            "1. Shots follow a complete arc: setup, conflict, development, climax, "
            "resolution, ending.\n"
            "2. Character entrances are logical and continuous.\n"
            "3. Knowledge points are visualized.\n\n"
            "For every shot output:\n"
            "### Shot N: [name] ([duration])\n"
            "**Scene**: ...\n"
            "**Characters**: ...\n"
            "**Action**: ...\n"
            "**Mood**: ...\n"
            "**Camera**: ...\n"
            "**Transition**: ...\n"
            "**AI prompt**: [one English text-to-video prompt describing the shot]"
        )
