"""Chapter pipeline, downstream stages, and the workflow engine."""

from .chapter import ChapterAssessment, ChapterPipeline
from .engine import ChapterResultSink, Route, WorkflowEngine, decide_next
from .stages import PromptGenerator, ScriptGenerator, VideoPlanner

__all__ = [
    "ChapterAssessment",
    "ChapterPipeline",
    "ChapterResultSink",
    "PromptGenerator",
    "Route",
    "ScriptGenerator",
    "VideoPlanner",
    "WorkflowEngine",
    "decide_next",
]
