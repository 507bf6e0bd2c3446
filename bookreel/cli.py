"""Command-line interface for Bookreel.

Responsibilities:
- Expose user-facing commands for workflow runs and offline score dry-runs.
- Resolve configuration from YAML, environment, and CLI overrides.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
import sys
from typing import Annotated

import typer
import yaml

from .cli_rendering import echo_assessment_row, echo_run_summary, exit_with_command_error
from .config import BookreelConfig, ConfigLoader, ProviderConfig
from .errors import PipelineStageError
from .io.chapters import load_chapters
from .io.result_writer import MarkdownResultWriter
from .io.step_cache import InMemoryStepCache, JsonFileStepCache, StepCache
from .llm.completion import OpenAITextCompleter, TextCompleter
from .models.datatypes import ChapterStatus
from .parsing import normalize_optional_string
from .pipeline.chapter import assess_chapter
from .pipeline.engine import WorkflowEngine
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="bookreel",
    no_args_is_help=True,
    help="Bookreel CLI: turn book chapters into short-video production artifacts.",
)


def _load_config(config_path: Path | None, model: str | None = None) -> BookreelConfig:
    """Resolve config from YAML and environment, mapping failures to stage errors."""

    try:
        config = ConfigLoader.load(config_path, env=os.environ)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except yaml.YAMLError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file `{config_path}` is not valid YAML: {exc}",
            hint="Verify YAML syntax and rerun.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config values or `BOOKREEL_*` environment variables and rerun.",
        ) from exc

    normalized_model = normalize_optional_string(model)
    if normalized_model is not None:
        config = replace(config, provider=replace(config.provider, model=normalized_model))
    return config


def create_completer(provider: ProviderConfig) -> TextCompleter:
    """Create the text completer for a resolved provider config."""

    return OpenAITextCompleter.from_config(provider)


def _create_cache(cache_dir: Path | None) -> StepCache:
    """Return a persistent cache when `--cache-dir` is given, else a per-run one."""

    if cache_dir is None:
        return InMemoryStepCache()
    return JsonFileStepCache(cache_dir)


@app.command("run")
def run_command(
    chapters_json: Annotated[
        Path, typer.Argument(help="Path to the chapters JSON produced by a document parser.")
    ],
    out: Annotated[Path, typer.Option("--out", help="Output directory.")] = Path("out"),
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config with `processing`/`provider`."),
    ] = None,
    document_id: Annotated[
        str | None,
        typer.Option(
            "--document-id",
            help="Document id used as cache scope (defaults to the chapters file value or stem).",
        ),
    ] = None,
    cache_dir: Annotated[
        Path | None,
        typer.Option(
            "--cache-dir",
            help="Directory for persistent step cache; enables resuming interrupted runs.",
        ),
    ] = None,
    model: Annotated[
        str | None, typer.Option("--model", help="Chat model id override.")
    ] = None,
) -> None:
    """Run the chapter workflow and write markdown artifacts."""

    run_logger = RunLogger(sink=sys.stderr)
    try:
        config = _load_config(config_file, model)
        document = load_chapters(chapters_json)
        resolved_document_id = normalize_optional_string(document_id) or document.document_id
        writer = MarkdownResultWriter(out)
        engine = WorkflowEngine.from_config(
            config.processing,
            create_completer(config.provider),
            cache=_create_cache(cache_dir),
            result_sink=writer,
            run_logger=run_logger,
        )
        state = engine.run(resolved_document_id, document.chapters)
        summary_path = writer.write_run_summary(state)
    except Exception as exc:
        exit_with_command_error("run", exc)
    finally:
        run_logger.close()

    echo_run_summary(state)
    typer.echo(f"Run summary: {summary_path}")
    if state.status is ChapterStatus.FAILED:
        raise typer.Exit(code=1)


@app.command("score")
def score_command(
    chapters_json: Annotated[
        Path, typer.Argument(help="Path to the chapters JSON produced by a document parser.")
    ],
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config with `processing`/`provider`."),
    ] = None,
) -> None:
    """Print filter/score decisions per chapter without calling the completion service."""

    try:
        config = _load_config(config_file)
        document = load_chapters(chapters_json)
    except Exception as exc:
        exit_with_command_error("score", exc)

    for index, chapter in enumerate(document.chapters):
        echo_assessment_row(index, chapter, assess_chapter(chapter, config.processing))


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
