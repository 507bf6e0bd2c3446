"""Shared pytest fixtures for the full Bookreel test suite."""

from __future__ import annotations

import pytest

from bookreel.config import ProcessingConfig
from tests.fakes import FakeCompleter


@pytest.fixture
def fake_completer() -> FakeCompleter:
    """Provide a recording completer that answers by prompt family."""

    return FakeCompleter()


@pytest.fixture
def fast_config() -> ProcessingConfig:
    """Provide default thresholds with short timeouts suitable for tests."""

    return ProcessingConfig(
        single_segment_timeout_seconds=2.0,
        total_processing_timeout_seconds=5.0,
        chapter_analysis_timeout_seconds=2.0,
    )
