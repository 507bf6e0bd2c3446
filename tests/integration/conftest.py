"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bookreel.llm.openai_client import OpenAIChatClient
from tests.fakes import make_prose, routed_response


@pytest.fixture(autouse=True)
def _mock_openai_chat_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    """Mock chat-completions calls so integration tests need no network or real key."""

    calls: list[dict[str, object]] = []

    def _mock_chat_completion(self, **kwargs: object) -> str:
        """Return canned text chosen by the prompt family."""

        _ = self
        calls.append(kwargs)
        return routed_response(str(kwargs["user_prompt"]))

    monkeypatch.setattr(OpenAIChatClient, "chat_completion_text", _mock_chat_completion)
    monkeypatch.setenv("OPENAI_API_KEY", "integration-test-key")
    return calls


@pytest.fixture
def chat_calls(_mock_openai_chat_calls: list[dict[str, object]]) -> list[dict[str, object]]:
    """Expose recorded chat-completions keyword arguments."""

    return _mock_openai_chat_calls


@pytest.fixture
def chapters_json(tmp_path: Path) -> Path:
    """Write a three-chapter document where the middle chapter is front-matter noise."""

    path = tmp_path / "deep-work.json"
    path.write_text(
        json.dumps(
            {
                "document_id": "deep-work",
                "chapters": [
                    {"id": "c1", "title": "Chapter 1", "text": make_prose(2000), "order": 0},
                    {"id": "c2", "title": "Copyright", "text": "Copyright 2016. All rights reserved.", "order": 1},
                    {"id": "c3", "title": "Chapter 3", "text": make_prose(2600), "order": 2},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path
