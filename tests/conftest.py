from __future__ import annotations

import base64
import json
import os
import sqlite3
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'pipelines.bulk_upload'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")
    os.environ.setdefault("BCRYPT_ROUNDS", "4")


@pytest.fixture(autouse=True)
def _fresh_settings():
    from config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ScriptedLLM:
    """LLM stub answering by document content; records every call."""

    def __init__(self, by_content=None, default=None, configured: bool = True):
        self.by_content = dict(by_content or {})
        self.default = default
        self.configured = configured
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def complete_with_document(self, **kwargs):
        from ports.llm import LLMResponse

        self.calls.append(kwargs)
        content = base64.b64decode(kwargs["document_b64"])
        answer = self.by_content.get(content, self.default)
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, dict):
            return LLMResponse(tool_arguments=json.dumps(answer))
        return answer or LLMResponse()


@pytest.fixture
def scripted_llm():
    return ScriptedLLM


@pytest.fixture
def conn(tmp_path):
    from db import schema

    c = sqlite3.connect(str(tmp_path / "t.db"))
    c.execute("PRAGMA foreign_keys=ON;")
    schema.bootstrap(c)
    try:
        yield c
    finally:
        c.close()
