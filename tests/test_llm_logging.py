from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from config.settings import get_settings
from models.outcome import ExtractionUnavailable
from services.llm_client import LLMClient
from utils.llm_logger import log_call


def test_llm_trace_writes_jsonl(tmp_path, monkeypatch):
    log_file = tmp_path / "llm_calls.jsonl"
    monkeypatch.setenv("LLM_TRACE", "true")
    monkeypatch.setenv("LLM_LOG_PATH", str(log_file))
    monkeypatch.setenv("RUN_ID", "test-run-123")

    log_call(
        caller="unit.test",
        provider="openai",
        model="gpt-x",
        operation="resume_extraction",
        prompt_name="demo",
        prompt_hash="abc",
        duration_ms=42,
        status="ok",
        usage={"total_tokens": 10},
        extras={"filename": "resume.pdf"},
    )

    assert log_file.exists()
    lines = log_file.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) >= 1
    rec = json.loads(lines[-1])
    assert rec["caller"] == "unit.test"
    assert rec["provider"] == "openai"
    assert rec["operation"] == "resume_extraction"
    assert rec["run_id"] == "test-run-123"
    assert rec.get("usage", {}).get("total_tokens") == 10
    assert rec["extras"]["filename"] == "resume.pdf"


class _FakeCompletions:
    def __init__(self, answer=None, error=None):
        self.answer = answer
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.answer


def _fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def _complete(client):
    return client.complete_with_document(
        use_case="resume_extraction",
        system_prompt="sys",
        user_prompt="user",
        document_b64="JVBERg==",
        mime_type="application/pdf",
        filename="resume.pdf",
        tools=[{"type": "function", "function": {"name": "extract_resume_data"}}],
        tool_name="extract_resume_data",
    )


def test_client_sends_document_and_reads_tool_call(tmp_path, monkeypatch):
    log_file = tmp_path / "llm_calls.jsonl"
    monkeypatch.setenv("LLM_TRACE", "true")
    monkeypatch.setenv("LLM_LOG_PATH", str(log_file))
    call = SimpleNamespace(function=SimpleNamespace(name="extract_resume_data", arguments='{"full_name": "A"}'))
    answer = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=None, tool_calls=[call]))],
        usage=SimpleNamespace(prompt_tokens=5, completion_tokens=7, total_tokens=12),
    )
    completions = _FakeCompletions(answer=answer)

    resp = _complete(LLMClient(get_settings(), client=_fake_client(completions)))

    assert resp.tool_arguments == '{"full_name": "A"}'
    assert resp.usage["total_tokens"] == 12
    parts = completions.kwargs["messages"][1]["content"]
    assert parts[1]["file"]["file_data"] == "data:application/pdf;base64,JVBERg=="
    assert completions.kwargs["tool_choice"]["function"]["name"] == "extract_resume_data"
    rec = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert rec["status"] == "ok"


def test_client_maps_vendor_errors_to_unavailable():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    timeout = _FakeCompletions(error=openai.APITimeoutError(request=request))
    with pytest.raises(ExtractionUnavailable, match="timed out"):
        _complete(LLMClient(get_settings(), client=_fake_client(timeout)))

    limited = _FakeCompletions(
        error=openai.RateLimitError("slow down", response=httpx.Response(429, request=request), body=None)
    )
    with pytest.raises(ExtractionUnavailable, match="busy"):
        _complete(LLMClient(get_settings(), client=_fake_client(limited)))


def test_unconfigured_client_is_reported(monkeypatch):
    monkeypatch.setenv("AI_ENABLED", "false")
    client = LLMClient(get_settings())
    assert client.is_configured is False
    with pytest.raises(ExtractionUnavailable):
        _complete(client)


def test_unwired_provider_is_reported_as_unavailable(monkeypatch):
    monkeypatch.setenv("AI_PROVIDER", "anthropic")
    completions = _FakeCompletions(answer=None)
    with pytest.raises(ExtractionUnavailable, match="Provider not implemented: anthropic"):
        _complete(LLMClient(get_settings(), client=_fake_client(completions)))
    assert completions.kwargs is None
