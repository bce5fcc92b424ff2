from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from config.llm_routes import ROUTES
from config.settings import Settings, get_settings
from models.outcome import ExtractionUnavailable
from ports.llm import LLMResponse
from utils.llm_logger import log_call, sha256_text


logger = logging.getLogger(__name__)


def _usage_dict(resp: Any) -> Dict[str, Any]:
    usage = getattr(resp, "usage", None)
    if not usage:
        return {}
    return {
        "prompt_tokens": getattr(usage, "prompt_tokens", None),
        "completion_tokens": getattr(usage, "completion_tokens", None),
        "total_tokens": getattr(usage, "total_tokens", None),
    }


def _unavailable_message(exc: openai.OpenAIError) -> str:
    if isinstance(exc, openai.APITimeoutError):
        return "Extraction service timed out"
    if isinstance(exc, openai.APIConnectionError):
        return "Extraction service unreachable"
    if isinstance(exc, openai.RateLimitError):
        return "Extraction service is busy. Please try again in a moment."
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code == 402:
            return "Extraction service credits exhausted. Please try again later."
        return f"Extraction service error (HTTP {exc.status_code})"
    return f"Extraction service error: {exc}"


class LLMClient:
    """Thin wrapper to centralize per-use-case routing, timeouts and call tracing."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OpenAI] = None) -> None:
        self.settings = settings or get_settings()
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.settings.ai_enabled and self.settings.openai_api_key)

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=self.settings.llm_max_retries,
            )
        return self._client

    def complete_with_document(
        self,
        *,
        use_case: str,
        system_prompt: str,
        user_prompt: str,
        document_b64: str,
        mime_type: str,
        filename: str,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_name: Optional[str] = None,
    ) -> LLMResponse:
        route = ROUTES.get(use_case, {})
        provider = (route.get("provider") or self.settings.ai_provider or "openai").lower()
        model = route.get("model") or self.settings.openai_model or "gpt-4o-mini"
        op = route.get("operation", use_case)

        if provider != "openai":
            raise ExtractionUnavailable(f"Provider not implemented: {provider}")
        if not self.is_configured:
            raise ExtractionUnavailable("Extraction service not configured")

        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_prompt},
                        {
                            "type": "file",
                            "file": {
                                "filename": filename,
                                "file_data": f"data:{mime_type};base64,{document_b64}",
                            },
                        },
                    ],
                },
            ],
        }
        if route.get("temperature") is not None:
            kwargs["temperature"] = route["temperature"]
        if route.get("max_tokens"):
            kwargs["max_tokens"] = route["max_tokens"]
        if tools:
            kwargs["tools"] = tools
            if tool_name:
                kwargs["tool_choice"] = {"type": "function", "function": {"name": tool_name}}

        def _log(status: str, duration_ms: int, error: Optional[str] = None, usage: Optional[Dict[str, Any]] = None) -> None:
            log_call(
                caller=f"llm_client.complete_with_document:{use_case}",
                provider=provider,
                model=model,
                operation=op,
                prompt_name=use_case,
                prompt_hash=sha256_text(system_prompt),
                duration_ms=duration_ms,
                status=status,
                error=error,
                usage=usage,
                extras={"filename": filename, "mime_type": mime_type},
            )

        t0 = time.time()
        try:
            resp = self._get_client().chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            dt = int((time.time() - t0) * 1000)
            message = _unavailable_message(exc)
            _log("error", dt, error=str(exc))
            logger.warning(
                "Extraction request failed",
                extra={"step": op, "status": "error", "document": filename, "duration_ms": dt, "error": message},
            )
            raise ExtractionUnavailable(message) from exc
        dt = int((time.time() - t0) * 1000)
        usage = _usage_dict(resp)
        _log("ok", dt, usage=usage)

        tool_arguments: Optional[str] = None
        content: Optional[str] = None
        choices = getattr(resp, "choices", None) or []
        if choices:
            message = choices[0].message
            content = getattr(message, "content", None)
            for call in getattr(message, "tool_calls", None) or []:
                function = getattr(call, "function", None)
                if function is not None and getattr(function, "arguments", None):
                    tool_arguments = function.arguments
                    break
        logger.info(
            "Extraction response received",
            extra={"step": op, "status": "ok", "document": filename, "duration_ms": dt},
        )
        return LLMResponse(tool_arguments=tool_arguments, content=content, usage=usage)
