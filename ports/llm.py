from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass(frozen=True)
class LLMResponse:
    """What came back from one extraction call, before interpretation."""

    tool_arguments: Optional[str] = None
    content: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)


class LLMClientPort(Protocol):
    @property
    def is_configured(self) -> bool:
        ...

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
        ...
