from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, computed_field


DiffKind = Literal["text", "list", "section"]


def normalize_text(value: Any) -> str:
    return str(value or "").strip().lower()


def _sorted_copy(values: Any) -> list:
    return sorted(str(v) for v in (values or []))


def _entry_keys(entries: Any) -> list[str]:
    keys = []
    for entry in entries or []:
        if isinstance(entry, BaseModel):
            entry = entry.model_dump(exclude_none=True)
        if isinstance(entry, dict):
            entry = {k: normalize_text(v) if isinstance(v, str) else v for k, v in entry.items() if v is not None}
        keys.append(json.dumps(entry, sort_keys=True, default=str))
    return sorted(keys)


class FieldDiff(BaseModel):
    """One field's current vs extracted value; ``changed`` is derived on read."""

    field: str
    kind: DiffKind
    current_value: Any = None
    extracted_value: Any = None

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def changed(self) -> bool:
        if self.kind == "text":
            extracted = normalize_text(self.extracted_value)
            return extracted != "" and extracted != normalize_text(self.current_value)
        if not self.extracted_value:
            return False
        if self.kind == "list":
            if not self.current_value:
                return True
            return _sorted_copy(self.current_value) != _sorted_copy(self.extracted_value)
        return _entry_keys(self.current_value) != _entry_keys(self.extracted_value)

    @property
    def extracted_count(self) -> int:
        if self.kind == "text":
            return 0
        return len(self.extracted_value or [])

    @property
    def current_count(self) -> int:
        if self.kind == "text":
            return 0
        return len(self.current_value or [])

    def describe(self) -> str:
        if self.kind == "section":
            return f"{self.extracted_count} entries extracted"
        if self.kind == "list":
            return f"{self.extracted_count} items extracted"
        return str(self.extracted_value or "")
