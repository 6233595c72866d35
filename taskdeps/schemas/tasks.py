"""Task snapshot schema: the read-only view of a task the engine works on."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class TaskSnapshot(BaseModel):
    """A task as supplied by the task store. The engine never mutates it."""
    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    project_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> Any:
        # Tags arrive either as plain labels or as {"label": ...} objects
        if value is None:
            return []
        return [
            tag.get("label", "") if isinstance(tag, dict) else tag
            for tag in value
        ]
