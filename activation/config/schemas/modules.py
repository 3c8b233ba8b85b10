"""Modules + registry schemas."""
from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModulesConfig(BaseModel):
    # Master switch: resolution yields nothing when disabled.
    enabled: bool = True
    exclude: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("exclude", mode="before")
    @classmethod
    def _tokenize(cls, v: Any) -> Any:  # noqa: D401
        # env overrides arrive as "a.b, c.d"
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        if isinstance(v, (list, tuple, set)):
            return [str(p).strip() for p in v if str(p).strip()]
        return v


class RegistryConfig(BaseModel):
    directory: str = "registry.d"
    metadata_index: str = "metadata-index.yaml"

    model_config = ConfigDict(extra="forbid")
