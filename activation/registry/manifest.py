"""Candidate manifest schema."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CandidateManifest(BaseModel):
    candidates: List[str]
    source: Optional[str] = None  # distribution / owner, informational

    model_config = ConfigDict(extra="forbid")

    @field_validator("candidates")
    @classmethod
    def _no_blank_ids(cls, v: List[str]) -> List[str]:  # noqa: D401
        for item in v:
            if not item.strip():
                raise ValueError("candidate id cannot be empty")
        return v
