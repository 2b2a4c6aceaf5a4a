# ============================================================================
# CLAUDE CONTEXT - VIDEO RECORD MODEL
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core model - Persisted description record
# PURPOSE: One cached description per Drive file id
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: TokenUsage, JobRecord
# DEPENDENCIES: pydantic
# ============================================================================
"""
Video Record Model

A JobRecord is the cached output of a completed pipeline run, keyed by the
job id (the Drive file id). The executor's cache check reads it; the
persist stage writes it; the records API exposes CRUD over it.

Maps to: vidscribe.video_records
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenUsage(BaseModel):
    """Usage metadata reported by the inference service."""

    prompt_tokens: int = Field(default=0, ge=0)
    candidates_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @classmethod
    def from_metadata(cls, metadata: Any) -> "TokenUsage":
        """
        Build from a Gemini usage_metadata object (or a plain dict).

        Missing counters default to zero.
        """
        if metadata is None:
            return cls()

        def _read(name: str) -> int:
            if isinstance(metadata, dict):
                value = metadata.get(name)
            else:
                value = getattr(metadata, name, None)
            return int(value or 0)

        return cls(
            prompt_tokens=_read("prompt_token_count"),
            candidates_tokens=_read("candidates_token_count"),
            total_tokens=_read("total_token_count"),
        )


class JobRecord(BaseModel):
    """
    Persisted description for one job id.

    description is always a dict: either the parsed model output or the
    {"error": "unparseable_output", "raw_text": ...} placeholder.
    """

    __sql_table__: ClassVar[str] = "video_records"
    __sql_schema__: ClassVar[str] = "vidscribe"
    __sql_primary_key__: ClassVar[List[str]] = ["drive_id"]

    drive_id: str = Field(..., max_length=128)
    description: Dict[str, Any] = Field(default_factory=dict)
    token_usage: Optional[TokenUsage] = Field(default=None)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "JobRecord":
        """Build from a dict_row result."""
        return cls(
            drive_id=row["drive_id"],
            description=row.get("description") or {},
            token_usage=row.get("token_usage"),
            created_at=row.get("created_at") or _utc_now(),
            updated_at=row.get("updated_at") or _utc_now(),
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["TokenUsage", "JobRecord"]
