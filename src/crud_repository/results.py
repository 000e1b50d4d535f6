"""Mutation outcomes returned by write operations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MutationOutcome(BaseModel):
    """Counts and identifiers affected by a single write call."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    acknowledged: bool = True
    matched_count: int = Field(default=0, ge=0)
    modified_count: int = Field(default=0, ge=0)
    inserted_count: int = Field(default=0, ge=0)
    deleted_count: int = Field(default=0, ge=0)
    inserted_id: Any | None = None
    upserted_id: Any | None = None

    @classmethod
    def from_insert_result(cls, result: Any) -> MutationOutcome:
        """Build from a ``pymongo.results.InsertOneResult``."""
        return cls(acknowledged=result.acknowledged, inserted_count=1, inserted_id=result.inserted_id)

    @classmethod
    def from_update_result(cls, result: Any) -> MutationOutcome:
        """Build from a ``pymongo.results.UpdateResult`` (update or replace)."""
        if not result.acknowledged:
            return cls(acknowledged=False)
        return cls(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            inserted_count=1 if result.upserted_id is not None else 0,
            upserted_id=result.upserted_id,
        )

    @classmethod
    def from_delete_result(cls, result: Any) -> MutationOutcome:
        """Build from a ``pymongo.results.DeleteResult``."""
        if not result.acknowledged:
            return cls(acknowledged=False)
        return cls(deleted_count=result.deleted_count)
