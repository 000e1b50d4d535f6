"""Immutable per-call options, rendered to Motor keyword arguments.

Unset knobs are omitted from the rendered arguments so the store's own
defaults apply.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pymongo import ReturnDocument as _PyMongoReturnDocument

SortSpec = Mapping[str, Any] | list[tuple[str, Any]] | tuple[tuple[str, Any], ...]

# Index name, key list or key document; passed to the store unchanged.
IndexSpec = str | list[tuple[str, Any]] | dict[str, Any]


class ReturnDocument(str, Enum):
    """Which image a find-and-modify call returns."""

    BEFORE = "before"
    AFTER = "after"


class _StoreOptions(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    def to_kwargs(self) -> dict[str, Any]:
        """Render the set options as keyword arguments for the store call."""
        return self.model_dump(by_alias=True, exclude_none=True)


class _SortedOptions(_StoreOptions):
    sort: tuple[tuple[str, Any], ...] | None = None

    @field_validator("sort", mode="before")
    @classmethod
    def _normalize_sort(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return tuple(v.items())
        if isinstance(v, list):
            return tuple(tuple(item) for item in v)
        return v

    def to_kwargs(self) -> dict[str, Any]:
        kwargs = super().to_kwargs()
        if "sort" in kwargs:
            kwargs["sort"] = [tuple(key) for key in kwargs["sort"]]
        return kwargs


class FindOptions(_SortedOptions):
    """Options for ``find``: ordering, pagination and projection."""

    skip: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=0)
    projection: dict[str, Any] | list[str] | None = None
    batch_size: int | None = Field(default=None, gt=0)
    max_time_ms: int | None = Field(default=None, gt=0)
    hint: IndexSpec | None = None
    collation: dict[str, Any] | None = None


class AggregateOptions(_StoreOptions):
    """Options for ``aggregate``. Rendered with the server's camelCase names."""

    allow_disk_use: bool | None = Field(default=None, serialization_alias="allowDiskUse")
    batch_size: int | None = Field(default=None, gt=0, serialization_alias="batchSize")
    max_time_ms: int | None = Field(default=None, gt=0, serialization_alias="maxTimeMS")
    collation: dict[str, Any] | None = None
    comment: str | None = None
    let: dict[str, Any] | None = None


class UpdateOptions(_StoreOptions):
    """Options for ``update_one``."""

    upsert: bool | None = None
    array_filters: list[dict[str, Any]] | None = None
    bypass_document_validation: bool | None = None
    hint: IndexSpec | None = None
    collation: dict[str, Any] | None = None


class ReplaceOptions(_StoreOptions):
    """Options for ``replace_one``."""

    upsert: bool | None = None
    bypass_document_validation: bool | None = None
    hint: IndexSpec | None = None
    collation: dict[str, Any] | None = None


class DeleteOptions(_StoreOptions):
    """Options for ``delete_one``."""

    hint: IndexSpec | None = None
    collation: dict[str, Any] | None = None


class _FindAndModifyOptions(_SortedOptions):
    projection: dict[str, Any] | list[str] | None = None
    upsert: bool | None = None
    return_document: ReturnDocument | None = None
    hint: IndexSpec | None = None
    collation: dict[str, Any] | None = None

    def to_kwargs(self) -> dict[str, Any]:
        kwargs = super().to_kwargs()
        if "return_document" in kwargs:
            after = kwargs["return_document"] is ReturnDocument.AFTER
            kwargs["return_document"] = _PyMongoReturnDocument.AFTER if after else _PyMongoReturnDocument.BEFORE
        return kwargs


class FindOneAndUpdateOptions(_FindAndModifyOptions):
    """Options for ``find_one_and_update``."""

    array_filters: list[dict[str, Any]] | None = None


class FindOneAndReplaceOptions(_FindAndModifyOptions):
    """Options for ``find_one_and_replace``."""


def sort_options(sort: SortSpec | None) -> FindOptions | None:
    """Build find options from an optional sort specification."""
    if sort is None:
        return None
    return FindOptions(sort=sort)
