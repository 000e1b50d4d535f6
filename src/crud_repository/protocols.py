"""Repository protocol — the capability set callers type against."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

from bson import ObjectId

from crud_repository.options import (
    AggregateOptions,
    DeleteOptions,
    FindOneAndReplaceOptions,
    FindOneAndUpdateOptions,
    FindOptions,
    ReplaceOptions,
    SortSpec,
    UpdateOptions,
)
from crud_repository.results import MutationOutcome

T = TypeVar("T")


@runtime_checkable
class DocumentRepository(Protocol[T]):
    """Typed CRUD and query interface over a single document collection.

    Every operation raises :class:`~crud_repository.exceptions.DataError`
    subclasses only; driver exceptions never escape.
    """

    @property
    def collection_name(self) -> str:
        """Name of the collection this repository is bound to."""
        ...

    async def find_one(self, filter: Mapping[str, Any]) -> T | None:
        """Return the first record matching the filter, or None."""
        ...

    async def find_by_id(self, id: ObjectId) -> T | None:
        """Return the record whose _id is the given ObjectId."""
        ...

    async def find_by_string_id(self, id: str) -> T | None:
        """Return the record whose _id is the given string."""
        ...

    async def find_one_by_field(self, name: str, value: Any) -> T | None:
        """Return the first record whose named field equals the value."""
        ...

    async def find_by_field(self, name: str, value: Any) -> list[T]:
        """Return every record whose named field equals the value."""
        ...

    async def find_all(self) -> list[T]:
        """Return every record in the collection."""
        ...

    async def find(self, filter: Mapping[str, Any] | None = None, options: FindOptions | None = None) -> list[T]:
        """Return every record matching the filter, fully materialized."""
        ...

    async def find_with_sort(self, filter: Mapping[str, Any] | None, sort: SortSpec) -> list[T]:
        """Return every record matching the filter in sort order."""
        ...

    async def count_documents(self, filter: Mapping[str, Any] | None = None) -> int:
        """Count records matching the filter."""
        ...

    async def aggregate(
        self, pipeline: Iterable[Mapping[str, Any]], options: AggregateOptions | None = None
    ) -> list[T]:
        """Run an aggregation pipeline and decode each output document."""
        ...

    async def add(self, record: T) -> MutationOutcome:
        """Insert a record and report the assigned identifier."""
        ...

    async def update_one(
        self, filter: Mapping[str, Any], update: Any, options: UpdateOptions | None = None
    ) -> MutationOutcome:
        """Apply a partial update to the first match."""
        ...

    async def replace_one(
        self, filter: Mapping[str, Any], record: T, options: ReplaceOptions | None = None
    ) -> MutationOutcome:
        """Replace the first match with a record."""
        ...

    async def find_one_and_update(
        self, filter: Mapping[str, Any], update: Any, options: FindOneAndUpdateOptions | None = None
    ) -> T | None:
        """Atomically update the first match and return a record image."""
        ...

    async def find_one_and_replace(
        self, filter: Mapping[str, Any], record: T, options: FindOneAndReplaceOptions | None = None
    ) -> T | None:
        """Atomically replace the first match and return a record image."""
        ...

    async def delete_one(self, filter: Mapping[str, Any], options: DeleteOptions | None = None) -> MutationOutcome:
        """Delete the first record matching the filter."""
        ...
