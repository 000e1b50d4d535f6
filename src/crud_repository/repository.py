"""Motor-backed CRUD repository, generic over the record type."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from bson import ObjectId

from crud_repository.codecs import ID_FIELD, DocumentCodec, RecordCodec
from crud_repository.exceptions import DataError, DocumentDecodeError, StoreError, UnexpectedError
from crud_repository.options import (
    AggregateOptions,
    DeleteOptions,
    FindOneAndReplaceOptions,
    FindOneAndUpdateOptions,
    FindOptions,
    ReplaceOptions,
    SortSpec,
    UpdateOptions,
    sort_options,
)
from crud_repository.results import MutationOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

Filter = Mapping[str, Any]


class CollectionRepository(Generic[T]):
    """CRUD and query operations over one MongoDB collection.

    The repository holds a Motor database handle and a collection name but owns
    neither: connection lifecycle belongs to whoever created the handle.
    Records cross the store boundary through ``codec``; the default
    :class:`~crud_repository.codecs.DocumentCodec` works with plain dicts.

    Multi-record reads drain the cursor inside the call and return a list. Any
    failure, whether from the store or from decoding, aborts the call and
    discards what was read so far.
    """

    def __init__(
        self,
        database: Any,
        collection_name: str,
        codec: RecordCodec[T] | None = None,
    ) -> None:
        self._database = database
        self._collection_name = collection_name
        self._codec: RecordCodec[Any] = codec if codec is not None else DocumentCodec()

    @property
    def collection_name(self) -> str:
        """Name of the bound collection."""
        return self._collection_name

    @property
    def database(self) -> Any:
        return self._database

    @property
    def codec(self) -> RecordCodec[T]:
        return self._codec

    def _get_collection(self, operation: str) -> Any:
        if self._database is None:
            raise UnexpectedError(
                "CollectionRepository requires a Motor database instance.",
                collection_name=self._collection_name,
                operation=operation,
            )
        return self._database[self._collection_name]

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        """Re-raise driver failures inside the block as :class:`StoreError`."""
        try:
            yield
        except DataError:
            raise
        except Exception as exc:
            logger.error("Mongo %s failed for %s: %s", operation, self._collection_name, type(exc).__name__)
            raise StoreError(collection_name=self._collection_name, operation=operation, cause=exc) from exc

    def _encode(self, record: T, operation: str) -> dict[str, Any]:
        try:
            document = self._codec.encode(record)
        except Exception as exc:
            logger.error("Encoding %s failed for %s: %s", operation, self._collection_name, type(exc).__name__)
            raise UnexpectedError(
                f"record of type {type(record).__name__} could not be encoded: {exc}",
                collection_name=self._collection_name,
                operation=operation,
            ) from exc
        if not isinstance(document, Mapping):
            raise UnexpectedError(
                f"record of type {type(record).__name__} did not encode to a document "
                f"(got {type(document).__name__})",
                collection_name=self._collection_name,
                operation=operation,
            )
        return dict(document)

    def _decode(self, document: Mapping[str, Any], operation: str) -> T:
        try:
            return self._codec.decode(document)
        except Exception as exc:
            logger.error("Decoding %s result failed for %s: %s", operation, self._collection_name, type(exc).__name__)
            raise DocumentDecodeError(collection_name=self._collection_name, operation=operation, cause=exc) from exc

    def _decode_optional(self, document: Mapping[str, Any] | None, operation: str) -> T | None:
        if document is None:
            return None
        return self._decode(document, operation)

    # -- Reads ----------------------------------------------------------------

    async def find_one(self, filter: Filter) -> T | None:
        """Return the first record matching *filter*, or ``None``."""
        logger.debug("find_one on %s", self._collection_name)
        coll = self._get_collection("find_one")
        with self._store_call("find_one"):
            document = await coll.find_one(dict(filter))
        return self._decode_optional(document, "find_one")

    async def find_by_id(self, id: ObjectId) -> T | None:
        """Return the record whose ``_id`` is the object identifier *id*.

        Raises:
            TypeError: If *id* is not an ``ObjectId``. Strings are not coerced;
                use :meth:`find_by_string_id` for string identifiers.
        """
        if not isinstance(id, ObjectId):
            raise TypeError(f"find_by_id expects an ObjectId, got {type(id).__name__}")
        return await self.find_one({ID_FIELD: id})

    async def find_by_string_id(self, id: str) -> T | None:
        """Return the record whose ``_id`` is the string *id*."""
        if not isinstance(id, str):
            raise TypeError(f"find_by_string_id expects a str, got {type(id).__name__}")
        return await self.find_one({ID_FIELD: id})

    async def find_one_by_field(self, name: str, value: Any) -> T | None:
        """Return the first record whose *name* field equals *value*."""
        return await self.find_one({name: value})

    async def find_by_field(self, name: str, value: Any) -> list[T]:
        """Return every record whose *name* field equals *value*."""
        return await self.find_simple({name: value})

    async def find_all(self) -> list[T]:
        """Return every record in the collection."""
        return await self.find(None, None)

    async def find_simple(self, filter: Filter) -> list[T]:
        """Return every record matching *filter* with store-default options."""
        return await self.find(filter, None)

    async def find_with_sort(self, filter: Filter | None, sort: SortSpec) -> list[T]:
        """Return all records matching *filter* in the order given by *sort*."""
        return await self.find(filter, sort_options(sort))

    async def find(self, filter: Filter | None = None, options: FindOptions | None = None) -> list[T]:
        """Return every record matching *filter*, fully materialized.

        Args:
            filter: Store query document. ``None`` matches everything.
            options: Sort, pagination and projection. ``None`` uses store defaults.
        """
        logger.debug("find on %s", self._collection_name)
        coll = self._get_collection("find")
        kwargs = options.to_kwargs() if options is not None else {}
        documents: list[Mapping[str, Any]] = []
        with self._store_call("find"):
            async for document in coll.find(dict(filter or {}), **kwargs):
                documents.append(document)
        return [self._decode(document, "find") for document in documents]

    async def count_documents(self, filter: Filter | None = None) -> int:
        """Count records matching *filter* without loading them."""
        logger.debug("count_documents on %s", self._collection_name)
        coll = self._get_collection("count_documents")
        with self._store_call("count_documents"):
            return await coll.count_documents(dict(filter or {}))

    async def aggregate(
        self,
        pipeline: Iterable[Mapping[str, Any]],
        options: AggregateOptions | None = None,
    ) -> list[T]:
        """Run an aggregation pipeline and decode every output document.

        A document that fails to decode aborts the whole call.
        """
        logger.debug("aggregate on %s", self._collection_name)
        coll = self._get_collection("aggregate")
        kwargs = options.to_kwargs() if options is not None else {}
        stages = [dict(stage) for stage in pipeline]
        documents: list[Mapping[str, Any]] = []
        with self._store_call("aggregate"):
            async for document in coll.aggregate(stages, **kwargs):
                documents.append(document)
        return [self._decode(document, "aggregate") for document in documents]

    # -- Writes ---------------------------------------------------------------

    async def add(self, record: T) -> MutationOutcome:
        """Insert *record*. The outcome carries the store-assigned ``_id``."""
        logger.debug("add on %s", self._collection_name)
        document = self._encode(record, "add")
        coll = self._get_collection("add")
        with self._store_call("add"):
            result = await coll.insert_one(document)
        return MutationOutcome.from_insert_result(result)

    async def update_one(
        self,
        filter: Filter,
        update: Mapping[str, Any] | list[Mapping[str, Any]],
        options: UpdateOptions | None = None,
    ) -> MutationOutcome:
        """Apply *update* (modifier document or pipeline) to the first match."""
        logger.debug("update_one on %s", self._collection_name)
        coll = self._get_collection("update_one")
        kwargs = options.to_kwargs() if options is not None else {}
        with self._store_call("update_one"):
            result = await coll.update_one(dict(filter), _update_document(update), **kwargs)
        return MutationOutcome.from_update_result(result)

    async def replace_one(
        self,
        filter: Filter,
        record: T,
        options: ReplaceOptions | None = None,
    ) -> MutationOutcome:
        """Replace the first match wholesale with *record*."""
        logger.debug("replace_one on %s", self._collection_name)
        document = self._encode(record, "replace_one")
        coll = self._get_collection("replace_one")
        kwargs = options.to_kwargs() if options is not None else {}
        with self._store_call("replace_one"):
            result = await coll.replace_one(dict(filter), document, **kwargs)
        return MutationOutcome.from_update_result(result)

    async def find_one_and_update(
        self,
        filter: Filter,
        update: Mapping[str, Any] | list[Mapping[str, Any]],
        options: FindOneAndUpdateOptions | None = None,
    ) -> T | None:
        """Atomically update the first match and return it.

        Whether the pre- or post-update image comes back is decided by
        ``options.return_document``; when unset the store default applies.
        """
        logger.debug("find_one_and_update on %s", self._collection_name)
        coll = self._get_collection("find_one_and_update")
        kwargs = options.to_kwargs() if options is not None else {}
        with self._store_call("find_one_and_update"):
            document = await coll.find_one_and_update(dict(filter), _update_document(update), **kwargs)
        return self._decode_optional(document, "find_one_and_update")

    async def find_one_and_replace(
        self,
        filter: Filter,
        record: T,
        options: FindOneAndReplaceOptions | None = None,
    ) -> T | None:
        """Atomically replace the first match with *record* and return a record image."""
        logger.debug("find_one_and_replace on %s", self._collection_name)
        document = self._encode(record, "find_one_and_replace")
        coll = self._get_collection("find_one_and_replace")
        kwargs = options.to_kwargs() if options is not None else {}
        with self._store_call("find_one_and_replace"):
            found = await coll.find_one_and_replace(dict(filter), document, **kwargs)
        return self._decode_optional(found, "find_one_and_replace")

    async def delete_one(self, filter: Filter, options: DeleteOptions | None = None) -> MutationOutcome:
        """Delete the first record matching *filter*."""
        logger.debug("delete_one on %s", self._collection_name)
        coll = self._get_collection("delete_one")
        kwargs = options.to_kwargs() if options is not None else {}
        with self._store_call("delete_one"):
            result = await coll.delete_one(dict(filter), **kwargs)
        return MutationOutcome.from_delete_result(result)


def _update_document(update: Mapping[str, Any] | list[Mapping[str, Any]]) -> dict[str, Any] | list[dict[str, Any]]:
    # A list is an aggregation-pipeline update.
    if isinstance(update, list):
        return [dict(stage) for stage in update]
    return dict(update)
