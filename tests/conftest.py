"""Shared fixtures: an in-memory stand-in for a Motor database.

Only what the repository calls is implemented: equality filters (plus ``$in``),
sort/skip/limit (non-numeric sort keys such as ``$meta`` keep store order), ``$set``/``$inc`` updates, unique indexes, and ``$match``,
``$sort``, ``$limit`` and ``$project`` aggregation stages.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from crud_repository.codecs import ModelCodec
from crud_repository.repository import CollectionRepository


def _matches(document: dict[str, Any], filter: dict[str, Any]) -> bool:
    for key, expected in filter.items():
        actual = document.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual not in expected["$in"]:
                return False
        elif actual != expected:
            return False
    return True


def _sorted(documents: list[dict[str, Any]], sort: list[tuple[str, Any]]) -> list[dict[str, Any]]:
    for key, direction in reversed(sort):
        if not isinstance(direction, int):
            continue
        documents = sorted(documents, key=lambda d: d.get(key), reverse=direction < 0)
    return documents


class FakeCursor:
    """Async iterator over a snapshot, optionally failing at a given position."""

    def __init__(self, documents: list[dict[str, Any]], error_at: tuple[int, Exception] | None = None) -> None:
        self._documents = documents
        self._error_at = error_at
        self._position = 0

    def __aiter__(self) -> FakeCursor:
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._error_at is not None and self._position == self._error_at[0]:
            raise self._error_at[1]
        if self._position >= len(self._documents):
            raise StopAsyncIteration
        document = self._documents[self._position]
        self._position += 1
        return copy.deepcopy(document)


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.documents: list[dict[str, Any]] = []
        self.unique_fields: set[str] = set()
        self.cursor_error: tuple[int, Exception] | None = None
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def create_unique_index(self, field: str) -> None:
        self.unique_fields.add(field)

    def _check_unique(self, candidate: dict[str, Any], ignore: dict[str, Any] | None = None) -> None:
        for field in {"_id", *self.unique_fields}:
            if field not in candidate:
                continue
            for existing in self.documents:
                if existing is ignore:
                    continue
                if existing.get(field) == candidate[field]:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: test.{self.name} index: {field}_1",
                        code=11000,
                    )

    def _first(self, filter: dict[str, Any], sort: list[tuple[str, int]] | None = None) -> dict[str, Any] | None:
        matching = [d for d in self.documents if _matches(d, filter)]
        if sort:
            matching = _sorted(matching, sort)
        return matching[0] if matching else None

    def find(
        self,
        filter: dict[str, Any],
        *,
        sort: list[tuple[str, int]] | None = None,
        skip: int | None = None,
        limit: int | None = None,
        **kwargs: Any,
    ) -> FakeCursor:
        self.calls.append(("find", {"filter": filter, "sort": sort, "skip": skip, "limit": limit, **kwargs}))
        matching = [d for d in self.documents if _matches(d, filter)]
        if sort:
            matching = _sorted(matching, sort)
        if skip:
            matching = matching[skip:]
        if limit:
            matching = matching[:limit]
        return FakeCursor(matching, self.cursor_error)

    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        self.calls.append(("find_one", {"filter": filter}))
        found = self._first(filter)
        return copy.deepcopy(found) if found is not None else None

    async def count_documents(self, filter: dict[str, Any]) -> int:
        return sum(1 for d in self.documents if _matches(d, filter))

    async def insert_one(self, document: dict[str, Any]) -> InsertOneResult:
        document.setdefault("_id", ObjectId())
        self._check_unique(document)
        self.documents.append(copy.deepcopy(document))
        return InsertOneResult(document["_id"], True)

    def _apply_update(self, target: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
        updated = copy.deepcopy(target)
        for field, value in update.get("$set", {}).items():
            updated[field] = value
        for field, value in update.get("$inc", {}).items():
            updated[field] = updated.get(field, 0) + value
        return updated

    def _store(self, old: dict[str, Any], new: dict[str, Any]) -> None:
        self._check_unique(new, ignore=old)
        self.documents[self.documents.index(old)] = new

    async def update_one(self, filter: dict[str, Any], update: dict[str, Any], **kwargs: Any) -> UpdateResult:
        self.calls.append(("update_one", {"filter": filter, "update": update, **kwargs}))
        target = self._first(filter)
        if target is None:
            if kwargs.get("upsert"):
                inserted = self._apply_update(dict(filter), update)
                inserted.setdefault("_id", ObjectId())
                self._check_unique(inserted)
                self.documents.append(inserted)
                return UpdateResult({"n": 1, "nModified": 0, "upserted": inserted["_id"]}, True)
            return UpdateResult({"n": 0, "nModified": 0}, True)
        updated = self._apply_update(target, update)
        self._store(target, updated)
        return UpdateResult({"n": 1, "nModified": int(updated != target)}, True)

    async def replace_one(self, filter: dict[str, Any], replacement: dict[str, Any], **kwargs: Any) -> UpdateResult:
        target = self._first(filter)
        if target is None:
            return UpdateResult({"n": 0, "nModified": 0}, True)
        new = {"_id": target["_id"], **{k: v for k, v in replacement.items() if k != "_id"}}
        self._store(target, new)
        return UpdateResult({"n": 1, "nModified": int(new != target)}, True)

    async def find_one_and_update(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        sort: list[tuple[str, int]] | None = None,
        return_document: bool = ReturnDocument.BEFORE,
        **kwargs: Any,
    ) -> dict[str, Any] | None:
        target = self._first(filter, sort)
        if target is None:
            return None
        updated = self._apply_update(target, update)
        self._store(target, updated)
        return copy.deepcopy(updated if return_document else target)

    async def find_one_and_replace(
        self,
        filter: dict[str, Any],
        replacement: dict[str, Any],
        *,
        sort: list[tuple[str, int]] | None = None,
        return_document: bool = ReturnDocument.BEFORE,
        **kwargs: Any,
    ) -> dict[str, Any] | None:
        target = self._first(filter, sort)
        if target is None:
            return None
        new = {"_id": target["_id"], **{k: v for k, v in replacement.items() if k != "_id"}}
        self._store(target, new)
        return copy.deepcopy(new if return_document else target)

    async def delete_one(self, filter: dict[str, Any], **kwargs: Any) -> DeleteResult:
        target = self._first(filter)
        if target is None:
            return DeleteResult({"n": 0}, True)
        self.documents.remove(target)
        return DeleteResult({"n": 1}, True)

    def aggregate(self, pipeline: list[dict[str, Any]], **kwargs: Any) -> FakeCursor:
        self.calls.append(("aggregate", {"pipeline": pipeline, **kwargs}))
        documents = list(self.documents)
        for stage in pipeline:
            if "$match" in stage:
                documents = [d for d in documents if _matches(d, stage["$match"])]
            elif "$sort" in stage:
                documents = _sorted(documents, list(stage["$sort"].items()))
            elif "$limit" in stage:
                documents = documents[: stage["$limit"]]
            elif "$project" in stage:
                keep = {k for k, v in stage["$project"].items() if v}
                documents = [{k: v for k, v in d.items() if k in keep or k == "_id"} for d in documents]
            else:
                raise NotImplementedError(f"Unsupported stage: {stage}")
        return FakeCursor(documents, self.cursor_error)


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class User(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: ObjectId | None = Field(default=None, alias="_id")
    email: str
    name: str
    age: int = 0


class Tag(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    label: str


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def users(database: FakeDatabase) -> CollectionRepository[User]:
    database["users"].create_unique_index("email")
    return CollectionRepository(database, "users", ModelCodec(User))


@pytest.fixture
def tags(database: FakeDatabase) -> CollectionRepository[Tag]:
    return CollectionRepository(database, "tags", ModelCodec(Tag))
