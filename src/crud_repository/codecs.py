"""Record codecs — the encode/decode pair a repository uses at the store boundary."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

ID_FIELD = "_id"


@runtime_checkable
class RecordCodec(Protocol[T]):
    """Converts records to store documents and back.

    ``decode`` may raise any exception for a document of the wrong shape; the
    repository reports it as a :class:`~crud_repository.exceptions.DocumentDecodeError`.
    """

    def encode(self, record: T) -> Mapping[str, Any]: ...

    def decode(self, document: Mapping[str, Any]) -> T: ...


class DocumentCodec:
    """Pass-through codec for plain ``dict`` documents."""

    def encode(self, record: Mapping[str, Any]) -> Mapping[str, Any]:
        return dict(record)

    def decode(self, document: Mapping[str, Any]) -> dict[str, Any]:
        return dict(document)


class ModelCodec(Generic[M]):
    """Codec for pydantic models.

    The identifier is expected on a field aliased to ``_id``. When that field is
    ``None`` it is left out of the encoded document so the store assigns one.
    """

    def __init__(self, model_type: type[M]) -> None:
        self.model_type = model_type

    def encode(self, record: M) -> Mapping[str, Any]:
        document = record.model_dump(by_alias=True)
        if document.get(ID_FIELD, ...) is None:
            del document[ID_FIELD]
        return document

    def decode(self, document: Mapping[str, Any]) -> M:
        return self.model_type.model_validate(dict(document))
