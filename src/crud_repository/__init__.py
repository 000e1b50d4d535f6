"""CRUD Repository — typed async MongoDB repositories with a conflict-aware error taxonomy."""

from crud_repository.codecs import DocumentCodec, ModelCodec, RecordCodec
from crud_repository.connections import ConnectionManager, ConnectionProfile, InvalidConnectionURL
from crud_repository.exceptions import DataError, DocumentDecodeError, StoreError, UnexpectedError
from crud_repository.mapper import ErrorClass, classify, is_duplicate_key_error, map_error
from crud_repository.options import (
    AggregateOptions,
    DeleteOptions,
    FindOneAndReplaceOptions,
    FindOneAndUpdateOptions,
    FindOptions,
    ReplaceOptions,
    ReturnDocument,
    UpdateOptions,
    sort_options,
)
from crud_repository.protocols import DocumentRepository
from crud_repository.repository import CollectionRepository
from crud_repository.results import MutationOutcome

__all__ = [
    "AggregateOptions",
    "CollectionRepository",
    "ConnectionManager",
    "ConnectionProfile",
    "DataError",
    "DeleteOptions",
    "DocumentCodec",
    "DocumentDecodeError",
    "DocumentRepository",
    "ErrorClass",
    "FindOneAndReplaceOptions",
    "FindOneAndUpdateOptions",
    "FindOptions",
    "InvalidConnectionURL",
    "ModelCodec",
    "MutationOutcome",
    "RecordCodec",
    "ReplaceOptions",
    "ReturnDocument",
    "StoreError",
    "UnexpectedError",
    "UpdateOptions",
    "classify",
    "is_duplicate_key_error",
    "map_error",
    "sort_options",
]
