"""Classify repository errors into response-level status classes."""

from __future__ import annotations

from enum import Enum

from pymongo.errors import WriteError

from crud_repository.exceptions import DataError, DocumentDecodeError, StoreError

DUPLICATE_KEY_CODE = 11000


class ErrorClass(str, Enum):
    """Status class a response layer should report for an error."""

    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return 409 if self is ErrorClass.CONFLICT else 500


def is_duplicate_key_error(exc: BaseException | None) -> bool:
    """True when *exc* is a single-document write error with the duplicate-key code.

    ``DuplicateKeyError`` is a ``WriteError`` subclass and matches. Bulk write
    failures and every read or network failure do not.
    """
    return isinstance(exc, WriteError) and exc.code == DUPLICATE_KEY_CODE


def classify(error: DataError) -> ErrorClass:
    """Return CONFLICT for a duplicate-key store failure and INTERNAL for everything else."""
    if isinstance(error, DocumentDecodeError):
        return ErrorClass.INTERNAL
    if isinstance(error, StoreError) and is_duplicate_key_error(error.cause):
        return ErrorClass.CONFLICT
    return ErrorClass.INTERNAL


def map_error(error: DataError) -> tuple[ErrorClass, str]:
    """Translate *error* into ``(status class, message)``. Pure; never retries."""
    return classify(error), str(error)
