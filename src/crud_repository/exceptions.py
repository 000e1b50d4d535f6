"""Error taxonomy for the repository layer.

Every driver exception raised inside a repository call is re-raised as one of
these so that callers only ever handle :class:`DataError` subclasses.
"""

from __future__ import annotations


class DataError(Exception):
    """Base exception for all repository errors.

    Attributes:
        collection_name: The collection the failing call targeted.
        operation: The repository operation that failed (e.g. ``"add"``, ``"find"``).
    """

    def __init__(self, message: str, *, collection_name: str = "", operation: str = "") -> None:
        self.collection_name = collection_name
        self.operation = operation
        super().__init__(message)


class StoreError(DataError):
    """Raised when a call into the document store fails.

    The driver exception is kept as :attr:`cause` and chained as ``__cause__``.
    """

    def __init__(self, *, collection_name: str, operation: str, cause: BaseException) -> None:
        self.cause = cause
        msg = f"[{collection_name}] {operation} failed: {cause}"
        super().__init__(msg, collection_name=collection_name, operation=operation)
        self.__cause__ = cause


class DocumentDecodeError(StoreError):
    """Raised when a stored document cannot be decoded into the record type."""


class UnexpectedError(DataError):
    """Raised for failures that did not originate in the store."""

    def __init__(self, message: str, *, collection_name: str = "", operation: str = "") -> None:
        self.message = message
        super().__init__(f"Unexpected error: {message}", collection_name=collection_name, operation=operation)
