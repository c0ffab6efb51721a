"""Errors raised by the mock database before a query or write reaches the store."""


class MockDbError(Exception):
    """Base class for mock database errors."""


class InvalidCollectionNameError(MockDbError, ValueError):
    """Raised when a collection name is not a non-empty string."""


class InvalidDocumentError(MockDbError, TypeError):
    """Raised when a document to insert is not a mapping."""


class InvalidUpdateError(MockDbError, TypeError):
    """Raised when an update, or one of its operator payloads, is not a mapping."""
