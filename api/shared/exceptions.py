"""Shared exceptions for the conversation store."""
from typing import Any, Dict, Optional


class PersistenceError(Exception):
    """Base exception for every failure surfaced by the persistence layer."""

    def __init__(
        self,
        message: str,
        error_code: str = "PERSISTENCE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(PersistenceError):
    """Raised when a single-row lookup matched nothing."""

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class ConstraintViolationError(PersistenceError):
    """Raised when a write violates a uniqueness or foreign key constraint."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONSTRAINT_VIOLATION", details)


class ConnectivityError(PersistenceError):
    """Raised when the store is unreachable or a statement timed out."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONNECTIVITY_ERROR", details)


class TransactionAbortedError(PersistenceError):
    """Raised when a statement inside a transaction failed and everything was rolled back."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "TRANSACTION_ABORTED", details)
