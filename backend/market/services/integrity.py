# Overview: Integrity violations raised by the storage services.

"""
Integrity violations signal that stored state contradicts something the caller
already validated, typically a concurrent write landing between a settlement's
checks and its writes. They are not user errors:

- routes log them with current_app.logger.exception and answer 500
- the settlement engine rolls back and re-raises; nothing retries them
"""

from __future__ import annotations


class IntegrityViolation(Exception):
    """Base class for violated storage assumptions."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class UnknownAccount(IntegrityViolation):
    """Account id did not resolve."""


class UnknownBook(IntegrityViolation):
    """Book id did not resolve."""


class UnknownProduct(IntegrityViolation):
    """Product id did not resolve."""


class DecrementExceedsStock(IntegrityViolation):
    pass


class DecrementExceedsBalance(IntegrityViolation):
    pass


class NullEntity(IntegrityViolation, ValueError):
    """Attempt to persist None."""
