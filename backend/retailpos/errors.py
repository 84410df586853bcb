# Overview: Error taxonomy shared by services and routes.

from __future__ import annotations


class PosError(Exception):
    """Base class for expected, user-visible failures.

    `status_code` is the HTTP status the API answers with; `details` carries
    structured context (e.g. which products were short on stock).
    """

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PosError, ValueError):
    """400-level input problem."""


class ConflictError(PosError, ValueError):
    """409-level business rule conflict (e.g., duplicate name)."""

    status_code = 409


class NotFoundError(PosError, LookupError):
    status_code = 404


class InsufficientStockError(PosError):
    """Raised when a decrement or transfer would make stock negative."""

    status_code = 409


class InvalidLocationError(PosError):
    """Raised when a transfer names the same or an unknown location."""


class EmptyCartError(PosError):
    pass


class CheckoutInProgressError(PosError):
    """A checkout for this cart is already running."""

    status_code = 409


class StorageError(PosError):
    """Object storage rejected or failed a write."""

    status_code = 502


class NetworkError(PosError):
    """An upstream HTTP service is unreachable, timed out or rejected the call."""

    status_code = 503


class ConfigurationError(PosError):
    """Missing credentials or endpoint configuration."""

    status_code = 503
