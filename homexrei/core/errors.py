"""
Domain error taxonomy.

Every error a service raises on purpose is a MarketplaceError; the API layer
renders it as ``{"error": message, **payload}`` with ``status_code``.
"""
from typing import Any


class MarketplaceError(Exception):
    status_code = 500

    def __init__(self, message: str, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.payload}


class ValidationError(MarketplaceError):
    status_code = 400


class AuthenticationError(MarketplaceError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized", payload: dict[str, Any] | None = None) -> None:
        super().__init__(message, payload)


class AuthorizationError(MarketplaceError):
    status_code = 403


class SessionOwnershipError(AuthorizationError):
    def __init__(self, message: str = "Session does not belong to current user") -> None:
        super().__init__(message)


class NotFoundError(MarketplaceError):
    status_code = 404


class ConflictError(MarketplaceError):
    status_code = 409


class InsufficientCreditsError(MarketplaceError):
    status_code = 402

    def __init__(self, required, current) -> None:
        super().__init__(
            "Insufficient credits",
            {"required": float(required), "current": float(current)},
        )
        self.required = required
        self.current = current


class UpstreamServiceError(MarketplaceError):
    status_code = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, {"details": details} if details is not None else None)
        self.details = details


class PaymentProviderNotConfiguredError(MarketplaceError):
    status_code = 500

    def __init__(self) -> None:
        super().__init__("Stripe not configured")


class PaymentNotCompletedError(MarketplaceError):
    """Provider has not settled the payment yet. Expected and safe to poll."""

    status_code = 200

    def __init__(self, status: str | None) -> None:
        super().__init__("Payment not completed", {"status": status})
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "status": self.status, "message": self.message}
