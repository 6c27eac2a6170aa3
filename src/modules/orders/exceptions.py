"""Order domain exceptions.

Raised by the aggregate, the service layer and the external service
adapters when business rules are violated or a collaborator fails.
The API layer maps each ``category`` to an HTTP status through the
shared exception handler.
"""

from __future__ import annotations

from shared.domain.exceptions import DomainError, ErrorCategory

# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class OrderNotFound(DomainError):
    """The requested order does not exist."""

    code = "ORDER_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class MemberNotFound(DomainError):
    """The member service has no member with the given id."""

    code = "MEMBER_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class ProductNotFound(DomainError):
    """The product service has no product with the given id."""

    code = "PRODUCT_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class PaymentNotFound(DomainError):
    """The payment service has no payment with the given id."""

    code = "PAYMENT_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------


class MemberValidationError(DomainError):
    """The member exists but is not active."""

    code = "MEMBER_VALIDATION_FAILED"


class ProductValidationError(DomainError):
    """The product exists but is not available for sale."""

    code = "PRODUCT_VALIDATION_FAILED"


class InsufficientStock(DomainError):
    """Requested quantity exceeds the available stock."""

    code = "INSUFFICIENT_STOCK"


class InvalidOrderStatus(DomainError):
    """The request violates the order state machine."""

    code = "INVALID_ORDER_STATUS"


# ---------------------------------------------------------------------------
# Payment / availability
# ---------------------------------------------------------------------------


class PaymentFailed(DomainError):
    """The payment service rejected the charge."""

    code = "PAYMENT_FAILED"
    category = ErrorCategory.PAYMENT


class ExternalServiceUnavailable(DomainError):
    """An external service could not be reached or answered with an error."""

    code = "EXTERNAL_SERVICE_UNAVAILABLE"
    category = ErrorCategory.UNAVAILABLE
