"""Base domain error shared by every bounded context.

Each subclass declares a stable ``code`` (rendered to API clients) and a
``category`` that the HTTP boundary maps to a status code.  Domain code
never references HTTP directly.
"""

from __future__ import annotations


class ErrorCategory:
    NOT_FOUND = "not_found"
    BUSINESS_RULE = "business_rule"
    PAYMENT = "payment"
    UNAVAILABLE = "unavailable"


class DomainError(Exception):
    """Root of the domain exception hierarchy."""

    code: str = "DOMAIN_ERROR"
    category: str = ErrorCategory.BUSINESS_RULE

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.code
