"""
Domain exceptions for ledger app.

Service errors are plain exceptions that views translate to responses;
the APIException subclasses are raised directly from views.
"""
from rest_framework.exceptions import APIException


class LedgerServiceError(Exception):
    """Base exception for ledger service errors."""
    pass


class EmptyCartError(LedgerServiceError):
    """Raised when a purchase has no items."""
    pass


class InvalidQuantityError(LedgerServiceError):
    """Raised when an item quantity is not a positive integer."""
    pass


class ProductUnavailableError(LedgerServiceError):
    """Raised when a product is missing, deleted, or belongs to another booth."""
    pass


class BoothUnavailableError(LedgerServiceError):
    """Raised when the booth does not exist or is inactive."""
    pass


class BuyerUnavailableError(LedgerServiceError):
    """Raised when the buyer account is inactive."""
    pass


class InsufficientBalanceError(LedgerServiceError):
    """Raised when a balance cannot cover a purchase or refund."""
    pass


class InvalidAmountError(LedgerServiceError):
    """Raised when an amount is zero, negative where not allowed, or over the limit."""
    pass


class InvalidVerificationPinError(LedgerServiceError):
    """Raised when the SAC PIN re-entered for an adjustment is wrong."""
    pass


class NotAuthorizedError(LedgerServiceError):
    """Raised when the acting user may not perform the operation."""
    pass


class IdempotencyConflictError(LedgerServiceError):
    """Raised when an idempotency key is reused for a different purchase."""
    pass


class TransactionNotFoundError(APIException):
    """Transaction not found."""
    status_code = 404
    default_detail = 'Transaction not found.'
    default_code = 'transaction_not_found'
