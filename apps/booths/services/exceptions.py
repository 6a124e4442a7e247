"""
Domain-specific exceptions for booths app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class BoothsServiceError(Exception):
    """Base exception for all booths service errors."""
    pass


class BoothNotFoundError(BoothsServiceError):
    """Raised when a booth does not exist."""
    pass


class InvalidPinError(BoothsServiceError):
    """Raised when no booth matches a PIN, or a PIN is malformed."""
    pass


class DuplicatePinError(BoothsServiceError):
    """Raised when a chosen PIN is already used by another booth."""
    pass


class NotMemberError(BoothsServiceError):
    """Raised when a user has no access to the booth."""
    pass


class LastManagerError(BoothsServiceError):
    """Raised when the only manager tries to leave or be removed."""
    pass


class InsufficientPermissionsError(BoothsServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass


class ProductNotFoundError(BoothsServiceError):
    """Raised when a product does not exist in the booth."""
    pass


class InvalidProductError(BoothsServiceError):
    """Raised when product data is invalid (e.g. non-positive price)."""
    pass


class BoothRequestNotFoundError(BoothsServiceError):
    """Raised when a pending booth request does not exist."""
    pass


class BoothRequestAlreadyReviewedError(BoothsServiceError):
    """Raised when approving or rejecting a request that is no longer pending."""
    pass
