class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when an operation references a missing person, item, folder or record."""


class OverpaymentError(DomainError):
    """Raised when a fee payment would push the running total above the class fee."""

    def __init__(self, message: str, *, remaining: int = 0):
        super().__init__(message)
        self.remaining = remaining


class InsufficientStockError(DomainError):
    """Raised when a checkout asks for more than the stock held at a level."""

    def __init__(self, message: str, *, available: int = 0):
        super().__init__(message)
        self.available = available


class NotEmptyError(DomainError):
    """Raised when deleting a folder that still has children."""
