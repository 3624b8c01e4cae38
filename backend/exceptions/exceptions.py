# Custom exceptions


class BillingError(Exception):
    """Base exception for bill and company operations"""

    pass


class InvalidArgumentError(BillingError):
    """Raised when a request argument fails validation"""

    pass


class NotFoundError(BillingError):
    """Raised when a bill or company does not exist"""

    pass


class ForbiddenError(BillingError):
    """Raised when the caller may not act on the requested company"""

    pass


class StoreFailureError(BillingError):
    """Raised when the document store is unreachable, errors or times out"""

    pass
