"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BackendAPIError(DomainException):
    """Ticketing backend returned an error or is unavailable"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or invalid"""

    pass


class InvalidTransitionError(DomainException):
    """Requested status change is not allowed from the current status"""

    def __init__(self, status: str, event: str):
        super().__init__(f"Cannot apply '{event}' to a transaction in status '{status}'")
        self.status = status
        self.event = event


class PaymentProofValidationError(DomainException):
    """Uploaded payment proof is too large or of an unsupported type"""

    pass


class SessionClosedError(DomainException):
    """Auth session was used after logout"""

    pass


class UnappliedDiscountsError(DomainException):
    """Confirmation attempted while selected discounts have not been applied on the backend"""

    pass
