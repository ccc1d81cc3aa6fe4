"""
Domain exceptions.

The amortization engine and the calendar never raise for bad input; they
return None. These exceptions are raised by entities and use cases, and
mapped to HTTP responses in the router.
"""


class AghsatError(Exception):
    """Base class for all domain errors."""


class InvalidAgreementTermsError(AghsatError):
    """Loan terms cannot produce an installment schedule."""


class AgreementNotFoundError(AghsatError):
    pass


class InstallmentNotFoundError(AghsatError):
    pass


class InstallmentAlreadyPaidError(AghsatError):
    pass


class InsufficientPaymentError(AghsatError):
    """Paid amount is less than the installment amount."""


class AgreementStateError(AghsatError):
    """Requested status change is not allowed from the current status."""


class SmsProviderError(AghsatError):
    """SMS provider is not configured or could not be reached."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class InvalidDateError(AghsatError):
    """A Jalali date string could not be parsed."""
