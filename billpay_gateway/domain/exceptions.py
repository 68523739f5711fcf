"""Domain-specific exceptions"""

from typing import Optional

BALANCE_FAILURE_MESSAGE = "Failed to fetch account balance"
PAYMENT_FAILURE_MESSAGE = "Failed to process bill payment"


class DomainException(Exception):
    """Base exception for domain layer, carrying a user-facing message"""

    default_message = "Unexpected error"
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainException):
    """Input rejected locally, before any call to the ledger"""

    default_message = "Invalid input"
    status_code = 400


class EmptyAccountIdError(ValidationError):
    default_message = "Acct ID can NOT be empty..."


class AccountIdTooLongError(ValidationError):
    default_message = "Account ID must be 11 characters or less"


class ConfirmationRequiredError(ValidationError):
    """Payment submitted without an explicit confirmation"""

    default_message = "Confirm to make a bill payment..."


class InvalidConfirmationValueError(ValidationError):
    default_message = "Invalid value. Valid values are (Y/N)..."


class AccountNotFoundError(DomainException):
    """Ledger has no account with the requested id"""

    default_message = "Account ID NOT found..."
    status_code = 404


class NothingToPayError(DomainException):
    """Balance is zero or negative, so there is no bill to pay"""

    default_message = "You have nothing to pay..."
    status_code = 400


class ValidationRejectedError(DomainException):
    """Ledger refused the payment request; message is the ledger's own text"""

    default_message = "Failed to process payment"
    status_code = 400


class GatewayFailureError(DomainException):
    """Ledger returned an error or is unavailable"""

    default_message = "Failed to reach the ledger service"
    status_code = 502

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class InvalidTransitionError(DomainException):
    """Payment session cannot perform the requested step from its current state"""

    default_message = "Operation not allowed in the current payment state"
    status_code = 409


class FlowBusyError(InvalidTransitionError):
    """A ledger call for this session is still in flight"""

    default_message = "A request for this payment session is already in progress"


class SessionNotFoundError(DomainException):
    default_message = "Payment session not found"
    status_code = 404


class SessionAccessDeniedError(DomainException):
    """Session was started under different credentials than the caller's"""

    default_message = "Payment session belongs to another caller"
    status_code = 403
