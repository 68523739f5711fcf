"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from decimal import Decimal

ACCOUNT_ID_MAX_LENGTH = 11
TRANSACTION_ID_MAX_LENGTH = 16
DECIMAL_PLACES = 2


@dataclass(frozen=True)
class AccountBalance:
    """Balance snapshot fetched from the ledger"""

    account_id: str
    current_balance: Decimal


@dataclass(frozen=True)
class BillPaymentRequest:
    """Request to pay an account balance in full"""

    account_id: str
    confirm_payment: bool


@dataclass(frozen=True)
class BillPaymentResponse:
    """Transaction committed by the ledger"""

    transaction_id: str
    message: str
    account_id: str
    payment_amount: Decimal
    new_balance: Decimal
