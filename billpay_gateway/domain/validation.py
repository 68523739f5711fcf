"""Account id validation and payment eligibility rules"""

from decimal import Decimal
from typing import Optional, Union

from billpay_gateway.domain.exceptions import AccountIdTooLongError, EmptyAccountIdError
from billpay_gateway.domain.models import ACCOUNT_ID_MAX_LENGTH


def validate_account_id(account_id: Optional[str]) -> str:
    """
    Check an account id before it is sent to the ledger.

    Only emptiness and length are enforced here; the ledger owns the
    digits-only rule.

    Returns:
        The id with surrounding whitespace removed

    Raises:
        EmptyAccountIdError: Missing or blank id
        AccountIdTooLongError: More than 11 characters
    """
    cleaned = (account_id or "").strip()
    if not cleaned:
        raise EmptyAccountIdError()
    if len(cleaned) > ACCOUNT_ID_MAX_LENGTH:
        raise AccountIdTooLongError()
    return cleaned


def can_process_payment(balance: Union[Decimal, int, float]) -> bool:
    """A balance is payable only when strictly positive"""
    return balance > 0
