"""
/api/bill-payment - validating pass-through to the ledger.

Requests are checked locally first so malformed ones never reach the ledger,
then forwarded with the caller's bearer token. Errors come back as
`{"error": message}` through the app's DomainException handler.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from billpay_gateway.api.dependencies import get_ledger_client, get_request_id
from billpay_gateway.api.v1.schemas import AccountBalanceSchema, BillPaymentResponseSchema
from billpay_gateway.domain.exceptions import (
    ConfirmationRequiredError,
    EmptyAccountIdError,
    InvalidConfirmationValueError,
)
from billpay_gateway.domain.models import BillPaymentRequest
from billpay_gateway.domain.validation import validate_account_id
from billpay_gateway.infrastructure.clients.ledger import LedgerClient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/bill-payment/account/{account_id}/balance", response_model=AccountBalanceSchema)
async def get_account_balance(
    account_id: str,
    request: Request,
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """Current balance of an account"""
    balance = await ledger_client.fetch_balance(validate_account_id(account_id))
    logger.info(
        "Balance retrieved",
        extra={"request_id": get_request_id(request), "account_id": balance.account_id},
    )
    return AccountBalanceSchema(account_id=balance.account_id, current_balance=balance.current_balance)


@router.post("/bill-payment/process", response_model=BillPaymentResponseSchema)
async def process_bill_payment(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Pay an account balance in full.

    Body: {"accountId": "...", "confirmPayment": true}
    """
    account_id = payload.get("accountId")
    if not isinstance(account_id, str):
        raise EmptyAccountIdError()
    account_id = validate_account_id(account_id)

    confirm_payment = payload.get("confirmPayment")
    if not isinstance(confirm_payment, bool):
        raise InvalidConfirmationValueError()
    if not confirm_payment:
        raise ConfirmationRequiredError()

    response = await ledger_client.submit_payment(
        BillPaymentRequest(account_id=account_id, confirm_payment=confirm_payment)
    )
    logger.info(
        "Bill payment processed",
        extra={
            "request_id": get_request_id(request),
            "account_id": response.account_id,
            "transaction_id": response.transaction_id,
        },
    )
    return BillPaymentResponseSchema(
        transaction_id=response.transaction_id,
        message=response.message,
        account_id=response.account_id,
        payment_amount=response.payment_amount,
        new_balance=response.new_balance,
    )
