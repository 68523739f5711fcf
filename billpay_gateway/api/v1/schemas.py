"""Pydantic schemas for API request/response validation"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, StrictBool
from pydantic.alias_generators import to_camel

# Amounts stay Decimal internally but go out as JSON numbers, like the ledger sends them
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base schema exposing camelCase field names on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountBalanceSchema(CamelModel):
    """Response for GET /api/bill-payment/account/{accountId}/balance"""

    account_id: str
    current_balance: Money


class BillPaymentResponseSchema(CamelModel):
    """Response for POST /api/bill-payment/process"""

    transaction_id: str
    message: str
    account_id: str
    payment_amount: Money
    new_balance: Money


class AccountIdUpdate(CamelModel):
    """Request body for PUT /v1/sessions/{session_id}/account-id"""

    account_id: str = Field(..., description="Account id as typed by the user")


class BalanceRetrieval(CamelModel):
    """Optional request body for POST /v1/sessions/{session_id}/balance"""

    account_id: Optional[str] = None


class ConfirmationUpdate(CamelModel):
    """Request body for PUT /v1/sessions/{session_id}/confirmation"""

    confirm_payment: StrictBool


class SessionBalance(CamelModel):
    account_id: str
    formatted_account_id: str
    current_balance: Money
    formatted_balance: str


class SessionPayment(CamelModel):
    transaction_id: str
    message: str
    account_id: str
    formatted_account_id: str
    payment_amount: Money
    formatted_payment_amount: str
    new_balance: Money
    formatted_new_balance: str


class SessionStateResponse(CamelModel):
    """Snapshot of a payment session"""

    session_id: str
    status: str
    account_id: str
    balance: Optional[SessionBalance] = None
    confirmed: bool = False
    can_confirm: bool = False
    notice: Optional[str] = None
    error: Optional[str] = None
    payment: Optional[SessionPayment] = None
