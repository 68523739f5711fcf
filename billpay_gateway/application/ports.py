"""Ledger gateway port used by the payment flow; infrastructure provides the adapter"""

from typing import Protocol

from billpay_gateway.domain.models import AccountBalance, BillPaymentRequest, BillPaymentResponse


class PaymentGateway(Protocol):
    """Remote ledger operations. Failures are raised as DomainException subclasses."""

    async def fetch_balance(self, account_id: str) -> AccountBalance: ...

    async def submit_payment(self, request: BillPaymentRequest) -> BillPaymentResponse: ...
