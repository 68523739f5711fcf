"""Pytest fixtures for testing"""

import asyncio
from decimal import Decimal
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from billpay_gateway.api.dependencies import get_ledger_client
from billpay_gateway.api.main import create_app
from billpay_gateway.application.payment_flow import PaymentFlowController
from billpay_gateway.application.sessions import SessionStore
from billpay_gateway.domain.exceptions import AccountNotFoundError
from billpay_gateway.domain.models import AccountBalance, BillPaymentRequest, BillPaymentResponse


class FakeLedger:
    """In-memory ledger gateway recording every call it receives"""

    def __init__(self, balances: Dict[str, Decimal]):
        self.balances = dict(balances)
        self.balance_error: Optional[Exception] = None
        self.payment_error: Optional[Exception] = None
        self.balance_calls: List[str] = []
        self.payment_calls: List[BillPaymentRequest] = []

    async def fetch_balance(self, account_id: str) -> AccountBalance:
        self.balance_calls.append(account_id)
        if self.balance_error is not None:
            raise self.balance_error
        if account_id not in self.balances:
            raise AccountNotFoundError()
        return AccountBalance(account_id=account_id, current_balance=self.balances[account_id])

    async def submit_payment(self, request: BillPaymentRequest) -> BillPaymentResponse:
        self.payment_calls.append(request)
        if self.payment_error is not None:
            raise self.payment_error
        amount = self.balances[request.account_id]
        self.balances[request.account_id] = Decimal("0.00")
        return BillPaymentResponse(
            transaction_id="TXN0001",
            message="Payment successful",
            account_id=request.account_id,
            payment_amount=amount,
            new_balance=Decimal("0.00"),
        )


class BlockingLedger(FakeLedger):
    """FakeLedger whose calls wait until `release` is set"""

    def __init__(self, balances: Dict[str, Decimal]):
        super().__init__(balances)
        self.release = asyncio.Event()

    async def fetch_balance(self, account_id: str) -> AccountBalance:
        await self.release.wait()
        return await super().fetch_balance(account_id)

    async def submit_payment(self, request: BillPaymentRequest) -> BillPaymentResponse:
        await self.release.wait()
        return await super().submit_payment(request)


SAMPLE_BALANCES = {
    "00123456789": Decimal("150.00"),
    "12345678901": Decimal("250.00"),
    "00000000001": Decimal("0.00"),
    "00000000003": Decimal("-12.50"),
}


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger(SAMPLE_BALANCES)


@pytest.fixture
def controller(ledger: FakeLedger) -> PaymentFlowController:
    return PaymentFlowController(ledger, session_id="session-1")


@pytest.fixture
def client(ledger: FakeLedger) -> TestClient:
    """Create FastAPI test client backed by the in-memory ledger"""
    app = create_app(SessionStore(max_sessions=10))
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    return TestClient(app)


@pytest.fixture
def blocking_ledger() -> BlockingLedger:
    return BlockingLedger(SAMPLE_BALANCES)
