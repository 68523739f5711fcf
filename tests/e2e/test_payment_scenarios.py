"""
E2E payment scenarios through the real LedgerClient and the stub ledger server.

The stub runs in-process over httpx.ASGITransport, so no server has to be
started. Scenarios:
- 00123456789: balance $150.00, paid in full
- 99999999999: unknown account
- 00000000001: zero balance, nothing to pay
- ledger outage: 500 on payment
"""

from decimal import Decimal

import httpx
import pytest

from billpay_gateway.application.payment_flow import BalanceLoaded, Failed, PaymentFlowController, Succeeded
from billpay_gateway.domain.exceptions import (
    AccountNotFoundError,
    ConfirmationRequiredError,
    GatewayFailureError,
    NothingToPayError,
)
from billpay_gateway.domain.models import BillPaymentRequest
from billpay_gateway.infrastructure.clients.ledger import LedgerClient
from mock_services.ledger_server.main import create_app as create_ledger_app

BASE_URL = "http://ledger.test/api"


@pytest.fixture
def ledger_app():
    return create_ledger_app()


@pytest.fixture
def ledger_client(ledger_app) -> LedgerClient:
    return LedgerClient(base_url=BASE_URL, access_token="e2e-token", transport=httpx.ASGITransport(app=ledger_app))


@pytest.fixture
def flow(ledger_client) -> PaymentFlowController:
    return PaymentFlowController(ledger_client, session_id="e2e")


@pytest.mark.integration
async def test_pay_balance_in_full(flow: PaymentFlowController, ledger_app):
    state = await flow.retrieve_balance("00123456789")
    assert isinstance(state, BalanceLoaded)
    assert state.balance.current_balance == Decimal("150.00")
    assert state.can_confirm is True

    flow.set_confirmation(True)
    state = await flow.submit_payment()

    assert isinstance(state, Succeeded)
    assert state.response.transaction_id == "0000000000000001"
    assert len(state.response.transaction_id) <= 16
    assert state.response.payment_amount == Decimal("150.00")
    assert state.response.new_balance == Decimal("0.00")
    assert flow.balance is None
    assert ledger_app.state.balances["00123456789"] == Decimal("0.00")

    # The stale balance is gone; a fresh lookup shows nothing left to pay
    flow.reset()
    state = await flow.retrieve_balance("00123456789")
    assert state.can_confirm is False
    assert state.notice == "You have nothing to pay..."


@pytest.mark.integration
async def test_unknown_account(flow: PaymentFlowController):
    state = await flow.retrieve_balance("99999999999")

    assert isinstance(state, Failed)
    assert isinstance(state.error, AccountNotFoundError)
    assert flow.balance is None


@pytest.mark.integration
async def test_nothing_to_pay_reported_by_ledger(ledger_client: LedgerClient):
    """Ledger's 400 text is mapped to NothingToPayError"""
    with pytest.raises(NothingToPayError):
        await ledger_client.submit_payment(BillPaymentRequest(account_id="00000000001", confirm_payment=True))


@pytest.mark.integration
async def test_balance_drained_between_lookup_and_payment(flow: PaymentFlowController, ledger_app):
    """Ledger is authoritative: a payment made elsewhere turns into nothing to pay"""
    await flow.retrieve_balance("12345678901")
    flow.set_confirmation(True)
    ledger_app.state.balances["12345678901"] = Decimal("0.00")

    state = await flow.submit_payment()

    assert isinstance(state, Failed)
    assert isinstance(state.error, NothingToPayError)
    assert state.balance.current_balance == Decimal("250.00")

    retry = await flow.submit_payment()
    assert isinstance(retry.error, ConfirmationRequiredError)


@pytest.mark.integration
async def test_ledger_outage_on_payment(flow: PaymentFlowController, ledger_app):
    await flow.retrieve_balance("00000000002")
    flow.set_confirmation(True)

    ledger_app.state.fail_payments = True

    state = await flow.submit_payment()

    assert isinstance(state, Failed)
    assert isinstance(state.error, GatewayFailureError)
    assert state.error.message == "Unable to Add Bill pay Transaction..."
    assert state.balance.current_balance == Decimal("1234.56")


@pytest.mark.integration
async def test_stub_ledger_health(ledger_app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=ledger_app), base_url="http://ledger.test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
