"""/v1/sessions - step-by-step bill payment sessions"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status

from billpay_gateway.api.dependencies import (
    get_access_token,
    get_ledger_client,
    get_session_controller,
    get_session_store,
)
from billpay_gateway.api.v1.schemas import (
    AccountIdUpdate,
    BalanceRetrieval,
    ConfirmationUpdate,
    SessionBalance,
    SessionPayment,
    SessionStateResponse,
)
from billpay_gateway.application.payment_flow import BalanceLoaded, Failed, PaymentFlowController, Succeeded
from billpay_gateway.application.sessions import SessionStore
from billpay_gateway.infrastructure.clients.ledger import LedgerClient
from billpay_gateway.utils.formatting import format_account_id, format_currency

router = APIRouter()


def to_session_response(controller: PaymentFlowController) -> SessionStateResponse:
    """Flatten the controller state into the wire snapshot"""
    state = controller.state
    response = SessionStateResponse(
        session_id=controller.session_id,
        status=state.status,
        account_id=controller.account_id,
    )

    balance = controller.balance
    if balance is not None:
        response.balance = SessionBalance(
            account_id=balance.account_id,
            formatted_account_id=format_account_id(balance.account_id),
            current_balance=balance.current_balance,
            formatted_balance=format_currency(balance.current_balance),
        )

    if isinstance(state, BalanceLoaded):
        response.confirmed = state.confirmed
        response.can_confirm = state.can_confirm
        response.notice = state.notice
    elif isinstance(state, Failed):
        response.error = state.error.message
    elif isinstance(state, Succeeded):
        receipt = state.response
        response.payment = SessionPayment(
            transaction_id=receipt.transaction_id,
            message=receipt.message,
            account_id=receipt.account_id,
            formatted_account_id=format_account_id(receipt.account_id),
            payment_amount=receipt.payment_amount,
            formatted_payment_amount=format_currency(receipt.payment_amount),
            new_balance=receipt.new_balance,
            formatted_new_balance=format_currency(receipt.new_balance),
        )

    return response


@router.post("/sessions", response_model=SessionStateResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    store: SessionStore = Depends(get_session_store),
    ledger_client: LedgerClient = Depends(get_ledger_client),
    access_token: Optional[str] = Depends(get_access_token),
):
    """Start a payment session bound to the caller's credentials"""
    return to_session_response(store.create(ledger_client, owner_token=access_token))


@router.get("/sessions/{session_id}", response_model=SessionStateResponse)
def get_session(controller: PaymentFlowController = Depends(get_session_controller)):
    return to_session_response(controller)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    access_token: Optional[str] = Depends(get_access_token),
):
    store.delete(session_id, access_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/sessions/{session_id}/account-id", response_model=SessionStateResponse)
def update_account_id(
    body: AccountIdUpdate,
    controller: PaymentFlowController = Depends(get_session_controller),
):
    """Change the account id; clears balance, confirmation and any prior result"""
    controller.edit_account_id(body.account_id)
    return to_session_response(controller)


@router.post("/sessions/{session_id}/balance", response_model=SessionStateResponse)
async def retrieve_balance(
    body: Optional[BalanceRetrieval] = Body(default=None),
    controller: PaymentFlowController = Depends(get_session_controller),
):
    await controller.retrieve_balance(body.account_id if body else None)
    return to_session_response(controller)


@router.put("/sessions/{session_id}/confirmation", response_model=SessionStateResponse)
def update_confirmation(
    body: ConfirmationUpdate,
    controller: PaymentFlowController = Depends(get_session_controller),
):
    controller.set_confirmation(body.confirm_payment)
    return to_session_response(controller)


@router.post("/sessions/{session_id}/payment", response_model=SessionStateResponse)
async def submit_payment(controller: PaymentFlowController = Depends(get_session_controller)):
    """Pay the confirmed balance in full"""
    await controller.submit_payment()
    return to_session_response(controller)


@router.post("/sessions/{session_id}/dismiss", response_model=SessionStateResponse)
def dismiss_error(controller: PaymentFlowController = Depends(get_session_controller)):
    controller.dismiss_error()
    return to_session_response(controller)


@router.post("/sessions/{session_id}/reset", response_model=SessionStateResponse)
def reset_session(controller: PaymentFlowController = Depends(get_session_controller)):
    controller.reset()
    return to_session_response(controller)
