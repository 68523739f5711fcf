"""
Bill payment flow - state machine driving a single payment session.

States:
    Idle -> FetchingBalance -> BalanceLoaded -(confirm)-> BalanceLoaded[confirmed]
         -> Processing -> Succeeded | Failed

Failed keeps the balance when the failure happened after it was loaded, so
the user only has to re-confirm. Every edit of the account id and every
reset advances the session generation; a ledger call that resolves under an
older generation is discarded instead of applied.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Awaitable, ClassVar, Optional, TypeVar, Union

from billpay_gateway.application.ports import PaymentGateway
from billpay_gateway.domain.exceptions import (
    BALANCE_FAILURE_MESSAGE,
    PAYMENT_FAILURE_MESSAGE,
    AccountNotFoundError,
    ConfirmationRequiredError,
    DomainException,
    FlowBusyError,
    GatewayFailureError,
    InvalidTransitionError,
    NothingToPayError,
    ValidationError,
    ValidationRejectedError,
)
from billpay_gateway.domain.models import AccountBalance, BillPaymentRequest, BillPaymentResponse
from billpay_gateway.domain.validation import can_process_payment, validate_account_id
from billpay_gateway.infrastructure.observability.logging import log_payment
from billpay_gateway.infrastructure.observability.metrics import record_balance_lookup, record_payment

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    status: ClassVar[str] = "idle"


@dataclass(frozen=True)
class FetchingBalance:
    account_id: str
    status: ClassVar[str] = "fetching_balance"


@dataclass(frozen=True)
class BalanceLoaded:
    balance: AccountBalance
    confirmed: bool = False

    def __post_init__(self):
        if self.confirmed and not self.can_confirm:
            raise ValueError("A balance with nothing to pay cannot be confirmed")

    @property
    def status(self) -> str:
        return "confirmed" if self.confirmed else "balance_loaded"

    @property
    def can_confirm(self) -> bool:
        return can_process_payment(self.balance.current_balance)

    @property
    def notice(self) -> Optional[str]:
        """User-facing hint shown instead of the confirmation prompt"""
        return None if self.can_confirm else NothingToPayError.default_message


@dataclass(frozen=True)
class Processing:
    balance: AccountBalance
    status: ClassVar[str] = "processing"


@dataclass(frozen=True)
class Succeeded:
    response: BillPaymentResponse
    status: ClassVar[str] = "succeeded"


@dataclass(frozen=True)
class Failed:
    error: DomainException
    balance: Optional[AccountBalance] = None
    status: ClassVar[str] = "failed"


FlowState = Union[Idle, FetchingBalance, BalanceLoaded, Processing, Succeeded, Failed]

_OUTCOMES = {
    AccountNotFoundError: "not_found",
    NothingToPayError: "nothing_to_pay",
    ValidationRejectedError: "rejected",
    ConfirmationRequiredError: "unconfirmed",
}


def _outcome(error: DomainException) -> str:
    for error_type, outcome in _OUTCOMES.items():
        if isinstance(error, error_type):
            return outcome
    if isinstance(error, ValidationError):
        return "invalid"
    return "failed"


class PaymentFlowController:
    """Drives one user's bill payment from account id entry to receipt"""

    def __init__(self, gateway: PaymentGateway, session_id: str | None = None):
        self.gateway = gateway
        self.session_id = session_id or str(uuid.uuid4())
        self.account_id = ""
        self.state: FlowState = Idle()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_busy(self) -> bool:
        return isinstance(self.state, (FetchingBalance, Processing))

    @property
    def balance(self) -> Optional[AccountBalance]:
        """Balance held by the session, if any"""
        if isinstance(self.state, (BalanceLoaded, Processing, Failed)):
            return self.state.balance
        return None

    def _ensure_not_busy(self) -> None:
        if self.is_busy:
            raise FlowBusyError()

    def _invalidate(self) -> None:
        self._generation += 1
        self.state = Idle()

    def _is_stale(self, generation: int, operation: str) -> bool:
        if generation == self._generation:
            return False
        logger.info(
            f"Discarding {operation} result from a previous session generation",
            extra={"session_id": self.session_id, "generation": generation},
        )
        return True

    async def _await_gateway(self, call: Awaitable[T], fallback_message: str) -> T:
        """Await a ledger call so that any failure surfaces as a DomainException"""
        try:
            return await call
        except DomainException:
            raise
        except Exception as e:
            logger.exception(
                "Unexpected error from ledger gateway",
                extra={"session_id": self.session_id},
            )
            raise GatewayFailureError(fallback_message) from e

    def edit_account_id(self, account_id: str) -> FlowState:
        """
        Replace the account id input.

        Discards any balance, confirmation, error or receipt, so a balance
        never outlives the id it was fetched for.
        """
        if isinstance(self.state, Processing):
            raise FlowBusyError()
        self.account_id = account_id
        self._invalidate()
        return self.state

    async def retrieve_balance(self, account_id: str | None = None) -> FlowState:
        """
        Fetch the balance for the current account id.

        An invalid id fails locally without calling the ledger. A balance of
        zero or less still loads, but cannot be confirmed.
        """
        self._ensure_not_busy()
        if account_id is not None:
            self.account_id = account_id

        try:
            cleaned = validate_account_id(self.account_id)
        except ValidationError as e:
            record_balance_lookup("invalid")
            self.state = Failed(e)
            return self.state

        generation = self._generation
        self.state = FetchingBalance(cleaned)

        try:
            balance = await self._await_gateway(self.gateway.fetch_balance(cleaned), BALANCE_FAILURE_MESSAGE)
        except asyncio.CancelledError:
            if not self._is_stale(generation, "balance"):
                self.state = Failed(GatewayFailureError(BALANCE_FAILURE_MESSAGE))
            raise
        except DomainException as e:
            if self._is_stale(generation, "balance"):
                return self.state
            record_balance_lookup(_outcome(e))
            logger.warning(
                f"Balance retrieval failed: {e.message}",
                extra={"session_id": self.session_id, "account_id": cleaned},
            )
            self.state = Failed(e)
            return self.state

        if self._is_stale(generation, "balance"):
            return self.state

        self.state = BalanceLoaded(balance)
        record_balance_lookup("loaded" if can_process_payment(balance.current_balance) else "nothing_to_pay")
        return self.state

    def set_confirmation(self, confirmed: bool) -> FlowState:
        self._ensure_not_busy()
        balance = self.balance
        if balance is None:
            raise InvalidTransitionError("Retrieve the account balance before confirming payment")

        if confirmed and not can_process_payment(balance.current_balance):
            self.state = Failed(NothingToPayError(), balance)
        else:
            self.state = BalanceLoaded(balance, confirmed=confirmed)
        return self.state

    async def submit_payment(self) -> FlowState:
        """
        Pay the held balance in full.

        Requires a held, payable balance and an explicit confirmation, checked
        here again regardless of what the caller displayed. Any failure keeps
        the balance but drops the confirmation.
        """
        self._ensure_not_busy()
        state = self.state
        balance = self.balance

        if balance is None or not (isinstance(state, BalanceLoaded) and state.confirmed):
            record_payment("unconfirmed")
            self.state = Failed(ConfirmationRequiredError(), balance)
            return self.state

        if not can_process_payment(balance.current_balance):
            record_payment("nothing_to_pay")
            self.state = Failed(NothingToPayError(), balance)
            return self.state

        request = BillPaymentRequest(account_id=balance.account_id, confirm_payment=state.confirmed)
        generation = self._generation
        self.state = Processing(balance)
        start_time = time.time()

        try:
            response = await self._await_gateway(self.gateway.submit_payment(request), PAYMENT_FAILURE_MESSAGE)
        except asyncio.CancelledError:
            # Outcome unknown to us; the ledger may still have committed it
            if not self._is_stale(generation, "payment"):
                logger.warning(
                    "Bill payment cancelled while in flight",
                    extra={"session_id": self.session_id, "account_id": balance.account_id},
                )
                self.state = Failed(GatewayFailureError(PAYMENT_FAILURE_MESSAGE), balance)
            raise
        except DomainException as e:
            if self._is_stale(generation, "payment"):
                return self.state
            record_payment(_outcome(e))
            logger.warning(
                f"Bill payment failed: {e.message}",
                extra={"session_id": self.session_id, "account_id": balance.account_id},
            )
            self.state = Failed(e, balance)
            return self.state

        record_payment("succeeded")
        duration_ms = (time.time() - start_time) * 1000
        log_payment(self.session_id, response.account_id, response.transaction_id, duration_ms)

        if self._is_stale(generation, "payment"):
            return self.state

        self.account_id = ""
        self.state = Succeeded(response)
        return self.state

    def dismiss_error(self) -> FlowState:
        if not isinstance(self.state, Failed):
            raise InvalidTransitionError("There is no error to dismiss")
        balance = self.state.balance
        self.state = BalanceLoaded(balance) if balance is not None else Idle()
        return self.state

    def reset(self) -> FlowState:
        """Start over; a payment still in flight is no longer tracked by this session"""
        if isinstance(self.state, Processing):
            logger.warning(
                "Session reset while a payment is in flight",
                extra={"session_id": self.session_id, "account_id": self.state.balance.account_id},
            )
        self.account_id = ""
        self._invalidate()
        return self.state
