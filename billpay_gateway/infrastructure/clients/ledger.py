"""Ledger API HTTP client for account balances and bill payments"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from billpay_gateway.config import settings
from billpay_gateway.domain.exceptions import (
    BALANCE_FAILURE_MESSAGE,
    PAYMENT_FAILURE_MESSAGE,
    AccountNotFoundError,
    ConfirmationRequiredError,
    GatewayFailureError,
    NothingToPayError,
    ValidationRejectedError,
)
from billpay_gateway.domain.models import AccountBalance, BillPaymentRequest, BillPaymentResponse
from billpay_gateway.domain.validation import validate_account_id
from billpay_gateway.infrastructure.observability.metrics import gateway_failure_counter, gateway_latency_histogram

logger = logging.getLogger(__name__)

PAYMENT_REJECTED_MESSAGE = "Unable to Add Bill pay Transaction..."

NOTHING_TO_PAY_CODE = "NOTHING_TO_PAY"
NOTHING_TO_PAY_TEXT = "nothing to pay"


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("amount must be a number")
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"amount must be finite, got {value!r}")
    return amount


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    """Structured `{error, code}` body, or empty dict when the ledger sent none"""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_text(body: Dict[str, Any]) -> Optional[str]:
    error = body.get("error")
    return error if isinstance(error, str) and error.strip() else None


def _is_nothing_to_pay(body: Dict[str, Any]) -> bool:
    """Structured code first; older ledgers only say it in the error text"""
    if body.get("code") == NOTHING_TO_PAY_CODE:
        return True
    text = _error_text(body)
    return text is not None and NOTHING_TO_PAY_TEXT in text.lower()


class LedgerClient:
    """Client for the backend ledger that owns balances and commits payments"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.ledger_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.access_token = access_token
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        # Missing token is sent through unauthenticated; the ledger decides
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _fail(self, operation: str, message: str, upstream_status: int | None = None) -> GatewayFailureError:
        gateway_failure_counter.labels(operation=operation).inc()
        return GatewayFailureError(message, upstream_status=upstream_status)

    async def fetch_balance(self, account_id: str) -> AccountBalance:
        """
        Fetch the current balance of an account.

        Raises:
            EmptyAccountIdError, AccountIdTooLongError: Before any network call
            AccountNotFoundError: Ledger answered 404
            GatewayFailureError: Other HTTP errors, timeouts, or invalid response
        """
        account_id = validate_account_id(account_id)
        url = f"{self.base_url}/bill-payment/account/{quote(account_id, safe='')}/balance"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with gateway_latency_histogram.labels(operation="fetch_balance").time():
                    response = await client.get(url, headers=self._headers())
            except httpx.HTTPError as e:
                logger.error(
                    f"Ledger balance request failed: {e!r}",
                    extra={"account_id": account_id},
                )
                raise self._fail("fetch_balance", BALANCE_FAILURE_MESSAGE) from e

        if response.status_code == 404:
            raise AccountNotFoundError()

        if not response.is_success:
            body = _error_body(response)
            logger.warning(
                "Ledger rejected balance request",
                extra={"account_id": account_id, "status_code": response.status_code},
            )
            raise self._fail(
                "fetch_balance",
                _error_text(body) or BALANCE_FAILURE_MESSAGE,
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
            return AccountBalance(
                account_id=str(data["accountId"]),
                current_balance=_to_decimal(data["currentBalance"]),
            )
        except (KeyError, ValueError, TypeError, InvalidOperation) as e:
            logger.error(
                f"Invalid balance data from ledger: {e!r}",
                extra={"account_id": account_id},
            )
            raise self._fail("fetch_balance", BALANCE_FAILURE_MESSAGE) from e

    async def submit_payment(self, request: BillPaymentRequest) -> BillPaymentResponse:
        """
        Pay the full balance of an account.

        Not retried: a failed call may still have been committed by the ledger,
        so retrying is left to an explicit user action.

        Raises:
            ConfirmationRequiredError: Request does not carry confirm_payment=True
            AccountNotFoundError: Ledger answered 404
            NothingToPayError: Ledger answered 400 with the nothing-to-pay rule
            ValidationRejectedError: Any other 400, with the ledger's message
            GatewayFailureError: Other HTTP errors, timeouts, or invalid response
        """
        account_id = validate_account_id(request.account_id)
        if request.confirm_payment is not True:
            raise ConfirmationRequiredError()

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with gateway_latency_histogram.labels(operation="submit_payment").time():
                    response = await client.post(
                        f"{self.base_url}/bill-payment/process",
                        json={"accountId": account_id, "confirmPayment": True},
                        headers=self._headers(),
                    )
            except httpx.HTTPError as e:
                logger.error(
                    f"Ledger payment request failed: {e!r}",
                    extra={"account_id": account_id},
                )
                raise self._fail("submit_payment", PAYMENT_FAILURE_MESSAGE) from e

        if response.status_code == 404:
            raise AccountNotFoundError()

        if response.status_code == 400:
            body = _error_body(response)
            if _is_nothing_to_pay(body):
                raise NothingToPayError()
            raise ValidationRejectedError(_error_text(body))

        if not response.is_success:
            logger.warning(
                "Ledger rejected payment",
                extra={"account_id": account_id, "status_code": response.status_code},
            )
            raise self._fail("submit_payment", PAYMENT_REJECTED_MESSAGE, upstream_status=response.status_code)

        try:
            data = response.json()
            return BillPaymentResponse(
                transaction_id=str(data["transactionId"]),
                message=str(data["message"]),
                account_id=str(data["accountId"]),
                payment_amount=_to_decimal(data["paymentAmount"]),
                new_balance=_to_decimal(data["newBalance"]),
            )
        except (KeyError, ValueError, TypeError, InvalidOperation) as e:
            logger.error(
                f"Invalid payment data from ledger: {e!r}",
                extra={"account_id": account_id},
            )
            raise self._fail("submit_payment", PAYMENT_FAILURE_MESSAGE) from e
