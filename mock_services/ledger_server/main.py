from decimal import Decimal
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

DEFAULT_ACCOUNTS = {
    "00123456789": Decimal("150.00"),
    "12345678901": Decimal("250.00"),
    "00000000001": Decimal("0.00"),
    "00000000002": Decimal("1234.56"),
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(accounts: Optional[Dict[str, Decimal]] = None) -> FastAPI:
    app = FastAPI(title="Mock Ledger Server", version="1.0.0")
    balances = dict(DEFAULT_ACCOUNTS if accounts is None else accounts)
    app.state.balances = balances
    app.state.last_transaction_id = 0
    app.state.fail_payments = False

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/bill-payment/account/{account_id}/balance")
    def get_balance(account_id: str):
        if account_id not in balances:
            return _error(404, "Account ID NOT found...")
        return {"accountId": account_id, "currentBalance": float(balances[account_id])}

    @app.post("/api/bill-payment/process")
    def process(body: dict):
        if app.state.fail_payments:
            return _error(500, "Ledger unavailable")
        account_id = body.get("accountId")
        if not account_id or not str(account_id).strip():
            return _error(400, "Account ID cannot be empty")
        if body.get("confirmPayment") is not True:
            return _error(400, "Confirm to make a bill payment...")
        if account_id not in balances:
            return _error(404, "Account ID NOT found...")
        amount = balances[account_id]
        if amount <= 0:
            return _error(400, "You have nothing to pay...")

        app.state.last_transaction_id += 1
        transaction_id = f"{app.state.last_transaction_id:016d}"
        balances[account_id] = Decimal("0.00")
        return {
            "transactionId": transaction_id,
            "message": f"Payment successful. Your Transaction ID is {transaction_id}.",
            "accountId": account_id,
            "paymentAmount": float(amount),
            "newBalance": float(balances[account_id]),
        }

    return app


app = create_app()
