"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Header, Request

from billpay_gateway.application.payment_flow import PaymentFlowController
from billpay_gateway.application.sessions import SessionStore
from billpay_gateway.infrastructure.clients.ledger import LedgerClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_access_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Bearer token of the caller, forwarded to the ledger as-is"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_ledger_client(access_token: Optional[str] = Depends(get_access_token)) -> LedgerClient:
    """Provide Ledger API client acting on behalf of the caller"""
    return LedgerClient(access_token=access_token)


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_session_controller(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    access_token: Optional[str] = Depends(get_access_token),
) -> PaymentFlowController:
    """Session addressed by the path, checked against the caller's bearer token"""
    return store.get(session_id, access_token)
