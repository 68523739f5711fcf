"""In-memory registry of payment sessions"""

import logging
import secrets
from collections import OrderedDict
from typing import Dict, Optional

from billpay_gateway.application.payment_flow import PaymentFlowController
from billpay_gateway.application.ports import PaymentGateway
from billpay_gateway.config import settings
from billpay_gateway.domain.exceptions import SessionAccessDeniedError, SessionNotFoundError

logger = logging.getLogger(__name__)


def _same_owner(owner_token: Optional[str], access_token: Optional[str]) -> bool:
    if owner_token is None or access_token is None:
        return owner_token is access_token
    return secrets.compare_digest(owner_token.encode(), access_token.encode())


class SessionStore:
    """
    Owns one PaymentFlowController per session; sessions share no state.

    Each session is bound to the bearer token it was created with and only
    answers to that same token. Anonymous sessions only answer to anonymous
    callers.
    """

    def __init__(self, max_sessions: int | None = None):
        self.max_sessions = max_sessions or settings.max_sessions
        self._sessions: "OrderedDict[str, PaymentFlowController]" = OrderedDict()
        self._owners: Dict[str, Optional[str]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_one(self) -> None:
        """Drop the oldest idle session; a session with a ledger call in flight goes last"""
        evicted_id = next(
            (session_id for session_id, controller in self._sessions.items() if not controller.is_busy),
            None,
        )
        if evicted_id is None:
            evicted_id = next(iter(self._sessions))
            logger.warning(
                "Evicting payment session with a ledger call in flight",
                extra={"session_id": evicted_id, "state": self._sessions[evicted_id].state.status},
            )
        else:
            logger.info("Evicted payment session", extra={"session_id": evicted_id})
        del self._sessions[evicted_id]
        self._owners.pop(evicted_id, None)

    def create(self, gateway: PaymentGateway, owner_token: Optional[str] = None) -> PaymentFlowController:
        """Start a new session owned by `owner_token`, evicting one when at capacity"""
        while len(self._sessions) >= self.max_sessions:
            self._evict_one()

        controller = PaymentFlowController(gateway)
        self._sessions[controller.session_id] = controller
        self._owners[controller.session_id] = owner_token
        return controller

    def get(self, session_id: str, access_token: Optional[str] = None) -> PaymentFlowController:
        try:
            controller = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError() from None
        if not _same_owner(self._owners.get(session_id), access_token):
            logger.warning("Payment session accessed with foreign credentials", extra={"session_id": session_id})
            raise SessionAccessDeniedError()
        return controller

    def delete(self, session_id: str, access_token: Optional[str] = None) -> None:
        self.get(session_id, access_token)
        del self._sessions[session_id]
        self._owners.pop(session_id, None)
