"""Per-visitor state: cart, checkout and merchant gate live for one session."""

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from . import config
from .access_gate import AccessGate, MerchantDashboard
from .cart import Cart
from .checkout import CheckoutSession
from .errors import SessionNotFoundError
from .order_store import OrderStore

logger = logging.getLogger(__name__)


@dataclass
class StorefrontSession:
    """Everything one browser session owns. Nothing here is persisted."""

    id: str
    cart: Cart
    checkout: CheckoutSession
    gate: AccessGate
    dashboard: MerchantDashboard

    @classmethod
    def create(
        cls,
        store: OrderStore,
        merchant_pin: str | None = None,
        session_id: str | None = None,
    ) -> "StorefrontSession":
        cart = Cart()
        gate = AccessGate(merchant_pin)
        return cls(
            id=session_id or str(uuid.uuid4()),
            cart=cart,
            checkout=CheckoutSession(cart, store),
            gate=gate,
            dashboard=MerchantDashboard(gate, store),
        )


class SessionRegistry:
    """
    In-memory map of live sessions for the HTTP surface.

    Sessions idle for longer than ``ttl`` seconds are evicted: lazily when
    looked up, and in bulk whenever a new session is created.
    """

    def __init__(
        self,
        store: OrderStore,
        merchant_pin: str | None = None,
        ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.merchant_pin = merchant_pin
        self.ttl = config.SESSION_TTL if ttl is None else ttl
        self._clock = clock
        self._sessions: dict[str, StorefrontSession] = {}
        self._last_seen: dict[str, float] = {}
        self._lock = threading.Lock()

    def _expired(self, session_id: str, now: float) -> bool:
        return self.ttl > 0 and now - self._last_seen[session_id] > self.ttl

    def _evict(self, session_id: str) -> None:
        session = self._sessions.pop(session_id)
        del self._last_seen[session_id]
        session.checkout.close()

    def prune(self) -> int:
        """Evict idle sessions. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [sid for sid in self._sessions if self._expired(sid, now)]
            for sid in expired:
                self._evict(sid)
        if expired:
            logger.info("Evicted %d idle session(s)", len(expired))
        return len(expired)

    def create(self) -> StorefrontSession:
        self.prune()
        session = StorefrontSession.create(self.store, self.merchant_pin)
        with self._lock:
            self._sessions[session.id] = session
            self._last_seen[session.id] = self._clock()
        return session

    def get(self, session_id: str) -> StorefrontSession:
        """
        Look up a session and mark it as active.

        Raises:
            SessionNotFoundError: If the session doesn't exist or has expired.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                now = self._clock()
                if self._expired(session_id, now):
                    self._evict(session_id)
                    session = None
                else:
                    self._last_seen[session_id] = now
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def drop(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
