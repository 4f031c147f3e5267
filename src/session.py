"""
Storefront sessions for ChopXpress

Each browser session owns its cart and its location tracker. The registry is
created when the app starts and closed when it shuts down; endpoints get the
session they need through a dependency instead of reaching for globals.
Sessions idle for longer than the timeout are dropped, and the registry never
holds more than max_sessions at once.
"""
import logging
import secrets
import threading
import time
from collections import OrderedDict
from typing import List, Optional

from auth import UserRole, is_staff
from cart import Cart
from config import DEFAULT_MAX_SESSIONS, DEFAULT_SESSION_IDLE_MINUTES, DeliveryQuoteConfig
from geolocation import BrowserLocationProvider, LocationProvider, LocationTracker
from pricing import CartSummary, evaluate_delivery

logger = logging.getLogger(__name__)


class StorefrontSession:
    """
    Cart and location for one browser. The caller's role is not stored here:
    it comes from the request's token and is passed in where it matters.
    """

    def __init__(self, session_id: str, config: DeliveryQuoteConfig, provider: LocationProvider):
        self.session_id = session_id
        self.config = config
        self.provider = provider
        self.cart = Cart()
        self.location = LocationTracker(provider)
        self.last_seen = 0.0

    def start(self):
        """Kick off the first location request, as a page load would"""
        self.location.request_location()

    @staticmethod
    def cart_enabled(role: Optional[UserRole]) -> bool:
        return not is_staff(role)

    def summary(self, role: Optional[UserRole] = None) -> CartSummary:
        return evaluate_delivery(self.cart, self.location.state, self.config, role)

    def close(self):
        self.location.close()
        self.cart.clear()


class SessionRegistry:
    def __init__(
        self,
        config: DeliveryQuoteConfig,
        provider_factory=BrowserLocationProvider,
        idle_timeout: float = DEFAULT_SESSION_IDLE_MINUTES * 60,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock=time.monotonic,
    ):
        self.config = config
        self.idle_timeout = idle_timeout
        self.max_sessions = max_sessions
        self._provider_factory = provider_factory
        self._clock = clock
        # Least recently seen first
        self._sessions: "OrderedDict[str, StorefrontSession]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[StorefrontSession]:
        """Live session for the id, marked as seen; None if unknown or expired"""
        if not session_id:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if now - session.last_seen > self.idle_timeout:
                del self._sessions[session_id]
                expired = session
            else:
                session.last_seen = now
                self._sessions.move_to_end(session_id)
                return session
        expired.close()
        logger.info("Storefront session %s expired", session_id[:8])
        return None

    def create(self) -> StorefrontSession:
        session = StorefrontSession(secrets.token_urlsafe(24), self.config, self._provider_factory())
        session.last_seen = self._clock()
        with self._lock:
            self._sessions[session.session_id] = session
            evicted = self._evict_locked()
        self._close_all(evicted)
        session.start()
        logger.info("Started storefront session %s", session.session_id[:8])
        return session

    def get_or_create(self, session_id: Optional[str]) -> StorefrontSession:
        self.sweep()
        return self.get(session_id) or self.create()

    def sweep(self) -> int:
        """Drop sessions idle past the timeout; returns how many were dropped"""
        now = self._clock()
        expired = []
        with self._lock:
            while self._sessions:
                session = next(iter(self._sessions.values()))
                if now - session.last_seen <= self.idle_timeout:
                    break
                self._sessions.popitem(last=False)
                expired.append(session)
        self._close_all(expired)
        if expired:
            logger.info("Expired %d idle storefront sessions", len(expired))
        return len(expired)

    def _evict_locked(self) -> List[StorefrontSession]:
        evicted = []
        while len(self._sessions) > self.max_sessions:
            _, session = self._sessions.popitem(last=False)
            evicted.append(session)
        if evicted:
            logger.warning("Session limit %d reached, evicted %d", self.max_sessions, len(evicted))
        return evicted

    @staticmethod
    def _close_all(sessions):
        for session in sessions:
            session.close()

    def end(self, session_id: str):
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session:
            session.close()

    def close(self):
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        self._close_all(sessions)
        logger.info("Closed %d storefront sessions", len(sessions))
