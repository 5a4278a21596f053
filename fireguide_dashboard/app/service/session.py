# Dashboard session: owns the caches for one authenticated professional
import logging
import secrets
from typing import Optional, Dict

from fireguide_dashboard.app.service.exceptions import NotAuthenticatedError
from fireguide_dashboard.app.service.interfaces.fireguide_api import AbstractFireGuideApi
from fireguide_dashboard.app.service.interfaces.session_store import AbstractSessionStore, StaticSessionStore
from fireguide_dashboard.app.service.interfaces.user_notifier import AbstractUserNotifier, BufferedUserNotifier
from fireguide_dashboard.app.service.notifications.cache import NotificationCache
from fireguide_dashboard.app.service.notifications.synchronizer import NotificationSynchronizer
from fireguide_dashboard.app.service.verification.aggregator import VerificationAggregator

logger = logging.getLogger(__name__)


class DashboardSession:
    """
    Explicit lifecycle for the client-side caches: built when the
    professional's session starts, discarded by close() on logout.
    """

    def __init__(
        self,
        api: AbstractFireGuideApi,
        session_store: AbstractSessionStore,
        notifier: Optional[AbstractUserNotifier] = None,
    ):
        self.session_store = session_store
        self.notifier = notifier if notifier is not None else BufferedUserNotifier()
        self.notification_cache = NotificationCache()
        self.verification = VerificationAggregator(api, session_store, self.notifier)
        self.notifications = NotificationSynchronizer(api, session_store, self.notifier, cache=self.notification_cache)
        self.closed = False

    def close(self) -> None:
        self.notifications.discard()
        self.verification.discard()
        if isinstance(self.session_store, StaticSessionStore):
            self.session_store.clear()
        self.closed = True


class SessionRegistry:
    """Maps opaque session tokens handed to the dashboard onto live sessions."""

    def __init__(self):
        self._sessions: Dict[str, DashboardSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, api: AbstractFireGuideApi, api_token: str, professional_id: int) -> str:
        if not api_token:
            raise NotAuthenticatedError("session token")
        if professional_id is None:
            raise NotAuthenticatedError("professional id")
        session_token = secrets.token_urlsafe(32)
        store = StaticSessionStore(api_token=api_token, professional_id=professional_id)
        self._sessions[session_token] = DashboardSession(api, store)
        logger.info(f"Dashboard session opened for professional {professional_id}. Active sessions: {len(self._sessions)}")
        return session_token

    def get(self, session_token: Optional[str]) -> DashboardSession:
        session = self._sessions.get(session_token) if session_token else None
        if session is None:
            raise NotAuthenticatedError("dashboard session")
        return session

    def close(self, session_token: str) -> bool:
        session = self._sessions.pop(session_token, None)
        if session is None:
            return False
        session.close()
        logger.info(f"Dashboard session closed. Active sessions: {len(self._sessions)}")
        return True

    def close_all(self) -> None:
        for session_token in list(self._sessions):
            self.close(session_token)
