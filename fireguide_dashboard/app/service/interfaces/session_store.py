from abc import ABC, abstractmethod
from typing import Optional


class AbstractSessionStore(ABC):
    """Source of the current session credentials. Owned by the login flow, read-only here."""

    @abstractmethod
    def get_session_token(self) -> Optional[str]:
        pass

    @abstractmethod
    def get_professional_id(self) -> Optional[int]:
        pass


class StaticSessionStore(AbstractSessionStore):
    """Holds credentials handed over when a dashboard session is opened."""

    def __init__(self, api_token: Optional[str], professional_id: Optional[int] = None):
        self._api_token = api_token
        self._professional_id = professional_id

    def get_session_token(self) -> Optional[str]:
        return self._api_token or None

    def get_professional_id(self) -> Optional[int]:
        return self._professional_id

    def clear(self) -> None:
        self._api_token = None
        self._professional_id = None
