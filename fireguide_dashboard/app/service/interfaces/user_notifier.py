import logging
from abc import ABC, abstractmethod
from typing import List, Dict

logger = logging.getLogger(__name__)


class AbstractUserNotifier(ABC):
    """
    Transient, user-facing messages ("toasts").

    Not to be confused with the domain notifications the synchronizer
    aggregates.
    """

    @abstractmethod
    def success(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class LoggingUserNotifier(AbstractUserNotifier):
    """Writes every message to the service log; successes at INFO, errors at WARNING."""

    def success(self, message: str) -> None:
        logger.info(f"User notice (success): {message}")

    def error(self, message: str) -> None:
        logger.warning(f"User notice (error): {message}")


class BufferedUserNotifier(LoggingUserNotifier):
    """Logs and collects messages until the dashboard drains them."""

    def __init__(self):
        self._messages: List[Dict[str, str]] = []

    def success(self, message: str) -> None:
        super().success(message)
        self._messages.append({"level": "success", "message": message})

    def error(self, message: str) -> None:
        super().error(message)
        self._messages.append({"level": "error", "message": message})

    def drain(self) -> List[Dict[str, str]]:
        messages, self._messages = self._messages, []
        return messages
