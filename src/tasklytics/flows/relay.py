"""Backend relay sinks for flow execution summaries.

Relaying is fire-and-forget: a sink must never raise into the flow engine
and must not block the remaining in-process work.
"""

import threading
from abc import ABC, abstractmethod
from typing import Optional

import requests

from tasklytics.models.execution import RelayMessage
from tasklytics.observability.logging import get_logger

logger = get_logger(__name__)


class RelaySink(ABC):
    @abstractmethod
    def send(self, message: RelayMessage) -> None:
        pass


class LogRelaySink(RelaySink):
    """Default sink used when no backend endpoint is configured."""

    def send(self, message: RelayMessage) -> None:
        logger.info(
            "[Flow event to backend]",
            extra={"extra_fields": message.model_dump(mode="json")},
        )


class HttpRelaySink(RelaySink):
    """POSTs relay messages as JSON to a backend endpoint.

    Requests run on daemon threads unless ``background`` is False; failures
    are logged and dropped.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 3.0,
        background: bool = True,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.background = background
        self._session = session or requests.Session()

    def send(self, message: RelayMessage) -> None:
        body = message.model_dump(mode="json")
        if self.background:
            threading.Thread(target=self._post, args=(body,), daemon=True).start()
        else:
            self._post(body)

    def _post(self, body: dict) -> None:
        try:
            response = self._session.post(self.url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                f"Relay to {self.url} failed: {str(e)}",
                extra={"extra_fields": {"execution_id": body.get("execution_id")}},
            )


def build_relay(url: Optional[str], timeout: float = 3.0) -> RelaySink:
    if url:
        return HttpRelaySink(url, timeout=timeout)
    return LogRelaySink()
