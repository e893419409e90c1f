import kopf
import logging
from typing import Any, Mapping


class EventRecorder:
    """Sink for diagnostic events. Recording never affects control flow."""

    def warning(self, reason: str, message: str) -> None:
        raise NotImplementedError()

    def normal(self, reason: str, message: str) -> None:
        raise NotImplementedError()


class LoggingEventRecorder(EventRecorder):
    def __init__(self, logger: logging.Logger = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def warning(self, reason: str, message: str) -> None:
        self.logger.warning(f"{reason}: {message}")

    def normal(self, reason: str, message: str) -> None:
        self.logger.info(f"{reason}: {message}")


class KopfEventRecorder(EventRecorder):
    """Posts Kubernetes events against the operator resource."""

    def __init__(self, body: Mapping[str, Any]) -> None:
        self.body = body

    def warning(self, reason: str, message: str) -> None:
        kopf.warn(self.body, reason=reason, message=message)

    def normal(self, reason: str, message: str) -> None:
        kopf.event(self.body, type="Normal", reason=reason, message=message)
