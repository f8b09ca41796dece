from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Mapping

import pytest
from opentelemetry.sdk.trace import TracerProvider

from cata.telemetry import BaseHandler, Event, Metadata

USER_ID = "6a1f6c3e-2b9d-4c1e-9f0a-0123456789ab"


class RecordingHandler(BaseHandler):
    """Keeps built and captured events in memory."""

    def __init__(self) -> None:
        super().__init__(name="test", version="9.9.9")
        self.built: list[Event] = []
        self.captured: list[Event] = []
        self.threads: list[int] = []
        self._cond = threading.Condition()

    def on_span(self, user_id: str, metadata: Metadata, values: Mapping[str, Any]) -> Event:
        event = super().on_span(user_id, metadata, values)
        self.built.append(event)
        return event

    def on_event(self, user_id: str, record: logging.LogRecord) -> Event:
        event = super().on_event(user_id, record)
        self.built.append(event)
        return event

    def capture(self, event: Event) -> None:
        with self._cond:
            self.captured.append(event)
            self.threads.append(threading.get_ident())
            self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.captured) >= count, timeout=timeout)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def log() -> logging.Logger:
    logger = logging.getLogger(f"tests.telemetry.{uuid.uuid4().hex}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger
    for attached in list(logger.handlers):
        logger.removeHandler(attached)


@pytest.fixture
def provider() -> TracerProvider:
    tracer_provider = TracerProvider(shutdown_on_exit=False)
    yield tracer_provider
    tracer_provider.shutdown()
