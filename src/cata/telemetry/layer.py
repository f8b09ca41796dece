"""Telemetry layer bridging logging/tracing callbacks to a backend handler."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider

from cata.telemetry import identity
from cata.telemetry.event import Event, Handler, Metadata
from cata.telemetry.visitor import ACTIVITY_FIELD, ERROR_FIELD

logger = logging.getLogger(__name__)


def spawn_blocking(fn: Callable[[], None]) -> "Future[None] | asyncio.Future[None]":
    """Run ``fn`` on a worker thread that is joined before the process exits.

    Inside a running event loop the loop's default executor is used;
    ``asyncio.run`` waits for it on shutdown. Without a loop (or once its
    executor is gone) a single-use thread pool takes the job and is shut down
    without waiting; the interpreter joins its worker at exit.
    """
    try:
        loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
    except RuntimeError:
        loop = None
    if loop is not None:
        try:
            return loop.run_in_executor(None, fn)
        except RuntimeError:
            # default executor already shut down, fall through to a fresh pool
            pass

    executor = ThreadPoolExecutor(thread_name_prefix="cata-telemetry")
    try:
        return executor.submit(fn)
    except RuntimeError:
        # interpreter shutdown refuses new threads; deliver inline
        future: Future[None] = Future()
        fn()
        future.set_result(None)
        return future
    finally:
        executor.shutdown(wait=False)


class Telemetry(logging.Handler, SpanProcessor):
    """Captures opted-in log records and spans and hands them to a backend.

    Install it on a logger (``emit`` is the per-event hook) and on an
    OpenTelemetry SDK tracer provider (``on_start`` is the per-span hook).
    By default nothing is captured: ``with_activity`` enables records and
    spans carrying the ``activity`` field, ``with_errors`` those carrying the
    ``error`` field. The handler level stays ``NOTSET``; opt-in is decided
    per record, independently of any log level configured elsewhere.

    Installing is idempotent per logger and per tracer provider. A closed
    layer captures nothing; the tracer provider cannot drop a processor, so
    this is how ``setup_logging`` retires a layer it replaces.
    """

    _cata_telemetry = True

    def __init__(
        self,
        handler: Handler,
        *,
        name: str = "cata",
        activity: bool = False,
        errors: bool = False,
        user_id: str | None = None,
    ) -> None:
        logging.Handler.__init__(self, logging.NOTSET)
        self._provider = handler
        self._tool = name
        self._activity = activity
        self._errors = errors
        self._user_id = user_id if user_id is not None else identity.user_id(name)
        self._providers: list[TracerProvider] = []
        self._closed = False

    @property
    def handler(self) -> Handler:
        return self._provider

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def activity(self) -> bool:
        return self._activity

    @property
    def errors(self) -> bool:
        return self._errors

    def _replace(self, **changes: Any) -> "Telemetry":
        options = {
            "name": self._tool,
            "activity": self._activity,
            "errors": self._errors,
            "user_id": self._user_id,
        }
        options.update(changes)
        return Telemetry(self._provider, **options)

    def with_activity(self) -> "Telemetry":
        """Return a copy that captures activity spans and records."""
        return self._replace(activity=True)

    def with_errors(self) -> "Telemetry":
        """Return a copy that captures error records."""
        return self._replace(errors=True)

    def interested(self, fields: Iterable[str]) -> bool:
        if not (self._activity or self._errors):
            return False
        names = fields if isinstance(fields, (dict, set, frozenset)) else set(fields)
        return (self._activity and ACTIVITY_FIELD in names) or (self._errors and ERROR_FIELD in names)

    def capture(self, event: Event) -> "Future[None] | asyncio.Future[None]":
        provider = self._provider

        def deliver() -> None:
            try:
                provider.capture(event)
            except Exception as exc:
                logger.error("Failed to capture: %r", exc)

        return spawn_blocking(deliver)

    # logging.Handler

    def emit(self, record: logging.LogRecord) -> None:
        if self._closed:
            return
        if not self.interested(record.__dict__):
            return
        try:
            event = self._provider.on_event(self._user_id, record)
        except Exception:
            self.handleError(record)
            return
        self.capture(event)

    # SpanProcessor

    def on_start(self, span: Any, parent_context: Optional[Context] = None) -> None:
        if self._closed:
            return
        attributes = dict(span.attributes or {})
        if not self.interested(attributes):
            return
        try:
            event = self._provider.on_span(self._user_id, Metadata.from_span(span), attributes)
        except Exception:
            logger.exception("Failed to build telemetry event for span %s", span.name)
            return
        self.capture(event)

    def on_end(self, span: Any) -> None:
        return None

    def shutdown(self) -> None:
        return None

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    def close(self) -> None:
        self._closed = True
        logging.Handler.close(self)

    def install(
        self,
        logger: logging.Logger | None = None,
        tracer_provider: TracerProvider | None = None,
    ) -> "Telemetry":
        """Attach to ``logger`` (root by default) and to a tracer provider."""
        target = logger if logger is not None else logging.getLogger()
        target.addHandler(self)
        provider = tracer_provider if tracer_provider is not None else _global_tracer_provider()
        if not any(known is provider for known in self._providers):
            provider.add_span_processor(self)
            self._providers.append(provider)
        return self


def _global_tracer_provider() -> TracerProvider:
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        return provider
    provider = TracerProvider()
    trace.set_tracer_provider(provider)
    return provider


__all__ = ["Telemetry", "spawn_blocking"]
