"""Decorator for reporting usage and errors of a function."""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Optional, TypeVar

from opentelemetry import trace

from cata.telemetry.visitor import ACTIVITY_FIELD, ERROR_FIELD

F = TypeVar("F", bound=Callable[..., Any])


def instrument(
    activity: Optional[str] = None,
    *,
    err: bool = False,
    name: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    tracer: Optional[trace.Tracer] = None,
    **fields: Any,
) -> Callable[[F], F]:
    """Wrap a function in a span and optionally report the errors it raises.

    ``activity`` is attached to the span so an activity-enabled
    :class:`~cata.telemetry.Telemetry` reports every call. With ``err=True``
    an exception escaping the function is logged with the ``error`` field,
    which an error-enabled layer reports, and then re-raised. Extra keyword
    arguments become span attributes.

    Works for plain functions and coroutine functions::

        @instrument("deploy::apply", err=True)
        async def run(self) -> None:
            ...
    """

    attributes: dict[str, Any] = dict(fields)
    if activity is not None:
        attributes[ACTIVITY_FIELD] = activity

    def decorator(fn: F) -> F:
        span_name = name or fn.__qualname__
        log = logger or logging.getLogger(fn.__module__)

        def _tracer() -> trace.Tracer:
            return tracer if tracer is not None else trace.get_tracer(fn.__module__)

        def _report(exc: Exception) -> None:
            if err:
                log.error("%s", exc, extra={ERROR_FIELD: exc})

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _tracer().start_as_current_span(span_name, attributes=attributes):
                    try:
                        return await fn(*args, **kwargs)
                    except Exception as exc:
                        _report(exc)
                        raise

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with _tracer().start_as_current_span(span_name, attributes=attributes):
                try:
                    return fn(*args, **kwargs)
                except Exception as exc:
                    _report(exc)
                    raise

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["instrument"]
