"""Activity and error reporting on top of logging and OpenTelemetry spans.

:class:`Telemetry` is both a :class:`logging.Handler` and an OpenTelemetry
SDK span processor. It hands every opted-in record or span to a pluggable
backend (:class:`Handler`) which builds an :class:`Event` and captures it.

Some things to note:

- By default nothing is reported. Call ``with_activity()`` and/or
  ``with_errors()`` to opt in.
- The user id is stable for a machine. The machine identifier is hashed
  with the tool name before anything is sent.
- Capturing happens on a worker thread. Log records and spans are only
  turned into events on the calling thread, so instrumented code never waits
  on the network, and pending deliveries finish before the process exits.

Reporting a function's usage and errors::

    from cata.telemetry import instrument

    @instrument("repo::sync", err=True)
    def sync() -> None:
        ...

Any log record carrying the ``activity`` field is reported too::

    logger.info("synced", extra={"activity": "repo::sync"})

Wiring it up::

    from cata.logging_config import setup_logging
    from cata.telemetry import Telemetry
    from cata.telemetry.posthog import Posthog

    telemetry = Telemetry(Posthog("api-key"), name="mytool").with_activity().with_errors()
    setup_logging("warning", telemetry=telemetry)
"""

from cata.telemetry.event import Event, Handler, Metadata, validate_event
from cata.telemetry.identity import MachineIdError, machine_id, user_id
from cata.telemetry.instrument import instrument
from cata.telemetry.layer import Telemetry, spawn_blocking
from cata.telemetry.visitor import ACTIVITY_FIELD, ERROR_FIELD, BaseHandler, Visitor

__all__ = [
    "ACTIVITY_FIELD",
    "BaseHandler",
    "ERROR_FIELD",
    "Event",
    "Handler",
    "MachineIdError",
    "Metadata",
    "Telemetry",
    "Visitor",
    "instrument",
    "machine_id",
    "spawn_blocking",
    "user_id",
    "validate_event",
]
