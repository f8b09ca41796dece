"""PostHog telemetry backend.

Events are named ``<tool>::activity`` and ``<tool>::error`` unless
overridden with :meth:`Posthog.with_names`. See :mod:`cata.telemetry.visitor`
for the properties sent with every event.

Activity events carry every field attached to the span or record, for
example ``logger.info("synced", extra={"activity": "repo::sync", "count": 3})``.
Error events raised through ``instrument(err=True)`` only add ``error`` (the
string form of the exception) and ``message`` to the standard properties.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import requests

from cata import __version__
from cata.settings import DEFAULT_POSTHOG_HOST
from cata.telemetry.event import Event, validate_event
from cata.telemetry.visitor import BaseHandler

CAPTURE_PATH = "/i/v0/e/"
DEFAULT_TIMEOUT = 10


class CaptureError(RuntimeError):
    pass


class Posthog(BaseHandler):
    """Send telemetry events to PostHog using the given project API key.

    ``timeout`` bounds each HTTP request; the telemetry layer itself applies
    no timeout, so this is what keeps a stalled backend from holding up exit
    indefinitely.
    """

    def __init__(
        self,
        api_key: str,
        *,
        name: str = "cata",
        version: str = __version__,
        host: str = DEFAULT_POSTHOG_HOST,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(name=name, version=version)
        self._api_key = api_key
        self._url = host.rstrip("/") + CAPTURE_PATH
        self._session = session or requests.Session()
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    def payload(self, event: Event) -> dict[str, Any]:
        return {
            "api_key": self._api_key,
            "event": event.name,
            "distinct_id": event.user_id,
            "properties": dict(event.properties),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def capture(self, event: Event) -> None:
        try:
            validate_event(event)
        except ValueError as exc:
            raise CaptureError(str(exc)) from exc
        try:
            response = self._session.post(self._url, json=self.payload(event), timeout=self._timeout)
        except (requests.RequestException, TypeError, ValueError) as exc:
            raise CaptureError(f"posthog request failed: {exc}") from exc
        if response.status_code >= 400:
            raise CaptureError(f"posthog request failed: {response.status_code} {response.text}")


__all__ = ["CaptureError", "Posthog"]
