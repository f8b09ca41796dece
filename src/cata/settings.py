"""Runtime settings for cata based tools."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from cata import __version__

DEFAULT_POSTHOG_HOST = "https://us.i.posthog.com"

_DISABLE_VALUES = {"", "0", "false", "no", "off", "none"}
_ALL_VALUES = {"1", "true", "yes", "on", "all"}


@dataclass(frozen=True)
class RuntimeSettings:
    tool_name: str
    home_dir: Path
    log_dir: Path
    log_level: str = "WARNING"
    telemetry_activity: bool = False
    telemetry_errors: bool = False
    posthog_api_key: str | None = None
    posthog_host: str = DEFAULT_POSTHOG_HOST
    cli_version: str = __version__

    @property
    def telemetry_enabled(self) -> bool:
        return self.telemetry_activity or self.telemetry_errors

    @property
    def telemetry_log(self) -> Path:
        return self.log_dir / "telemetry.jsonl"


def env_prefix(tool_name: str) -> str:
    return tool_name.upper().replace("-", "_")


def _parse_telemetry(value: str) -> tuple[bool, bool]:
    value = value.strip().lower()
    if value in _DISABLE_VALUES:
        return False, False
    if value in _ALL_VALUES:
        return True, True
    parts = {part.strip() for part in value.split(",") if part.strip()}
    unknown = parts - {"activity", "errors", "error"}
    if unknown:
        raise ValueError(f"Unsupported telemetry option(s): {', '.join(sorted(unknown))}")
    return "activity" in parts, bool(parts & {"errors", "error"})


def load_settings(tool_name: str = "cata", environ: Mapping[str, str] | None = None) -> RuntimeSettings:
    env = os.environ if environ is None else environ
    prefix = env_prefix(tool_name)
    home_raw = env.get(f"{prefix}_HOME")
    home = Path(home_raw).expanduser() if home_raw else Path.home() / f".{tool_name}"
    activity, errors = _parse_telemetry(env.get(f"{prefix}_TELEMETRY", ""))
    return RuntimeSettings(
        tool_name=tool_name,
        home_dir=home,
        log_dir=home / "logs",
        log_level=env.get(f"{prefix}_LOG_LEVEL", "WARNING").upper(),
        telemetry_activity=activity,
        telemetry_errors=errors,
        posthog_api_key=env.get(f"{prefix}_POSTHOG_API_KEY") or None,
        posthog_host=env.get(f"{prefix}_POSTHOG_HOST") or DEFAULT_POSTHOG_HOST,
    )
