"""Stable, anonymised user identifiers."""

from __future__ import annotations

import hashlib
import hmac
import re
import subprocess
import sys
import uuid
from pathlib import Path

UNKNOWN_MACHINE = "unknown"

_LINUX_PATHS = (Path("/var/lib/dbus/machine-id"), Path("/etc/machine-id"))
_IOREG_UUID = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


class MachineIdError(RuntimeError):
    pass


def _linux_machine_id() -> str:
    for path in _LINUX_PATHS:
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if value:
            return value
    raise MachineIdError("no machine-id file found")


def _darwin_machine_id() -> str:
    try:
        result = subprocess.run(
            ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise MachineIdError(f"ioreg failed: {exc}") from exc
    match = _IOREG_UUID.search(result.stdout)
    if not match:
        raise MachineIdError("IOPlatformUUID missing from ioreg output")
    return match.group(1)


def _windows_machine_id() -> str:
    import winreg  # windows only

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\Microsoft\Cryptography") as key:
            value, _ = winreg.QueryValueEx(key, "MachineGuid")
    except OSError as exc:
        raise MachineIdError(f"MachineGuid unavailable: {exc}") from exc
    return str(value)


def machine_id() -> str:
    """Return the platform identifier of this machine."""
    if sys.platform.startswith("linux"):
        return _linux_machine_id()
    if sys.platform == "darwin":
        return _darwin_machine_id()
    if sys.platform == "win32":
        return _windows_machine_id()
    raise MachineIdError(f"unsupported platform: {sys.platform}")


def user_id(name: str) -> str:
    """Hash the machine identifier with ``name`` as key into a UUID string.

    The raw machine identifier never leaves this function. When it cannot be
    determined the ``unknown`` sentinel is hashed instead.
    """
    try:
        mid = machine_id()
    except MachineIdError:
        mid = UNKNOWN_MACHINE
    tag = hmac.new(name.encode("utf-8"), mid.encode("utf-8"), hashlib.sha256).digest()
    return str(uuid.UUID(bytes=tag[:16]))
