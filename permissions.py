"""Runtime permissions needed before a BLE scan can start."""

from __future__ import annotations

from typing import Iterable, Optional

from interfaces import PermissionGate

BLUETOOTH = "android.permission.BLUETOOTH"
BLUETOOTH_ADMIN = "android.permission.BLUETOOTH_ADMIN"
BLUETOOTH_SCAN = "android.permission.BLUETOOTH_SCAN"
BLUETOOTH_CONNECT = "android.permission.BLUETOOTH_CONNECT"
ACCESS_FINE_LOCATION = "android.permission.ACCESS_FINE_LOCATION"
ACCESS_COARSE_LOCATION = "android.permission.ACCESS_COARSE_LOCATION"

# Platform API levels at which extra permissions became mandatory.
API_LEVEL_Q = 29
API_LEVEL_S = 31


def required_permissions(api_level: Optional[int] = None) -> list[str]:
    permissions = [BLUETOOTH, BLUETOOTH_ADMIN]
    if api_level is None:
        return permissions
    if api_level >= API_LEVEL_S:
        permissions += [BLUETOOTH_SCAN, BLUETOOTH_CONNECT]
    if api_level >= API_LEVEL_Q:
        permissions += [ACCESS_FINE_LOCATION, ACCESS_COARSE_LOCATION]
    return permissions


class StaticPermissionGate:
    """Permission gate for desktop platforms.

    Desktop Bluetooth stacks authorise access at the OS level, so every
    permission is reported as granted unless it is listed in ``denied``.
    """

    def __init__(self, denied: Iterable[str] = ()) -> None:
        self._denied = frozenset(denied)
        self.requested: list[list[str]] = []

    def check_granted(self, permissions: Iterable[str]) -> bool:
        return not any(p in self._denied for p in permissions)

    def request(self, permissions: Iterable[str]) -> dict[str, bool]:
        permissions = list(permissions)
        self.requested.append(permissions)
        return {p: p not in self._denied for p in permissions}


def ensure_permissions(gate: PermissionGate, permissions: Iterable[str]) -> bool:
    missing = [p for p in permissions if not gate.check_granted([p])]
    if not missing:
        return True
    granted = gate.request(missing)
    return all(granted.get(p, False) for p in missing)
