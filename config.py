"""Simple JSON-based key-value store for settings and the paired device."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

DEVICE_MAC_KEY = "deviceMac"
TARGET_NAME_KEY = "targetName"
SCAN_TIMEOUT_KEY = "scanTimeoutSeconds"

DEFAULT_TARGET_NAME = "Huawei FreeClip"
DEFAULT_SCAN_TIMEOUT_S = 30.0


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "freeclip_companion" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is None:
            return None
        return str(value)

    def set(self, key: str, value: Optional[str]) -> None:
        data = self._read_all()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self._write_all(data)

    def get_device_mac(self) -> Optional[str]:
        return self.get(DEVICE_MAC_KEY)

    def set_device_mac(self, address: Optional[str]) -> None:
        self.set(DEVICE_MAC_KEY, address)

    def get_target_name(self) -> str:
        return self.get(TARGET_NAME_KEY) or DEFAULT_TARGET_NAME

    def get_scan_timeout_s(self) -> float:
        raw = self._read_all().get(SCAN_TIMEOUT_KEY)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return DEFAULT_SCAN_TIMEOUT_S
        return value if value > 0 else DEFAULT_SCAN_TIMEOUT_S

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
