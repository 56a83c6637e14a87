"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ScanState(str, Enum):
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    STOPPED_TIMEOUT = "STOPPED_TIMEOUT"
    STOPPED_MANUAL = "STOPPED_MANUAL"


class PromptState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class PromptKind(str, Enum):
    PAIR = "pair"
    UNPAIR = "unpair"


@dataclass(frozen=True)
class AdvertisementFrame:
    address: str
    payload: bytes
    name: Optional[str] = None


@dataclass(frozen=True)
class BatteryLevel:
    percent: int
    charging: bool = False

    @classmethod
    def from_signed(cls, value: int) -> "BatteryLevel":
        """Negative raw values mean charging, offset by 128."""
        if value < 0:
            return cls(percent=value + 128, charging=True)
        return cls(percent=value, charging=False)

    def describe(self) -> str:
        if self.charging:
            return f"{self.percent}% (charging)"
        return f"{self.percent}%"


@dataclass(frozen=True)
class BatteryReading:
    case: BatteryLevel
    left: BatteryLevel
    right: BatteryLevel


@dataclass(frozen=True)
class ScanFailure:
    error_code: int


@dataclass(frozen=True)
class ScanTimeout:
    pass


@dataclass(frozen=True)
class PromptRequest:
    kind: PromptKind
    address: str
