"""Battery status decoder for FreeClip advertisement payloads.

The case broadcasts its battery state at fixed offsets of the raw scan
record: byte 20 is the charging case, 21 the left earbud and 22 the right
earbud. Each byte is a signed 8-bit value; a negative value means the part
is charging and its percentage is the value plus 128.
"""

from __future__ import annotations

import logging
import struct
from typing import Optional

from errors import MalformedPayload
from models import BatteryLevel, BatteryReading

logger = logging.getLogger(__name__)

BATTERY_OFFSET = 20
MIN_PAYLOAD_LENGTH = BATTERY_OFFSET + 3

_BATTERY_STRUCT = struct.Struct("bbb")


def decode_battery(payload: bytes) -> Optional[BatteryReading]:
    """Decode the case/left/right battery triple from ``payload``.

    Returns None for the all-zero triple, which the case broadcasts while it
    has no valid reading. Raises MalformedPayload if the payload is too short.
    """
    if len(payload) < MIN_PAYLOAD_LENGTH:
        raise MalformedPayload(len(payload), MIN_PAYLOAD_LENGTH)

    case, left, right = _BATTERY_STRUCT.unpack_from(payload, BATTERY_OFFSET)
    if case == 0 and left == 0 and right == 0:
        logger.debug("Ignoring all-zero battery triple")
        return None

    return BatteryReading(
        case=BatteryLevel.from_signed(case),
        left=BatteryLevel.from_signed(left),
        right=BatteryLevel.from_signed(right),
    )


def hex_dump(payload: bytes) -> str:
    return " ".join(f"{b:02x}" for b in payload)
