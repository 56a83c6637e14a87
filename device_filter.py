"""Decides whether an advertisement comes from the tracked earbuds."""

from __future__ import annotations

from typing import Optional

from config import DEFAULT_TARGET_NAME
from models import AdvertisementFrame

DEVICE_NAME = DEFAULT_TARGET_NAME


def accept(
    frame: AdvertisementFrame,
    paired_address: Optional[str],
    target_name: str = DEVICE_NAME,
) -> bool:
    # A paired address pins the filter to that exact device.
    if paired_address is not None:
        return frame.address == paired_address
    if not frame.name:
        return False
    return target_name.casefold() in frame.name.casefold()
