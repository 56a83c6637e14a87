"""Bluetooth radio adapter based on bleak."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import struct
import threading
import uuid
from typing import Any, Optional

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakBluetoothNotAvailableError, BleakError

from errors import RadioDisabledError
from interfaces import FailureCallback, ResultCallback

logger = logging.getLogger(__name__)

AD_TYPE_FLAGS = 0x01
AD_TYPE_SERVICE_DATA_16 = 0x16
AD_TYPE_SERVICE_DATA_128 = 0x21
AD_TYPE_MANUFACTURER_DATA = 0xFF
AD_TYPE_TX_POWER = 0x0A
AD_TYPE_COMPLETE_LOCAL_NAME = 0x09

_BASE_UUID_SUFFIX = "-0000-1000-8000-00805f9b34fb"
_MAX_AD_DATA = 254

# LE General Discoverable, BR/EDR not supported. bleak does not expose the
# flags the peripheral sent.
DEFAULT_FLAGS = 0x06


def _ad_structure(ad_type: int, data: bytes) -> bytes:
    data = data[:_MAX_AD_DATA]
    return bytes([len(data) + 1, ad_type]) + data


def _service_data_structure(service_uuid: str, data: bytes) -> bytes:
    service_uuid = service_uuid.lower()
    if service_uuid.startswith("0000") and service_uuid.endswith(_BASE_UUID_SUFFIX):
        short = int(service_uuid[4:8], 16)
        return _ad_structure(AD_TYPE_SERVICE_DATA_16, struct.pack("<H", short) + data)
    return _ad_structure(
        AD_TYPE_SERVICE_DATA_128, uuid.UUID(service_uuid).bytes[::-1] + data
    )


def encode_scan_record(advertisement: Any) -> bytes:
    """Rebuild a raw scan record from bleak's parsed advertisement.

    bleak hands out the advertisement already split into fields, so the AD
    structures are re-encoded in a fixed order: flags, manufacturer data,
    service data, TX power, then the local name that normally arrives in the
    scan response.
    """
    record = bytearray(_ad_structure(AD_TYPE_FLAGS, bytes([DEFAULT_FLAGS])))
    for company_id, data in advertisement.manufacturer_data.items():
        record += _ad_structure(
            AD_TYPE_MANUFACTURER_DATA, struct.pack("<H", company_id) + bytes(data)
        )
    for service_uuid, data in advertisement.service_data.items():
        record += _service_data_structure(service_uuid, bytes(data))
    if advertisement.tx_power is not None:
        record += _ad_structure(AD_TYPE_TX_POWER, struct.pack("b", advertisement.tx_power))
    if advertisement.local_name:
        record += _ad_structure(
            AD_TYPE_COMPLETE_LOCAL_NAME, advertisement.local_name.encode("utf-8")
        )
    return bytes(record)


class BleakRadio:
    """Runs a BleakScanner on a private asyncio loop thread."""

    def __init__(self, start_timeout_s: float = 10.0) -> None:
        self._start_timeout_s = start_timeout_s
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._scanner: Optional[BleakScanner] = None
        self._lock = threading.Lock()

    def is_enabled(self) -> bool:
        # bleak cannot query adapter power up front; a disabled adapter is
        # reported when the scan starts.
        return True

    def start_scan(self, on_result: ResultCallback, on_failure: FailureCallback) -> None:
        def _on_detect(device: BLEDevice, advertisement: AdvertisementData) -> None:
            name = advertisement.local_name or device.name
            on_result(name, device.address, encode_scan_record(advertisement))

        with self._lock:
            if self._scanner is not None:
                return
            loop = self._ensure_loop()
            scanner = BleakScanner(detection_callback=_on_detect)
            future = asyncio.run_coroutine_threadsafe(scanner.start(), loop)
            try:
                future.result(timeout=self._start_timeout_s)
            except BleakBluetoothNotAvailableError as exc:
                raise RadioDisabledError(str(exc)) from exc
            except (BleakError, OSError, concurrent.futures.TimeoutError) as exc:
                future.cancel()
                logger.error("BleakScanner failed to start: %s", exc)
                raise
            self._scanner = scanner
        logger.info("BleakScanner started")

    def stop_scan(self) -> None:
        with self._lock:
            scanner = self._scanner
            self._scanner = None
            if scanner is None or self._loop is None:
                return
            future = asyncio.run_coroutine_threadsafe(scanner.stop(), self._loop)
            try:
                future.result(timeout=self._start_timeout_s)
            except (BleakError, OSError, concurrent.futures.TimeoutError) as exc:
                logger.warning("BleakScanner failed to stop cleanly: %s", exc)
        logger.info("BleakScanner stopped")

    def close(self) -> None:
        self.stop_scan()
        loop = self._loop
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        if not loop.is_running():
            loop.close()
        self._loop = None
        self._thread = None

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=loop.run_forever, name="bleak-loop", daemon=True)
        self._thread.start()
        self._loop = loop
        return loop
