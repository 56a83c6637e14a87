"""State-machine based scan session orchestration."""

from __future__ import annotations

import logging
import threading
from queue import Queue
from typing import Any, Callable, Optional, Union

from decoder import decode_battery, hex_dump
from device_filter import DEVICE_NAME, accept
from errors import (
    ERROR_MESSAGES,
    PERMISSION_DENIED,
    RADIO_DISABLED,
    SCAN_FAILED,
    SCAN_FAILED_INTERNAL_ERROR,
    SCAN_FAILURE_REASONS,
    MalformedPayload,
    RadioDisabledError,
)
from interfaces import Radio
from models import (
    AdvertisementFrame,
    BatteryReading,
    PromptRequest,
    ScanFailure,
    ScanState,
    ScanTimeout,
)
from pairing import PairingState

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]
StateCallback = Callable[[ScanState, ScanState], None]
PromptCallback = Callable[[PromptRequest], None]
ErrorCallback = Callable[[str, str], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]

ScanEvent = Union[AdvertisementFrame, ScanFailure, ScanTimeout]

DEFAULT_TIMEOUT_S = 30.0
STOPPED_SUFFIX = "\nUpdates stopped, tap anywhere to refresh"


def compose_status(frame: AdvertisementFrame, reading: BatteryReading) -> str:
    return "\n".join(
        [
            f"Device name: {frame.name or 'Unknown'}",
            f"Device address: {frame.address}",
            f"Case battery: {reading.case.describe()}",
            f"Left earbud battery: {reading.left.describe()}",
            f"Right earbud battery: {reading.right.describe()}",
            f"Debug data: {hex_dump(frame.payload)}",
        ]
    )


class ScanController:
    """Owns the scan lifecycle and turns advertisements into status text.

    Radio callbacks and timeouts are posted to an event queue drained by a
    single dispatcher thread. Every event is tagged with the session that
    produced it, so anything left over from a stopped or superseded session
    is dropped instead of touching the current status.
    """

    def __init__(
        self,
        radio: Radio,
        pairing: PairingState,
        target_name: str = DEVICE_NAME,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        timer_factory: TimerFactory = threading.Timer,
        on_status: Optional[StatusCallback] = None,
        on_state_change: Optional[StateCallback] = None,
        on_prompt: Optional[PromptCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._radio = radio
        self._pairing = pairing
        self._target_name = target_name
        self._timeout_s = timeout_s
        self._timer_factory = timer_factory
        self._on_status = on_status
        self._on_state_change = on_state_change
        self._on_prompt = on_prompt
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = ScanState.IDLE
        self._status = ""
        self._session_id = 0
        self._timer: Any = None
        self._events: Queue[tuple[int, ScanEvent] | None] = Queue()
        self._dispatcher: Optional[threading.Thread] = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def status(self) -> str:
        return self._status

    @property
    def searching_message(self) -> str:
        return f"Searching for {self._target_name}..."

    @property
    def not_found_message(self) -> str:
        return f"{self._target_name} not found, tap anywhere to retry"

    def start(self) -> bool:
        with self._lock:
            if self._state == ScanState.SCANNING:
                return False
            if not self._radio.is_enabled():
                self._report_radio_disabled()
                return False

            self._ensure_dispatcher()
            self._cancel_timer()
            self._session_id += 1
            session_id = self._session_id
            try:
                self._radio.start_scan(
                    lambda name, address, payload: self._post(
                        session_id,
                        AdvertisementFrame(address=address, payload=bytes(payload), name=name),
                    ),
                    lambda error_code: self._post(session_id, ScanFailure(error_code)),
                )
            except RadioDisabledError:
                self._report_radio_disabled()
                return False
            except Exception:
                logger.exception("Starting the BLE scan failed")
                self.on_scan_failed(SCAN_FAILED_INTERNAL_ERROR)
                return False

            self._transition(ScanState.SCANNING)
            self._set_status(self.searching_message)
            self._arm_timer(session_id)
            logger.info("BLE scan started (session %d)", session_id)
            return True

    def stop_manual(self) -> None:
        with self._lock:
            self._stop(ScanState.STOPPED_MANUAL)

    def on_scan_failed(self, error_code: int) -> None:
        reason = SCAN_FAILURE_REASONS.get(error_code, "unknown error")
        message = f"{ERROR_MESSAGES[SCAN_FAILED]}: {error_code} ({reason})"
        logger.error("BLE scan failed with error %s (%s)", error_code, reason)
        with self._lock:
            self._set_status(message)
            self._emit_error(SCAN_FAILED, message)

    def report_permission_denied(self) -> None:
        logger.error("Required permissions not granted")
        with self._lock:
            self._set_status(ERROR_MESSAGES[PERMISSION_DENIED])
            self._emit_error(PERMISSION_DENIED, ERROR_MESSAGES[PERMISSION_DENIED])

    def wait_idle(self) -> None:
        """Block until every queued radio event has been handled."""
        self._events.join()

    def close(self) -> None:
        self.stop_manual()
        dispatcher = self._dispatcher
        if dispatcher is not None and dispatcher.is_alive():
            self._events.put(None)
            dispatcher.join(timeout=1.0)
        self._dispatcher = None

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    def _post(self, session_id: int, event: ScanEvent) -> None:
        self._events.put((session_id, event))

    def _ensure_dispatcher(self) -> None:
        if self._dispatcher is not None and self._dispatcher.is_alive():
            return
        self._dispatcher = threading.Thread(
            target=self._dispatch_loop, name="scan-dispatcher", daemon=True
        )
        self._dispatcher.start()

    def _dispatch_loop(self) -> None:
        while True:
            item = self._events.get()
            try:
                if item is None:  # Sentinel
                    return
                session_id, event = item
                self._handle_event(session_id, event)
            except Exception:
                logger.exception("Failed to handle scan event")
            finally:
                self._events.task_done()

    def _handle_event(self, session_id: int, event: ScanEvent) -> None:
        with self._lock:
            if session_id != self._session_id or self._state != ScanState.SCANNING:
                return
            if isinstance(event, ScanTimeout):
                logger.info("BLE scan timed out after %.0fs", self._timeout_s)
                self._stop(ScanState.STOPPED_TIMEOUT)
            elif isinstance(event, ScanFailure):
                self.on_scan_failed(event.error_code)
            else:
                self._handle_frame(event)

    def _handle_frame(self, frame: AdvertisementFrame) -> None:
        if not accept(frame, self._pairing.paired_address, self._target_name):
            return
        try:
            reading = decode_battery(frame.payload)
        except MalformedPayload as exc:
            logger.debug("Dropping frame from %s: %s", frame.address, exc)
            return
        if reading is None:
            return

        status = compose_status(frame, reading)
        logger.debug("Received data from %s: %s", frame.address, hex_dump(frame.payload))
        self._set_status(status)

        if self._on_prompt is None:
            return
        request = self._pairing.request_prompt_if_needed(frame.address)
        if request is not None:
            self._on_prompt(request)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _stop(self, to_state: ScanState) -> None:
        self._set_status(self._stopped_status())
        if self._state != ScanState.SCANNING:
            return
        self._cancel_timer()
        self._safe_stop_radio()
        self._transition(to_state)
        logger.info("BLE scan stopped")

    def _stopped_status(self) -> str:
        status = self._status
        if status == self.searching_message:
            return self.not_found_message
        if not status or status == self.not_found_message or status.endswith(STOPPED_SUFFIX):
            return status
        return status + STOPPED_SUFFIX

    def _arm_timer(self, session_id: int) -> None:
        timer = self._timer_factory(
            self._timeout_s, lambda: self._post(session_id, ScanTimeout())
        )
        timer.daemon = True
        timer.start()
        self._timer = timer

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _safe_stop_radio(self) -> None:
        try:
            self._radio.stop_scan()
        except Exception:
            logger.exception("Stopping the BLE scan failed")

    def _report_radio_disabled(self) -> None:
        logger.warning("Bluetooth radio is disabled")
        self._set_status(ERROR_MESSAGES[RADIO_DISABLED])
        self._emit_error(RADIO_DISABLED, ERROR_MESSAGES[RADIO_DISABLED])

    def _set_status(self, status: str) -> None:
        if status == self._status:
            return
        self._status = status
        if self._on_status:
            self._on_status(status)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: ScanState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
