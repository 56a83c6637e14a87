"""Shared error codes, user-facing messages and exceptions."""

from __future__ import annotations

MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
SENTINEL_READING = "SENTINEL_READING"
RADIO_DISABLED = "RADIO_DISABLED"
SCAN_FAILED = "SCAN_FAILED"
PERMISSION_DENIED = "PERMISSION_DENIED"

ERROR_MESSAGES = {
    MALFORMED_PAYLOAD: "Advertisement payload is too short.",
    SENTINEL_READING: "Advertisement carries an all-zero battery reading.",
    RADIO_DISABLED: "Please turn on Bluetooth, then tap anywhere to retry",
    SCAN_FAILED: "Bluetooth scan failed",
    PERMISSION_DENIED: "Please grant all requested permissions, then tap anywhere to retry",
}

SCAN_FAILED_ALREADY_STARTED = 1
SCAN_FAILED_APPLICATION_REGISTRATION_FAILED = 2
SCAN_FAILED_INTERNAL_ERROR = 3
SCAN_FAILED_FEATURE_UNSUPPORTED = 4

SCAN_FAILURE_REASONS = {
    SCAN_FAILED_ALREADY_STARTED: "already started",
    SCAN_FAILED_APPLICATION_REGISTRATION_FAILED: "application registration failed",
    SCAN_FAILED_INTERNAL_ERROR: "internal error",
    SCAN_FAILED_FEATURE_UNSUPPORTED: "feature unsupported",
}


class MalformedPayload(ValueError):
    code = MALFORMED_PAYLOAD

    def __init__(self, length: int, required: int) -> None:
        super().__init__(f"payload has {length} bytes, need at least {required}")
        self.length = length
        self.required = required


class RadioDisabledError(RuntimeError):
    code = RADIO_DISABLED
