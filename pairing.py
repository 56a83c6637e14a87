"""Paired-device state and the confirmation prompt lifecycle."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from config import DEVICE_MAC_KEY
from interfaces import KeyValueStore
from models import PromptKind, PromptRequest, PromptState

logger = logging.getLogger(__name__)


class PairingState:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._paired_address: Optional[str] = store.get(DEVICE_MAC_KEY)
        self._prompt_state = PromptState.CLOSED

    @property
    def paired_address(self) -> Optional[str]:
        with self._lock:
            return self._paired_address

    @property
    def prompt_state(self) -> PromptState:
        with self._lock:
            return self._prompt_state

    @property
    def is_paired(self) -> bool:
        return self.paired_address is not None

    def request_prompt_if_needed(self, candidate_address: str) -> Optional[PromptRequest]:
        with self._lock:
            if self._paired_address is not None or self._prompt_state == PromptState.OPEN:
                return None
            self._prompt_state = PromptState.OPEN
            return PromptRequest(kind=PromptKind.PAIR, address=candidate_address)

    def request_unpair_prompt(self) -> Optional[PromptRequest]:
        with self._lock:
            if self._paired_address is None or self._prompt_state == PromptState.OPEN:
                return None
            self._prompt_state = PromptState.OPEN
            return PromptRequest(kind=PromptKind.UNPAIR, address=self._paired_address)

    def confirm_pairing(self, address: str) -> bool:
        """Pair ``address``. Refuses to replace a different paired device."""
        with self._lock:
            self._prompt_state = PromptState.CLOSED
            if self._paired_address is not None and self._paired_address != address:
                logger.warning(
                    "Refusing to pair %s while %s is paired", address, self._paired_address
                )
                return False
            self._paired_address = address
            self._store.set(DEVICE_MAC_KEY, address)
        logger.info("Paired device %s", address)
        return True

    def cancel_pairing(self) -> None:
        with self._lock:
            self._prompt_state = PromptState.CLOSED

    def unpair(self) -> None:
        with self._lock:
            previous = self._paired_address
            self._prompt_state = PromptState.CLOSED
            self._paired_address = None
            self._store.set(DEVICE_MAC_KEY, None)
        logger.info("Unpaired device %s", previous)
