"""UI-facing coordinator for tap, long press and confirmation dialogs."""

from __future__ import annotations

import logging
from typing import Optional

from interfaces import PermissionGate
from models import PromptKind, PromptRequest, ScanState
from pairing import PairingState
from permissions import ensure_permissions, required_permissions
from scan_controller import ScanController

logger = logging.getLogger(__name__)


class CompanionApp:
    def __init__(
        self,
        controller: ScanController,
        pairing: PairingState,
        permission_gate: PermissionGate,
        api_level: Optional[int] = None,
    ) -> None:
        self._controller = controller
        self._pairing = pairing
        self._permission_gate = permission_gate
        self._api_level = api_level

    @property
    def controller(self) -> ScanController:
        return self._controller

    def on_tap(self) -> bool:
        """Check permissions and start a scan. Ignored while scanning."""
        if self._controller.state == ScanState.SCANNING:
            return False
        if not ensure_permissions(self._permission_gate, required_permissions(self._api_level)):
            self._controller.report_permission_denied()
            return False
        return self._controller.start()

    def on_long_press(self) -> Optional[PromptRequest]:
        return self._pairing.request_unpair_prompt()

    def resolve_prompt(self, request: PromptRequest, accepted: bool) -> None:
        if not accepted:
            self._pairing.cancel_pairing()
            return
        if request.kind == PromptKind.PAIR:
            self._pairing.confirm_pairing(request.address)
        elif request.kind == PromptKind.UNPAIR:
            self._pairing.unpair()

    def shutdown(self) -> None:
        logger.info("Shutting down scan controller")
        self._controller.close()
