"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys

from companion import CompanionApp
from config import JsonConfigStore
from models import PromptKind, PromptRequest, ScanState
from pairing import PairingState
from permissions import StaticPermissionGate
from radio import BleakRadio
from scan_controller import ScanController

try:
    from PySide6.QtCore import QObject, Signal
    from PySide6.QtWidgets import QApplication, QMessageBox

    from status_window import StatusWindow
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger("freeclip_companion")


def _configure_logging() -> None:
    level = os.getenv("FREECLIP_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class UIBridge(QObject):
    status_signal = Signal(str)
    prompt_signal = Signal(object)
    state_signal = Signal(str, str)  # from_state, to_state


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        self.window = StatusWindow()
        self.ui = UIBridge()
        self.ui.status_signal.connect(self.window.set_text)
        self.ui.prompt_signal.connect(self._show_prompt_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)

        self.radio = BleakRadio()
        self.pairing = PairingState(self.config_store)
        target_name = self.config_store.get_target_name()
        self.controller = ScanController(
            radio=self.radio,
            pairing=self.pairing,
            target_name=target_name,
            timeout_s=self.config_store.get_scan_timeout_s(),
            on_status=self._on_status,
            on_state_change=self._on_state_change,
            on_prompt=self._on_prompt,
        )
        self.companion = CompanionApp(
            controller=self.controller,
            pairing=self.pairing,
            permission_gate=StaticPermissionGate(),
        )

        self.window.tapped.connect(self.companion.on_tap)
        self.window.long_pressed.connect(self._on_long_press)
        self.app.aboutToQuit.connect(self.quit)

    # ------------------------------------------------------------------
    # Callbacks (called from the dispatcher thread → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_status(self, text: str) -> None:
        self.ui.status_signal.emit(text)

    def _on_prompt(self, request: PromptRequest) -> None:
        self.ui.prompt_signal.emit(request)

    def _on_state_change(self, from_state: ScanState, to_state: ScanState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_long_press(self) -> None:
        request = self.companion.on_long_press()
        if request is not None:
            self._show_prompt_ui(request)

    def _show_prompt_ui(self, request: PromptRequest) -> None:
        if request.kind == PromptKind.PAIR:
            title = "Pair device"
            text = (
                f"Pair {request.address} as your device? "
                "You can long-press anywhere in the window to unpair it later."
            )
        else:
            title = "Unpair device"
            text = f"Unpair {request.address}?"
        answer = QMessageBox.question(
            self.window,
            title,
            text,
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        self.companion.resolve_prompt(request, answer == QMessageBox.Yes)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state == ScanState.SCANNING.value:
            self.window.setWindowTitle("FreeClip Companion (scanning)")
        else:
            self.window.setWindowTitle("FreeClip Companion")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.window.show()
        self.companion.on_tap()
        return self.app.exec()

    def quit(self) -> None:
        self.companion.shutdown()
        self.radio.close()


def main() -> int:
    _configure_logging()
    logger.info("FreeClip Companion starting")
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
