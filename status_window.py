"""Status window showing the latest battery reading."""

from __future__ import annotations

from PySide6.QtCore import QElapsedTimer, Qt, QTimer, Signal
from PySide6.QtGui import QMouseEvent
from PySide6.QtWidgets import QLabel, QVBoxLayout, QWidget

LONG_PRESS_MS = 600


class StatusWindow(QWidget):
    tapped = Signal()
    long_pressed = Signal()

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("FreeClip Companion")
        self.setMinimumSize(420, 320)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setAlignment(Qt.AlignCenter)
        self._label.setTextInteractionFlags(Qt.NoTextInteraction)
        self._label.setStyleSheet("font-size: 16px; padding: 16px;")

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._press_clock = QElapsedTimer()
        self._long_press_timer = QTimer(self)
        self._long_press_timer.setSingleShot(True)
        self._long_press_timer.timeout.connect(self._on_long_press_timeout)
        self._long_press_fired = False

    def set_text(self, text: str) -> None:
        self._label.setText(text)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.LeftButton:
            self._long_press_fired = False
            self._press_clock.start()
            self._long_press_timer.start(LONG_PRESS_MS)
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.LeftButton:
            self._long_press_timer.stop()
            if not self._long_press_fired and self._press_clock.isValid():
                self.tapped.emit()
            self._press_clock.invalidate()
        super().mouseReleaseEvent(event)

    def _on_long_press_timeout(self) -> None:
        self._long_press_fired = True
        self.long_pressed.emit()
