from __future__ import annotations

from typing import Optional

from companion import CompanionApp
from config import DEVICE_MAC_KEY
from models import PromptKind, PromptRequest, PromptState, ScanState
from pairing import PairingState
from permissions import BLUETOOTH_ADMIN, StaticPermissionGate
from scan_controller import ScanController


class MemoryStore:
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.data.pop(key, None)
        else:
            self.data[key] = value


class FakeRadio:
    def __init__(self) -> None:
        self.start_calls = 0
        self.on_result = None

    def is_enabled(self) -> bool:
        return True

    def start_scan(self, on_result, on_failure) -> None:  # noqa: ANN001
        self.start_calls += 1
        self.on_result = on_result

    def stop_scan(self) -> None:
        pass


class NullTimer:
    def __init__(self, interval: float, function) -> None:  # noqa: ANN001
        self.daemon = False

    def start(self) -> None:
        pass

    def cancel(self) -> None:
        pass


def _make(
    gate: Optional[StaticPermissionGate] = None,
    store: Optional[MemoryStore] = None,
    prompts: Optional[list[PromptRequest]] = None,
) -> tuple[CompanionApp, FakeRadio, PairingState, MemoryStore]:
    store = store or MemoryStore()
    radio = FakeRadio()
    pairing = PairingState(store)
    controller = ScanController(
        radio=radio,
        pairing=pairing,
        timer_factory=NullTimer,
        on_prompt=prompts.append if prompts is not None else None,
    )
    app = CompanionApp(controller, pairing, gate or StaticPermissionGate(), api_level=33)
    return app, radio, pairing, store


def _payload(case: int, left: int, right: int) -> bytes:
    data = bytearray(23)
    data[20:23] = bytes([case & 0xFF, left & 0xFF, right & 0xFF])
    return bytes(data)


def test_tap_starts_scan_when_permissions_granted() -> None:
    app, radio, _, _ = _make()

    assert app.on_tap() is True

    assert app.controller.state == ScanState.SCANNING
    assert radio.start_calls == 1
    app.shutdown()


def test_tap_while_scanning_is_ignored() -> None:
    app, radio, _, _ = _make()
    app.on_tap()

    assert app.on_tap() is False
    assert radio.start_calls == 1
    app.shutdown()


def test_tap_with_denied_permission_reports_status() -> None:
    gate = StaticPermissionGate(denied=[BLUETOOTH_ADMIN])
    app, radio, _, _ = _make(gate=gate)

    assert app.on_tap() is False

    assert radio.start_calls == 0
    assert app.controller.state == ScanState.IDLE
    assert "grant all requested permissions" in app.controller.status
    assert gate.requested == [[BLUETOOTH_ADMIN]]


def test_long_press_opens_unpair_prompt_only_when_paired() -> None:
    app, _, _, _ = _make()
    assert app.on_long_press() is None

    app, _, pairing, store = _make(store=MemoryStore({DEVICE_MAC_KEY: "AA:BB"}))
    request = app.on_long_press()
    assert request == PromptRequest(kind=PromptKind.UNPAIR, address="AA:BB")

    app.resolve_prompt(request, accepted=True)
    assert pairing.paired_address is None
    assert DEVICE_MAC_KEY not in store.data


def test_declined_unpair_keeps_device() -> None:
    app, _, pairing, _ = _make(store=MemoryStore({DEVICE_MAC_KEY: "AA:BB"}))
    request = app.on_long_press()
    assert request is not None

    app.resolve_prompt(request, accepted=False)

    assert pairing.paired_address == "AA:BB"
    assert pairing.prompt_state == PromptState.CLOSED


def test_end_to_end_pairing_flow() -> None:
    prompts: list[PromptRequest] = []
    app, radio, pairing, store = _make(prompts=prompts)
    app.on_tap()

    radio.on_result("Huawei FreeClip Pro", "AA:BB", _payload(50, -28, -128))
    radio.on_result("Huawei FreeClip Pro", "AA:BB", _payload(50, -28, -128))
    app.controller.wait_idle()

    assert "Case battery: 50%" in app.controller.status
    assert "Left earbud battery: 100% (charging)" in app.controller.status
    assert "Right earbud battery: 0% (charging)" in app.controller.status
    assert prompts == [PromptRequest(kind=PromptKind.PAIR, address="AA:BB")]

    app.resolve_prompt(prompts[0], accepted=True)
    assert store.data[DEVICE_MAC_KEY] == "AA:BB"

    status = app.controller.status
    radio.on_result("Huawei FreeClip Pro", "CC:DD", _payload(10, 10, 10))
    app.controller.wait_idle()
    assert app.controller.status == status
    app.shutdown()


def test_declined_pairing_prompts_again_on_next_sighting() -> None:
    prompts: list[PromptRequest] = []
    app, radio, pairing, _ = _make(prompts=prompts)
    app.on_tap()

    radio.on_result("Huawei FreeClip", "AA:BB", _payload(50, 50, 50))
    app.controller.wait_idle()
    app.resolve_prompt(prompts[0], accepted=False)
    radio.on_result("Huawei FreeClip", "AA:BB", _payload(50, 50, 50))
    app.controller.wait_idle()

    assert pairing.paired_address is None
    assert len(prompts) == 2
    app.shutdown()
