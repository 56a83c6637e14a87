"""Protocol interfaces used by ScanController and CompanionApp."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Protocol

ResultCallback = Callable[[Optional[str], str, bytes], None]
FailureCallback = Callable[[int], None]


class Radio(Protocol):
    def is_enabled(self) -> bool: ...

    def start_scan(self, on_result: ResultCallback, on_failure: FailureCallback) -> None: ...

    def stop_scan(self) -> None: ...


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: Optional[str]) -> None: ...


class PermissionGate(Protocol):
    def check_granted(self, permissions: Iterable[str]) -> bool: ...

    def request(self, permissions: Iterable[str]) -> dict[str, bool]: ...
