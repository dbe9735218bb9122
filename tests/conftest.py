from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterator

import pytest

from fdbc_gate import gate as gate_mod
from fdbc_gate.exceptions import (
    API_VERSION_ALREADY_SET,
    API_VERSION_INVALID,
    API_VERSION_NOT_SUPPORTED,
)
from fdbc_gate.gate import VersionGate


class FakeLibrary:
    """Stands in for libfdb_c: supports [min_version, max_version], selects once."""

    def __init__(self, min_version: int = 13, max_version: int = 730, *, delay: float = 0.0) -> None:
        self.min_version = min_version
        self.max_version = max_version
        self.delay = delay
        self.calls: list[int] = []
        self.selected: int | None = None
        self.diagnostic_calls = 0
        self._lock = threading.Lock()

    def select_api_version(self, runtime_version: int) -> int:
        with self._lock:
            self.calls.append(runtime_version)
        if self.delay:
            time.sleep(self.delay)
        if self.selected is not None:
            return API_VERSION_ALREADY_SET
        if runtime_version < self.min_version:
            return API_VERSION_NOT_SUPPORTED
        if runtime_version > self.max_version:
            return API_VERSION_INVALID
        self.selected = runtime_version
        return 0

    def get_max_api_version(self) -> int:
        self.diagnostic_calls += 1
        return self.max_version

    def get_error(self, code: int) -> str:
        self.diagnostic_calls += 1
        return {
            API_VERSION_ALREADY_SET: "API version may be set only once",
            API_VERSION_INVALID: "API version not valid",
            API_VERSION_NOT_SUPPORTED: "API version not supported",
        }.get(code, "")


@pytest.fixture()
def fake_library() -> FakeLibrary:
    return FakeLibrary()


@pytest.fixture()
def events() -> list[dict[str, Any]]:
    return []


@pytest.fixture()
def gate(fake_library: FakeLibrary, events: list[dict[str, Any]]) -> VersionGate:
    return VersionGate(lambda: fake_library, log_event=events.append)


@pytest.fixture()
def default_gate(fake_library: FakeLibrary) -> Iterator[VersionGate]:
    installed = gate_mod.reset_default_gate(lambda: fake_library)
    yield installed
    gate_mod.reset_default_gate()


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Callable[[], None]:
    def _clean() -> None:
        for name in ("FDBC_API_VERSION", "FDBC_HEADER_VERSION", "FDBC_LIBRARY_PATH"):
            monkeypatch.delenv(name, raising=False)

    _clean()
    return _clean


@pytest.fixture()
def make_library() -> type[FakeLibrary]:
    return FakeLibrary
