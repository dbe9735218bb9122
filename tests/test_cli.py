from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from fdbc_gate.__main__ import cli
from fdbc_gate.exceptions import NativeLinkageError
from fdbc_gate.gate import VersionGate


def _invoke(args: list[str], expected_exit: int = 0) -> dict[str, Any]:
    runner = CliRunner()
    result = runner.invoke(cli, args)
    assert result.exit_code == expected_exit, result.output
    return json.loads(result.stdout)


def test_select_reports_selected_version(default_gate: VersionGate, clean_env: Any) -> None:
    payload = _invoke(["select", "630"])
    assert payload == {"status": "selected", "api_version": 630}
    assert default_gate.selected_version == 630


def test_select_defaults_from_environment(default_gate: VersionGate, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FDBC_API_VERSION", "710")
    payload = _invoke(["select", "--compact"])
    assert payload["api_version"] == 710


def test_select_unsupported_exits_1(default_gate: VersionGate, clean_env: Any) -> None:
    payload = _invoke(["select", "5"], expected_exit=1)
    assert payload["status"] == "error"
    assert payload["error_code"] == "unsupported_version"


def test_select_linkage_failure_exits_2(clean_env: Any) -> None:
    from fdbc_gate import gate as gate_mod

    def loader() -> Any:
        raise NativeLinkageError("Unable to load the FoundationDB C library")

    gate_mod.reset_default_gate(loader)
    try:
        payload = _invoke(["select", "600"], expected_exit=2)
    finally:
        gate_mod.reset_default_gate()
    assert payload["error_code"] == "native_linkage"


def test_health_offline_pass(default_gate: VersionGate, clean_env: Any) -> None:
    payload = _invoke(["health"])
    assert payload["status"] == "pass"
    assert "python" in payload["checks"]
    assert payload["checks"]["config"]["api_version"] == 600
    assert "native" not in payload["checks"]


def test_health_native_ok(
    default_gate: VersionGate, fake_library: Any, clean_env: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    from fdbc_gate import __main__ as main_mod

    monkeypatch.setattr(main_mod, "load_library_from_env", lambda: fake_library)
    payload = _invoke(["health", "--native"])
    assert payload["status"] == "pass"
    assert payload["checks"]["native"] == {"ok": True, "max_api_version": 730}


def test_health_native_degraded(
    default_gate: VersionGate, make_library: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    from fdbc_gate import __main__ as main_mod

    monkeypatch.setenv("FDBC_API_VERSION", "720")
    monkeypatch.setattr(main_mod, "load_library_from_env", lambda: make_library(max_version=710))
    payload = _invoke(["health", "--native"])
    assert payload["status"] == "degraded"
    assert payload["checks"]["native"]["ok"] is False


def test_health_native_missing_library(default_gate: VersionGate, clean_env: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    from fdbc_gate import __main__ as main_mod

    def missing() -> Any:
        raise NativeLinkageError("Unable to load the FoundationDB C library")

    monkeypatch.setattr(main_mod, "load_library_from_env", missing)
    payload = _invoke(["health", "--native"])
    assert payload["status"] == "degraded"
    assert payload["checks"]["native"]["ok"] is False


def test_max_version(fake_library: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    from fdbc_gate import __main__ as main_mod

    monkeypatch.setattr(main_mod, "load_library_from_env", lambda: fake_library)
    result = CliRunner().invoke(cli, ["max-version"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "730"


def test_health_native_below_minimum_is_degraded(
    default_gate: VersionGate, fake_library: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    from fdbc_gate import __main__ as main_mod

    monkeypatch.setenv("FDBC_API_VERSION", "5")
    monkeypatch.setattr(main_mod, "load_library_from_env", lambda: fake_library)
    payload = _invoke(["health", "--native"])
    assert payload["status"] == "degraded"
    assert payload["checks"]["native"] == {"ok": False, "max_api_version": 730}
