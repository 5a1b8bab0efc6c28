from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from catalogsync.domain.model import EntityKind, SyncDirection
from catalogsync.domain.reconciliation import RefreshResult
from catalogsync.ui import cli

if TYPE_CHECKING:
    from catalogsync.config import SyncConfig


class _StubOrchestrator:
    refresh_in_progress = False

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CATALOGSYNC_DIRECTION",
        "CATALOGSYNC_INCLUDE",
        "CATALOGSYNC_EXCLUDE",
        "CATALOGSYNC_PAGE_SIZE",
        "CATALOGSYNC_ALLOW_REMOTE_DELETE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    seen: dict[str, object] = {"result": RefreshResult()}

    def fake_build(*, sync_config: SyncConfig, endpoint: str | None) -> _StubOrchestrator:
        seen["config"] = sync_config
        seen["endpoint"] = endpoint
        return _StubOrchestrator()

    def fake_refresh(*, orchestrator: _StubOrchestrator) -> RefreshResult:
        seen["orchestrator"] = orchestrator
        seen["active"] = list(cli._ACTIVE)  # noqa: SLF001
        return seen["result"]  # type: ignore[return-value]

    monkeypatch.setattr(cli, "build_orchestrator", fake_build)
    monkeypatch.setattr(cli, "refresh_unity_catalog", fake_refresh)
    return seen


def test_refresh_applies_flag_overrides(captured: dict[str, object]) -> None:
    cli.main(
        [
            "refresh",
            "--endpoint",
            "http://uc.test",
            "--direction",
            "to-third-party",
            "--include",
            "main",
            "--include",
            "ops",
            "--exclude",
            "main.tmp",
            "--allow-remote-delete",
        ]
    )

    config = captured["config"]
    assert captured["endpoint"] == "http://uc.test"
    assert config.direction is SyncDirection.TO_THIRD_PARTY  # type: ignore[attr-defined]
    assert config.include == ("main", "ops")  # type: ignore[attr-defined]
    assert config.exclude == ("main.tmp",)  # type: ignore[attr-defined]
    assert config.allow_remote_delete  # type: ignore[attr-defined]
    assert captured["active"] == [captured["orchestrator"]]
    assert cli._ACTIVE == []  # noqa: SLF001


def test_refresh_without_flags_uses_environment(
    captured: dict[str, object], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CATALOGSYNC_DIRECTION", "from_third_party")

    cli.main(["refresh"])

    config = captured["config"]
    assert captured["endpoint"] is None
    assert config.direction is SyncDirection.FROM_THIRD_PARTY  # type: ignore[attr-defined]
    assert not config.allow_remote_delete  # type: ignore[attr-defined]


def test_invalid_direction_exits_with_usage_error(captured: dict[str, object]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["refresh", "--direction", "sideways"])

    assert exc.value.code == 2
    assert "config" not in captured


def test_failed_kinds_exit_non_zero(captured: dict[str, object]) -> None:
    captured["result"] = RefreshResult(failed_kinds=[EntityKind.TABLE])

    with pytest.raises(SystemExit) as exc:
        cli.main(["refresh"])

    assert exc.value.code == 1


def test_unexpected_error_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(**_: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "build_orchestrator", explode)

    with pytest.raises(SystemExit) as exc:
        cli.main(["refresh"])

    assert exc.value.code == 1


def test_missing_command_is_rejected() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main([])

    assert exc.value.code == 2


def test_sigint_cancels_running_refresh(monkeypatch: pytest.MonkeyPatch) -> None:
    orchestrator = _StubOrchestrator()
    orchestrator.refresh_in_progress = True
    installed: list[object] = []
    monkeypatch.setattr(cli, "signal", lambda _sig, handler: installed.append(handler))
    monkeypatch.setattr(cli, "_ACTIVE", [orchestrator])

    cli.sigint_handler(2, None)

    assert orchestrator.cancelled
    assert installed == [cli._abort_handler]  # noqa: SLF001


def test_sigint_without_refresh_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "_ACTIVE", [])

    with pytest.raises(SystemExit) as exc:
        cli.sigint_handler(2, None)

    assert exc.value.code == 0
