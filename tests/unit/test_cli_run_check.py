from __future__ import annotations

import json
import types

import pytest

from toll_checker.providers.registry import ProviderRegistry
from toll_checker.testing.fakes import (
    FakeElement,
    FakeProvisioner,
    MemorySink,
    demo_adapter,
    demo_portal_page,
)


def _fake_settings(**overrides):
    """
    Minimal settings stub.

    Behavior:
    - Satisfies everything run_check reads from settings.
    """
    fields = {"log_level": "WARNING", "max_workers": 2, **overrides}
    return types.SimpleNamespace(**fields)


def _wire(monkeypatch, provisioner, **settings_overrides):
    import toll_checker.scraping.run_check as runner

    registry = ProviderRegistry(
        {
            "demo": demo_adapter(),
            "empty": demo_adapter(id="empty", label="Empty"),
        }
    )
    monkeypatch.setattr(runner, "settings", _fake_settings(**settings_overrides), raising=True)
    monkeypatch.setattr(runner, "get_registry", lambda: registry, raising=True)
    monkeypatch.setattr(runner, "sink_from_settings", lambda s: MemorySink(), raising=True)
    monkeypatch.setattr(runner, "configure_logging", lambda level: None, raising=True)
    monkeypatch.setattr(
        runner,
        "PlaywrightSessionProvisioner",
        types.SimpleNamespace(from_settings=lambda s, headless=None: provisioner),
        raising=True,
    )
    return runner


def _page_for(adapter):
    if adapter.id == "empty":
        page, _, _ = demo_portal_page()
        page.main_frame.elements.clear()
        return page

    page, _, _ = demo_portal_page(
        lambda p: p.main_frame.add(FakeElement(selectors=(".amount",), text="23,50 €"))
    )
    return page


def _lines(capsys) -> list[dict]:
    return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]


@pytest.mark.unit
def test_cli_check_prints_one_json_per_provider_and_exit_zero(monkeypatch, capsys):
    runner = _wire(monkeypatch, FakeProvisioner(_page_for))

    code = runner.main(["check", "--plate", "ab-123-cd", "--provider", "demo"])

    out = _lines(capsys)
    assert code == 0
    assert out == [
        {
            "status": 200,
            "ok": True,
            "provider": "demo",
            "plate": "AB123CD",
            "hasDue": True,
            "amountDue": 2350,
            "currency": "EUR",
            "resultUrl": "https://tolls.example/pay",
            "payUrl": "https://tolls.example/pay",
            "screenshots": {
                "before": "memory://demo/before",
                "after": "memory://demo/after",
            },
        }
    ]


@pytest.mark.unit
def test_cli_check_exit_one_when_any_provider_errors(monkeypatch, capsys):
    runner = _wire(monkeypatch, FakeProvisioner(_page_for))

    code = runner.main(["check", "--plate", "AB123CD"])

    out = {d["provider"]: d for d in _lines(capsys)}
    assert code == 1
    assert out["demo"]["ok"] is True
    assert out["empty"]["ok"] is False
    assert out["empty"]["status"] == 500
    assert out["empty"]["error"] == "element not found"


@pytest.mark.unit
def test_cli_check_missing_plate_exit_two(monkeypatch, capsys):
    provisioner = FakeProvisioner(_page_for)
    runner = _wire(monkeypatch, provisioner)

    code = runner.main(["check", "--plate", " - "])

    assert code == 2
    assert _lines(capsys) == [{"status": 400, "ok": False, "error": "missing plate"}]
    assert provisioner.opened == []


@pytest.mark.unit
def test_cli_bad_worker_count_is_json_error(monkeypatch, capsys):
    provisioner = FakeProvisioner(_page_for)
    runner = _wire(monkeypatch, provisioner, max_workers=0)

    code = runner.main(["check", "--plate", "AB123CD"])

    assert code == 2
    [line] = _lines(capsys)
    assert line["ok"] is False
    assert "MAX_WORKERS" in line["error"]
    assert provisioner.opened == []


@pytest.mark.unit
def test_cli_unknown_provider_is_usage_error(monkeypatch):
    runner = _wire(monkeypatch, FakeProvisioner(_page_for))

    with pytest.raises(SystemExit) as exc:
        runner.main(["check", "--plate", "AB123CD", "--provider", "nope"])

    assert exc.value.code == 2


@pytest.mark.unit
def test_cli_providers_lists_registry(monkeypatch, capsys):
    runner = _wire(monkeypatch, FakeProvisioner(_page_for))

    assert runner.main(["providers"]) == 0

    assert [d["id"] for d in _lines(capsys)] == ["demo", "empty"]


@pytest.mark.unit
def test_cli_diag_reports_executable_and_screenshot(monkeypatch, capsys):
    provisioner = FakeProvisioner()
    runner = _wire(monkeypatch, provisioner)

    assert runner.main(["diag", "--url", "https://example.com"]) == 0

    assert _lines(capsys) == [
        {"ok": True, "executablePath": "/fake/chromium", "screenshot": "memory://diag/after"}
    ]
    assert provisioner.sessions[0].page.gotos[0][0] == "https://example.com"
    assert provisioner.sessions[0].close_calls == 1


@pytest.mark.unit
def test_cli_diag_launch_failure(monkeypatch, capsys):
    runner = _wire(monkeypatch, FakeProvisioner(open_error=RuntimeError("no chromium")))

    assert runner.main(["diag"]) == 1
    assert _lines(capsys) == [{"ok": False, "error": "no chromium"}]


@pytest.mark.unit
def test_cli_ping(monkeypatch, capsys):
    runner = _wire(monkeypatch, FakeProvisioner())

    assert runner.main(["ping"]) == 0
    assert _lines(capsys) == [{"ok": True}]
