from __future__ import annotations

import base64
import types

import pytest

from toll_checker.scraping.diagnostics import (
    DiagnosticCapture,
    FileScreenshotSink,
    InlineScreenshotSink,
    sink_from_settings,
)
from toll_checker.services.enums import Checkpoint
from toll_checker.testing.fakes import FakePage, MemorySink


def _settings(**overrides):
    values = dict(
        app_env="dev",
        screenshot_mode="auto",
        screenshot_dir="public",
        screenshot_url_prefix="",
    )
    values.update(overrides)
    return types.SimpleNamespace(**values)


@pytest.mark.unit
def test_inline_sink_returns_data_url():
    ref = InlineScreenshotSink().store(b"png-bytes", Checkpoint.BEFORE, "aliae")

    assert ref.startswith("data:image/png;base64,")
    assert base64.b64decode(ref.split(",", 1)[1]) == b"png-bytes"


@pytest.mark.unit
def test_file_sink_writes_png_and_returns_public_path(tmp_path):
    sink = FileScreenshotSink(tmp_path / "shots", url_prefix="/static/")

    ref = sink.store(b"png-bytes", Checkpoint.AFTER, "sanef")

    assert ref.startswith("/static/sanef-after-")
    assert ref.endswith(".png")
    written = list((tmp_path / "shots").iterdir())
    assert len(written) == 1
    assert written[0].read_bytes() == b"png-bytes"
    assert ref == f"/static/{written[0].name}"


@pytest.mark.unit
def test_sink_from_settings_auto_picks_inline_in_production():
    assert isinstance(sink_from_settings(_settings(app_env="prod")), InlineScreenshotSink)


@pytest.mark.unit
def test_sink_from_settings_auto_picks_file_locally(tmp_path):
    sink = sink_from_settings(_settings(screenshot_dir=str(tmp_path)))

    assert isinstance(sink, FileScreenshotSink)


@pytest.mark.unit
def test_sink_from_settings_explicit_mode_wins():
    assert isinstance(
        sink_from_settings(_settings(app_env="dev", screenshot_mode="inline")),
        InlineScreenshotSink,
    )


@pytest.mark.unit
def test_capture_once_per_checkpoint():
    sink = MemorySink()
    page = FakePage()
    capture = DiagnosticCapture(sink, "demo")

    first = capture.capture(page, Checkpoint.BEFORE)
    again = capture.capture(page, Checkpoint.BEFORE)

    assert first == again == "memory://demo/before"
    assert page.screenshots == 1
    assert capture.screenshots().before == first
    assert capture.screenshots().after is None


@pytest.mark.unit
def test_capture_failure_is_swallowed():
    """
    Why it matters:
    - A crashed page cannot be photographed; that must never replace the real outcome.
    """
    page = FakePage()
    page.screenshot_error = RuntimeError("Target closed")
    capture = DiagnosticCapture(MemorySink(), "demo")

    assert capture.capture(page, Checkpoint.ERROR) is None
    assert capture.screenshots().error is None
