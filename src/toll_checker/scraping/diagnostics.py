"""
diagnostics.py

What this module does
- Takes full-page screenshots at the before / after / error checkpoints and hands the
  bytes to a ScreenshotSink.
- Provides the two sinks: inline data URLs (serverless, read-only FS) and PNG files
  under a public directory (local dev).

Why it matters
- Portal automations fail on overlays and timing; a picture of the page state is the
  fastest diagnosis. Where the picture goes depends on the deployment, not the engine.

Behavior summary
- At most one screenshot per checkpoint per query.
- Capture failures are logged and swallowed; they never mask the real outcome.
"""

from __future__ import annotations

import base64
import logging
import time
from pathlib import Path

from playwright.sync_api import Page

from toll_checker.config.paths import resolve_runtime_path
from toll_checker.config.settings import Settings, is_production
from toll_checker.services.contracts import Screenshots, ScreenshotSink
from toll_checker.services.enums import Checkpoint

logger = logging.getLogger(__name__)


class InlineScreenshotSink:
    def store(self, png: bytes, checkpoint: Checkpoint, provider_id: str) -> str:
        return f"data:image/png;base64,{base64.b64encode(png).decode('ascii')}"


class FileScreenshotSink:
    """
    Writes <directory>/<provider>-<checkpoint>-<epoch ms>.png and returns
    "<url_prefix>/<filename>".
    """

    def __init__(self, directory: str | Path, *, url_prefix: str = "") -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._url_prefix = url_prefix.rstrip("/")

    def store(self, png: bytes, checkpoint: Checkpoint, provider_id: str) -> str:
        filename = f"{provider_id}-{checkpoint.value}-{int(time.time() * 1000)}.png"
        (self._directory / filename).write_bytes(png)
        return f"{self._url_prefix}/{filename}"


def sink_from_settings(s: Settings) -> ScreenshotSink:
    mode = s.screenshot_mode
    if mode == "auto":
        mode = "inline" if is_production(s.app_env) else "file"

    if mode == "inline":
        return InlineScreenshotSink()
    return FileScreenshotSink(
        resolve_runtime_path(s.screenshot_dir),
        url_prefix=s.screenshot_url_prefix,
    )


class DiagnosticCapture:
    def __init__(self, sink: ScreenshotSink, provider_id: str) -> None:
        self._sink = sink
        self._provider_id = provider_id
        self._taken: dict[Checkpoint, str | None] = {}

    def capture(self, page: Page, checkpoint: Checkpoint) -> str | None:
        if checkpoint in self._taken:
            return self._taken[checkpoint]

        ref: str | None = None
        try:
            png = page.screenshot(full_page=True)
            ref = self._sink.store(png, checkpoint, self._provider_id)
        except Exception:
            logger.warning(
                "Screenshot %s failed for %s", checkpoint.value, self._provider_id, exc_info=True
            )

        self._taken[checkpoint] = ref
        return ref

    def screenshots(self) -> Screenshots:
        return Screenshots(
            before=self._taken.get(Checkpoint.BEFORE),
            after=self._taken.get(Checkpoint.AFTER),
            error=self._taken.get(Checkpoint.ERROR),
        )
