from __future__ import annotations

import argparse
import json
from typing import Any

from toll_checker.config.settings import require_positive_workers, settings
from toll_checker.providers.models import ProviderAdapter
from toll_checker.providers.registry import get_registry
from toll_checker.scraping.browser import PlaywrightSessionProvisioner
from toll_checker.scraping.diagnostics import DiagnosticCapture, sink_from_settings
from toll_checker.services.enums import Checkpoint
from toll_checker.services.toll_check import TollCheckService
from toll_checker.utils.errors import InvalidPlateError, UnknownProviderError
from toll_checker.utils.log import configure_logging

DIAG_URL = "https://example.com"


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def _run_check(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        workers = require_positive_workers(settings.max_workers)
    except RuntimeError as e:
        _emit({"status": 500, "ok": False, "error": str(e)})
        return 2

    registry = get_registry()
    provisioner = PlaywrightSessionProvisioner.from_settings(
        settings, headless=False if args.headful else None
    )
    service = TollCheckService(
        registry=registry,
        provisioner=provisioner,
        sink=sink_from_settings(settings),
    )

    try:
        results = service.check_many(
            args.plate,
            args.provider,
            max_workers=workers,
        )
    except InvalidPlateError as e:
        _emit({"status": 400, "ok": False, "error": str(e)})
        return 2
    except UnknownProviderError as e:
        parser.error(str(e.args[0]) if e.args else "unknown provider")

    all_ok = True
    for result in results:
        status, payload = result.to_response()
        _emit({"status": status, **payload})
        all_ok = all_ok and result.ok
    return 0 if all_ok else 1


def _run_providers() -> int:
    for adapter in get_registry().values():
        _emit({"id": adapter.id, "label": adapter.label, "entryUrl": adapter.entry_url})
    return 0


def _run_diag(args: argparse.Namespace) -> int:
    """
    Launches the configured browser, loads one page and screenshots it.
    Answers "can this machine run a check at all?" without touching a toll portal.
    """
    provisioner = PlaywrightSessionProvisioner.from_settings(
        settings, headless=False if args.headful else None
    )
    adapter = ProviderAdapter(id="diag", label="Diagnostics", entry_url=args.url)
    capture = DiagnosticCapture(sink_from_settings(settings), adapter.id)

    try:
        session = provisioner.open(adapter)
    except Exception as e:
        _emit({"ok": False, "error": str(e) or e.__class__.__name__})
        return 1

    try:
        session.page.goto(adapter.entry_url, wait_until="domcontentloaded")
        shot = capture.capture(session.page, Checkpoint.AFTER)
        _emit({"ok": True, "executablePath": session.executable_path, "screenshot": shot})
        return 0
    except Exception as e:
        _emit({"ok": False, "error": str(e) or e.__class__.__name__})
        return 1
    finally:
        session.close()


def main(argv: list[str] | None = None) -> int:
    """
    What it does:
    - Provides four run modes:
        1) check: run the plate check against one, several, or all providers
        2) providers: list configured providers
        3) diag: launch the browser once and screenshot a page
        4) ping: liveness check, no browser

    Behavior:
    - check prints one JSON document per provider and exits 0 only when every
      provider returned a definitive answer (due or no due); 1 otherwise;
      2 on an unusable plate.
    """
    parser = argparse.ArgumentParser(prog="toll-check")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="Check a plate against toll portals.")
    p_check.add_argument("--plate", type=str, required=True)
    p_check.add_argument(
        "--provider",
        action="append",
        default=None,
        help="Provider id (repeatable). Defaults to every configured provider.",
    )
    p_check.add_argument("--headful", action="store_true", help="Show the browser window for debugging.")

    sub.add_parser("providers", help="List configured providers.")

    p_diag = sub.add_parser("diag", help="Launch the browser and screenshot a page.")
    p_diag.add_argument("--url", type=str, default=DIAG_URL)
    p_diag.add_argument("--headful", action="store_true", help="Show the browser window for debugging.")

    sub.add_parser("ping", help="Liveness check.")

    args = parser.parse_args(argv)
    configure_logging(settings.log_level)

    if args.cmd == "check":
        return _run_check(args, parser)

    if args.cmd == "providers":
        return _run_providers()

    if args.cmd == "diag":
        return _run_diag(args)

    _emit({"ok": True})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
