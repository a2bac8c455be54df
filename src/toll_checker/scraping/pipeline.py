"""
pipeline.py

What this module does
- Runs one plate check against one provider, start to finish, and returns a single
  AutomationResult.

Why it matters
- Every provider goes through the same linear flow; provider differences are data
  (ProviderAdapter), not code.

Behavior summary
navigate -> settle -> consent -> screenshot(before) -> before-fill steps -> locate input
-> fill -> before-submit steps -> locate submit -> submit -> after-submit steps -> settle
-> extract -> screenshot(after | error) -> classify.

- The browsing session is released exactly once, whatever happens.
- Missing input/submit and failed submit are classified errors; anything else raised
  along the way becomes an error carrying its message. Nothing is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from toll_checker.providers.models import ActionStep, ProviderAdapter, SelectorStrategy
from toll_checker.scraping.classify import OutcomeClassifier, PipelineFindings
from toll_checker.scraping.consent import ConsentResolver
from toll_checker.scraping.diagnostics import DiagnosticCapture
from toll_checker.scraping.extract import ResultExtractor
from toll_checker.scraping.form import FormSubmitter
from toll_checker.scraping.locator import ElementLocator, Located
from toll_checker.scraping.stabilize import StabilizationWaiter
from toll_checker.services.contracts import AutomationResult, ScreenshotSink, SessionProvisioner
from toll_checker.services.enums import Checkpoint
from toll_checker.utils.errors import (
    ElementNotFoundError,
    NavigationFailedError,
    SubmissionFailedError,
)
from toll_checker.utils.log import log_event

logger = logging.getLogger(__name__)

STEP_CLICK_TIMEOUT_MS = 3_000


class TollCheckPipeline:
    def __init__(
        self,
        adapter: ProviderAdapter,
        *,
        provisioner: SessionProvisioner,
        sink: ScreenshotSink,
        locator: ElementLocator | None = None,
        consent: ConsentResolver | None = None,
        form: FormSubmitter | None = None,
        stabilizer: StabilizationWaiter | None = None,
        extractor: ResultExtractor | None = None,
        classifier: OutcomeClassifier | None = None,
    ) -> None:
        self.adapter = adapter
        self._provisioner = provisioner
        self._sink = sink
        self._locator = locator or ElementLocator()
        self._consent = consent or ConsentResolver(self._locator)
        self._form = form or FormSubmitter()
        self._stabilizer = stabilizer or StabilizationWaiter()
        self._extractor = extractor or ResultExtractor(self._locator)
        self._classifier = classifier or OutcomeClassifier()

    def run(self, plate: str) -> AutomationResult:
        """
        `plate` must already be normalized (see services.plate.normalize_plate).
        """
        adapter = self.adapter
        capture = DiagnosticCapture(self._sink, adapter.id)
        log_event(logger, logging.INFO, "check.start", provider=adapter.id, plate=plate)

        try:
            session = self._provisioner.open(adapter)
        except Exception as e:
            logger.error("Could not open a browser session for %s: %s", adapter.id, e)
            findings = PipelineFindings(failure=_describe(e))
        else:
            try:
                findings = self._drive(session.page, plate, capture)
            finally:
                try:
                    session.close()
                except Exception:
                    logger.warning("Session teardown failed for %s", adapter.id, exc_info=True)

        result = self._classifier.classify(
            findings,
            provider_id=adapter.id,
            plate=plate,
            screenshots=capture.screenshots(),
            fallback_pay_url=adapter.payment_fallback_url,
        )
        log_event(
            logger,
            logging.INFO,
            "check.done",
            provider=adapter.id,
            outcome=result.outcome.value,
            amount=result.amount_due_minor_units,
            error=result.error_message,
        )
        return result

    def _drive(self, page: Page, plate: str, capture: DiagnosticCapture) -> PipelineFindings:
        adapter = self.adapter
        try:
            self._navigate(page)
            self._stabilizer.wait(page, adapter.after_navigation)
            self._consent.resolve(page, adapter)
            capture.capture(page, Checkpoint.BEFORE)

            self._run_steps(page, adapter.before_fill_steps)
            plate_input = self._require(page, adapter.plate_input_strategies, "plate input")
            self._form.fill(plate_input.element, plate)

            self._run_steps(page, adapter.before_submit_steps)
            button = self._require(page, adapter.submit_strategies, "submit control")
            self._form.submit(button.element)

            self._run_steps(page, adapter.after_submit_steps)
            self._stabilizer.wait(page, adapter.after_submit)
            extraction = self._extractor.extract(page, adapter)

        except ElementNotFoundError as e:
            logger.warning("%s: %s", adapter.id, e)
            findings = PipelineFindings(element_missing=True, failure=str(e))
        except SubmissionFailedError as e:
            logger.warning("%s: %s", adapter.id, e)
            findings = PipelineFindings(submission_failed=True, failure=str(e))
        except Exception as e:
            logger.exception("%s: check failed", adapter.id)
            findings = PipelineFindings(failure=_describe(e))
        else:
            capture.capture(page, Checkpoint.AFTER)
            return PipelineFindings(extraction=extraction)

        capture.capture(page, Checkpoint.ERROR)
        return findings

    def _navigate(self, page: Page) -> None:
        try:
            page.goto(
                self.adapter.entry_url,
                wait_until="domcontentloaded",
                timeout=self.adapter.navigation_timeout_ms,
            )
        except PlaywrightError as e:
            raise NavigationFailedError(f"navigation failed: {e}") from e

    def _require(self, page: Page, strategies: Sequence[SelectorStrategy], target: str) -> Located:
        located = self._locator.locate(page, strategies, target=target)
        if located is None:
            raise ElementNotFoundError(f"{target} not found after {len(strategies)} strategies")
        log_event(
            logger,
            logging.INFO,
            "check.located",
            provider=self.adapter.id,
            target=target,
            strategy=located.index,
            frame=located.frame.url,
        )
        return located

    def _run_steps(self, page: Page, steps: Sequence[ActionStep]) -> None:
        for step in steps:
            located = self._locator.locate(page, step.strategies, target=step.name)
            if located is None:
                logger.debug("Optional step %r skipped (nothing matched)", step.name)
                continue
            try:
                located.element.click(timeout=STEP_CLICK_TIMEOUT_MS)
            except PlaywrightError:
                logger.debug("Optional step %r click failed (continuing)", step.name, exc_info=True)


def _describe(e: BaseException) -> str:
    return str(e).strip() or e.__class__.__name__
