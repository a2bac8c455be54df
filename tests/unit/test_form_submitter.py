from __future__ import annotations

import pytest

from toll_checker.scraping.form import FormSubmitter
from toll_checker.testing.fakes import FakeElement, FakeFrame
from toll_checker.utils.errors import SubmissionFailedError


def _locator_for(element: FakeElement, selector: str = "#el"):
    frame = FakeFrame(elements=[element])
    return frame.locator(selector).first


@pytest.mark.unit
def test_fill_uses_direct_fill_when_value_sticks():
    el = FakeElement(selectors=("#el",), tag="input")

    FormSubmitter().fill(_locator_for(el), "AB123CD")

    assert el.value == "AB123CD"
    assert el.fills == ["", "AB123CD"]
    assert el.typed == []


@pytest.mark.unit
def test_fill_accepts_masked_readback():
    """
    Behavior:
    - A mask that re-inserts dashes still counts as the same plate; no typing fallback.
    """
    el = FakeElement(selectors=("#el",), tag="input")
    loc = _locator_for(el)

    real_fill = loc.fill

    def masked_fill(value):
        real_fill(value)
        if value:
            el.value = "AB-123-CD"

    loc.fill = masked_fill

    FormSubmitter().fill(loc, "AB123CD")

    assert el.typed == []


@pytest.mark.unit
def test_fill_falls_back_to_typing_when_widget_ignores_fill():
    el = FakeElement(selectors=("#el",), tag="input", fill_ignored=True)

    FormSubmitter(type_delay_ms=0).fill(_locator_for(el), "AB123CD")

    assert el.typed == ["AB123CD"]
    assert el.value == "AB123CD"


@pytest.mark.unit
def test_submit_plain_click():
    el = FakeElement(selectors=("#el",), tag="button")

    FormSubmitter().submit(_locator_for(el))

    assert el.clicks == 1
    assert el.forced_clicks == 0


@pytest.mark.unit
def test_submit_retries_with_forced_click_when_intercepted():
    el = FakeElement(selectors=("#el",), tag="button", click_intercepted=True)

    FormSubmitter().submit(_locator_for(el))

    assert el.clicks == 0
    assert el.forced_clicks == 1


@pytest.mark.unit
def test_submit_raises_when_both_clicks_fail():
    el = FakeElement(
        selectors=("#el",),
        tag="button",
        click_intercepted=True,
        force_click_fails=True,
    )

    with pytest.raises(SubmissionFailedError, match="submission failed"):
        FormSubmitter().submit(_locator_for(el))

    assert el.forced_clicks == 1
