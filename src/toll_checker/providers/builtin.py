"""
Built-in toll portals.

Selectors are ordered most specific first; the broad generic fallbacks go last so a
markup change degrades to a slower match instead of a failure.
"""

from __future__ import annotations

import re

from toll_checker.providers.models import (
    ActionStep,
    ProviderAdapter,
    StabilizationBudget,
    doc,
    frames,
    shadow,
)

DESKTOP_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123 Safari/537.36"
)

PAY_LINK_TEXT = "/payer|paiement|régler/i"

ALIAE = ProviderAdapter(
    id="aliae",
    label="ALIAE (A150 / A88)",
    entry_url="https://paiement.aliae.com/fr/form/payment",
    consent_strategies=(
        doc("role=button[name=/autoriser tous les cookies/i]", 3_000),
        doc("role=button[name=/tout accepter|accepter tout/i]", 1_000),
        doc("#didomi-notice-agree-button", 500),
    ),
    before_fill_steps=(
        ActionStep(
            name="open plate form",
            strategies=(doc("role=button[name=/Plaque d'immatriculation/i]", 5_000),),
        ),
    ),
    plate_input_strategies=(
        doc("input[placeholder*='immatriculation' i]", 2_000),
        doc("role=textbox", 5_000),
        frames("role=textbox", 2_000),
        shadow("input[type='text']", 1_500),
    ),
    before_submit_steps=(
        ActionStep(name="country field", strategies=(doc("#mat-input-0", 3_000),)),
        ActionStep(name="country option", strategies=(doc("role=option[name='France']", 3_000),)),
    ),
    submit_strategies=(
        doc("role=button[name=/Valider/i]", 3_000),
        doc("button[type='submit']", 2_000),
        frames("button[type='submit']", 1_500),
    ),
    after_submit_steps=(
        ActionStep(name="continue", strategies=(doc("role=button[name=/Continuer/i]", 3_000),)),
    ),
    amount_selectors=(
        "[class*='amount']",
        "[class*='total']",
        "[data-testid*='amount']",
        "text=/€|EUR/i",
    ),
    no_trip_pattern=re.compile(
        r"n['’]avons pas trouv[ée] de trajet associ[ée] à cette plaque", re.IGNORECASE
    ),
    link_strategies=(
        doc(f"role=link[name={PAY_LINK_TEXT}]", 0),
        doc(f"role=button[name={PAY_LINK_TEXT}]", 0),
        doc("a[href*='pay' i], a[href*='paiement' i], a[href*='checkout' i]", 0),
    ),
    after_navigation=StabilizationBudget(dom_ms=5_000, network_ms=3_000, settle_ms=0),
    after_submit=StabilizationBudget(dom_ms=5_000, network_ms=12_000, settle_ms=800),
)

SANEF = ProviderAdapter(
    id="sanef",
    label="SANEF (flux libre A13 / A14)",
    entry_url="https://www.sanef.com/client/index.html?lang=fr#basket",
    user_agent=DESKTOP_CHROME_UA,
    consent_strategies=(
        doc("role=button[name=/tout accepter/i]", 2_500),
        doc("#axeptio_btn_acceptAll", 1_000),
        doc("[data-ax-accept]", 500),
        doc("[id*='accept'][id*='all']", 500),
        shadow("button:has-text('Tout accepter')", 500),
    ),
    plate_input_strategies=(
        doc("input[placeholder='XX123XX']", 8_000),
        doc("[data-test-id='page-basket-plate-input'] input", 1_500),
        doc("input[name*='immatricul' i]", 1_500),
        doc("input[name*='plaque' i]", 1_000),
        doc("input[name*='plate' i]", 1_000),
        frames("input[placeholder='XX123XX']", 1_500),
        shadow("input[placeholder='XX123XX']", 1_500),
    ),
    submit_strategies=(
        doc("[data-test-id='page-basket-submit-button']", 3_000),
        doc("button:has-text('Vérifier')", 2_000),
        doc("button:has-text('payer')", 1_000),
        doc("button:has-text('Rechercher')", 1_000),
    ),
    after_submit_steps=(
        ActionStep(
            name="close account modal",
            strategies=(doc("[data-test-id='account-modal-cancel-button']", 3_000),),
        ),
    ),
    amount_selectors=(
        "[data-test-id*='amount']",
        "[class*='amount']",
        "[class*='total']",
        "text=/€|EUR/i",
    ),
    link_strategies=(
        doc(f"role=link[name={PAY_LINK_TEXT}]", 0),
        doc("a[href*='paiement' i], a[href*='payment' i]", 0),
    ),
    after_navigation=StabilizationBudget(dom_ms=5_000, network_ms=5_000, settle_ms=0),
    after_submit=StabilizationBudget(dom_ms=5_000, network_ms=15_000, settle_ms=1_200),
)


def builtin_providers() -> dict[str, ProviderAdapter]:
    return {p.id: p for p in (ALIAE, SANEF)}
