"""Deterministic usability signal extraction from page markup."""

import logfire
from bs4 import BeautifulSoup, ParserRejectedMarkup

from src.models.signal_models import SignalRecord

# Selector sets. Combined selectors match each element at most once and
# return matches in document order.
_VIEWPORT_SELECTOR = 'meta[name="viewport"]'
_INPUT_SELECTOR = "input, select, textarea"
_BUTTON_SELECTOR = "button, a[role=button], .btn, [data-testid*=button]"
_PRIMARY_CTA_SELECTOR = (
    'button[type="submit"], '
    'button:-soup-contains("Sign in"), '
    'button:-soup-contains("Buy"), '
    "a.button"
)
_VALIDATION_HINT_SELECTOR = "*[aria-invalid], .error, .error-message"
_PROGRESS_SELECTOR = "progress, .step, [aria-current=step]"


def _first_text(soup: BeautifulSoup, selector: str) -> str:
    """Trimmed text of the first element matching selector, or ''."""
    element = soup.select_one(selector)
    if element is None:
        return ""
    return element.get_text().strip()


def extract_signals(html: str) -> SignalRecord:
    """
    Derive the usability signal record for a page.

    Pure and total: the same markup always yields the same record, and
    markup the parser rejects yields the all-defaults record.

    Args:
        html: Raw page markup (may be empty or malformed)

    Returns:
        SignalRecord for the markup
    """
    if not html:
        return SignalRecord()

    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as e:
        logfire.warn(
            "Markup rejected by parser, using empty signals",
            error=str(e),
            html_length=len(html),
        )
        return SignalRecord()

    return SignalRecord(
        title=_first_text(soup, "title"),
        has_viewport=soup.select_one(_VIEWPORT_SELECTOR) is not None,
        forms=len(soup.select("form")),
        inputs=len(soup.select(_INPUT_SELECTOR)),
        labels=len(soup.select("label")),
        buttons=len(soup.select(_BUTTON_SELECTOR)),
        primary_cta_guess=_first_text(soup, _PRIMARY_CTA_SELECTOR),
        has_inline_validation_hint=soup.select_one(_VALIDATION_HINT_SELECTOR)
        is not None,
        has_progress=soup.select_one(_PROGRESS_SELECTOR) is not None,
    )
