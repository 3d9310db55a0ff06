from __future__ import annotations

import logging
from typing import Optional, Sequence

from ports.page import PageElement


logger = logging.getLogger(__name__)


def _select(root: PageElement, locator: str) -> list:
    try:
        return list(root.select(locator))
    except Exception as e:  # invalid selector or detached element; try the next locator
        logger.debug("Locator %r failed: %s", locator, e)
        return []


def query_all_fallback(root: PageElement, chain: Sequence[str]) -> list:
    """All matches of the first locator in `chain` that matches anything."""
    for locator in chain:
        found = _select(root, locator)
        if found:
            return found
    return []


def query_fallback(root: PageElement, chain: Sequence[str]) -> Optional[PageElement]:
    found = query_all_fallback(root, chain)
    return found[0] if found else None


def text_fallback(root: PageElement, chain: Sequence[str]) -> Optional[str]:
    """Stripped text of the first locator yielding non-empty text."""
    for locator in chain:
        for element in _select(root, locator):
            text = _clean_text(element)
            if text:
                return text
    return None


def attr_fallback(root: PageElement, chain: Sequence[str], name: str) -> Optional[str]:
    for locator in chain:
        for element in _select(root, locator):
            value = safe_attr(element, name)
            if value:
                return value
    return None


def _clean_text(element: PageElement) -> Optional[str]:
    try:
        text = element.text()
    except Exception as e:
        logger.debug("Reading text failed: %s", e)
        return None
    if not text:
        return None
    return " ".join(text.split()) or None


def safe_attr(element: PageElement, name: str) -> Optional[str]:
    try:
        value = element.attr(name)
    except Exception as e:
        logger.debug("Reading attribute %s failed: %s", name, e)
        return None
    return value.strip() if value else None
