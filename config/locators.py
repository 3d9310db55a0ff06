from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from config.settings import get_settings


logger = logging.getLogger(__name__)


# Ordered fallback locator chains, keyed by acquisition kind then logical field.
# The first locator that matches wins. Markup changes should be handled here (or in
# a LOCATORS_PATH override file), never in the extraction code.
DEFAULT_LOCATORS: Dict[str, Dict[str, List[str]]] = {
    "connections": {
        "items": [
            ".mn-connection-card",
            ".artdeco-list__item",
            '[data-test-component="connections-list-item"]',
            ".reusable-search__result-container",
        ],
        "name": [
            ".mn-connection-card__name",
            ".artdeco-entity-lockup__title",
            "[data-test-entity-lockup-title]",
            '.reusable-search__result-container a[href*="/in/"]',
            'a[data-control-name="connection_profile"]',
        ],
        "headline": [
            ".mn-connection-card__occupation",
            ".artdeco-entity-lockup__subtitle",
            "[data-test-entity-lockup-subtitle]",
            ".entity-result__primary-subtitle",
        ],
        "profile_url": [
            'a.mn-connection-card__link[href*="/in/"]',
            'a[data-control-name="connection_profile"][href*="/in/"]',
            'a.artdeco-entity-lockup__title[href*="/in/"]',
            'a[href*="/in/"]',
        ],
        "avatar": [
            ".mn-connection-card__picture img",
            ".artdeco-entity-lockup__image img",
            ".presence-entity__image",
            'img[data-ghost-classes*="person"]',
        ],
        "company": [
            ".mn-connection-card__company-name",
            ".artdeco-entity-lockup__caption",
        ],
        "location": [
            ".mn-connection-card__location",
            ".entity-result__secondary-subtitle",
        ],
        "total_count": [
            ".mn-connections__header h1",
            ".pvs-header__title-text",
            "[data-test-connections-count]",
            "h1.text-heading-xlarge",
        ],
    },
    "activities": {
        "items": [
            ".profile-creator-shared-feed-update__container",
            ".feed-shared-update-v2",
            '[data-urn*="activity"]',
        ],
        "actor": [
            ".update-components-actor__name",
            ".feed-shared-actor__name",
            '[data-control-name="actor"] a',
            'a[href*="/in/"]',
        ],
        "target": [
            ".update-components-target__name",
            '[data-control-name="target"] a',
        ],
        "content": [
            '.feed-shared-text__text-view span[dir="ltr"]',
            ".feed-shared-text__text-view",
            ".feed-shared-inline-show-more-text",
            '[data-test-id="post-content"]',
            ".feed-shared-text",
        ],
        "timestamp": [
            "time[datetime]",
            "time",
            '[data-control-name="time"]',
        ],
        "comment_indicator": [
            ".comment-entity",
            '[data-test-id="comment"]',
            ".comments-comment-item",
        ],
        "reaction_indicator": [
            ".reactions-react-button--active",
            '[data-test-id="reaction"]',
        ],
        "share_indicator": [
            ".feed-shared-update-v2__reshared",
            ".feed-shared-reshare-header",
            '[data-test-id="reshare"]',
        ],
        "likes": [
            ".social-details-social-counts__reactions-count",
            '[data-test-id="social-actions__reaction-count"]',
            "button[aria-label*='reaction']",
        ],
        "comments": [
            ".social-details-social-counts__comments",
            '[data-test-id="social-actions__comments"]',
            "button[aria-label*='comment']",
        ],
    },
    "company_employees": {
        "items": [
            ".org-people-profile-card",
            ".org-people-profile-card__card-spacing",
            '[data-control-name="people_profile_card"]',
            ".artdeco-entity-lockup",
        ],
        "profile_url": [
            'a.app-aware-link[href*="/in/"]',
            'a[href*="/in/"]',
            'a[data-control-name="view_profile"]',
        ],
        "name": [
            ".org-people-profile-card__profile-title",
            "h3.artdeco-entity-lockup__title",
            '[data-control-name="people_profile_card"] h3',
            'a[href*="/in/"] .t-16',
        ],
        "headline": [
            ".artdeco-entity-lockup__subtitle",
            ".org-people-profile-card__subtitle",
        ],
        "role": [
            ".org-people-profile-card__profile-info-list li",
            ".artdeco-entity-lockup__caption",
        ],
        "degree": [
            ".dist-value",
            ".member-distance-badge .dist-value",
            'span[aria-label*="degree"]',
        ],
        "message_button": [
            'button[aria-label*="Message"]',
        ],
        "connect_button": [
            'button[aria-label*="Connect"]',
            "button.artdeco-button--secondary",
        ],
        "mutual": [
            ".org-people-profile-card__profile-info-subtitle",
            'span[aria-label*="mutual"]',
            ".artdeco-entity-lockup__badge",
        ],
        "company_name": [
            ".org-top-card-summary__title",
            ".org-top-card__title",
            'h1[data-test-id="org-name"]',
        ],
    },
}


class Locators:
    """Prioritized locator chains for every kind/field, swappable at runtime."""

    def __init__(self, table: Optional[Dict[str, Dict[str, List[str]]]] = None) -> None:
        source = table if table is not None else DEFAULT_LOCATORS
        self._table: Dict[str, Dict[str, tuple]] = {
            kind: {field: tuple(chain) for field, chain in fields.items()}
            for kind, fields in source.items()
        }

    def chain(self, kind: str, field: str) -> tuple:
        """Return the ordered chain for kind/field; empty when unknown."""
        return self._table.get(kind, {}).get(field, ())

    def with_override(self, kind: str, field: str, chain: List[str]) -> "Locators":
        """Return a copy with one chain replaced."""
        table = self.as_dict()
        table.setdefault(kind, {})[field] = list(chain)
        return Locators(table)

    def as_dict(self) -> Dict[str, Dict[str, List[str]]]:
        return {kind: {field: list(chain) for field, chain in fields.items()} for kind, fields in self._table.items()}


def load_locators(path: Optional[str] = None) -> Locators:
    """Build locators from the defaults, merging a JSON override file if configured.

    The override file has the same shape as DEFAULT_LOCATORS; each listed chain
    replaces the default chain for that kind/field.
    """
    override_path = path or get_settings().locators_path
    table = Locators().as_dict()
    if not override_path:
        return Locators(table)
    data = json.loads(Path(override_path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Locator override file must contain an object: {override_path}")
    for kind, fields in data.items():
        if not isinstance(fields, dict):
            raise ValueError(f"Locator overrides for {kind!r} must be an object")
        for field, chain in fields.items():
            if not isinstance(chain, list) or not all(isinstance(x, str) for x in chain):
                raise ValueError(f"Locator chain {kind}.{field} must be a list of strings")
            table.setdefault(kind, {})[field] = chain
    logger.info("Loaded locator overrides from %s", override_path)
    return Locators(table)
