from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from pydantic import ValidationError

from config.locators import Locators
from extraction.locators import query_fallback, safe_attr, text_fallback
from models import ActivityEvent
from pipelines.errors import ExtractionFailure
from ports.page import PageElement
from services.profile_urls import extract_profile_id
from utils.number_parsing import parse_count


logger = logging.getLogger(__name__)

KIND = "activities"

# Checked in order; the first indicator present decides the type.
_TYPE_INDICATORS = (
    ("comment", "comment_indicator"),
    ("reaction", "reaction_indicator"),
    ("share", "share_indicator"),
)


def detect_activity_type(element: PageElement, locators: Locators) -> str:
    for activity_type, field in _TYPE_INDICATORS:
        if query_fallback(element, locators.chain(KIND, field)) is not None:
            return activity_type
    return "post"


def _profile_id_from(element: PageElement, chain: Sequence[str]) -> Optional[str]:
    """Profile id from the first locator hit that carries (or wraps) a /in/ link."""
    for locator in chain:
        hit = query_fallback(element, [locator])
        if hit is None:
            continue
        href = safe_attr(hit, "href")
        if not href:
            link = query_fallback(hit, ['a[href*="/in/"]'])
            href = safe_attr(link, "href") if link is not None else None
        profile_id = extract_profile_id(href)
        if profile_id:
            return profile_id
    return None


def normalize_timestamp(value: Optional[str]) -> str:
    """ISO-8601 UTC; unparsable or missing values fall back to now."""
    if value:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc).isoformat()
        except ValueError:
            logger.debug("Unparsable activity timestamp %r", value)
    return datetime.now(timezone.utc).isoformat()


def _build_event(element: PageElement, locators: Locators, default_actor_id: Optional[str]) -> ActivityEvent:
    activity_type = detect_activity_type(element, locators)
    actor_id = _profile_id_from(element, locators.chain(KIND, "actor")) or default_actor_id
    if not actor_id:
        raise ExtractionFailure("activity has no resolvable actor")
    target_id = _profile_id_from(element, locators.chain(KIND, "target")) or actor_id

    time_el = query_fallback(element, locators.chain(KIND, "timestamp"))
    timestamp = normalize_timestamp(safe_attr(time_el, "datetime") if time_el is not None else None)
    post_id = safe_attr(element, "data-urn") or safe_attr(element, "data-activity-urn")

    likes = comments = 0
    if activity_type == "post":
        likes = parse_count(text_fallback(element, locators.chain(KIND, "likes")))
        comments = parse_count(text_fallback(element, locators.chain(KIND, "comments")))

    return ActivityEvent(
        actor_id=actor_id,
        target_id=target_id,
        type=activity_type,
        content=text_fallback(element, locators.chain(KIND, "content")),
        post_id=post_id,
        likes=likes,
        comments=comments,
        timestamp=timestamp,
    )


def extract_activity(
    element: PageElement,
    locators: Locators,
    default_actor_id: Optional[str] = None,
) -> Optional[ActivityEvent]:
    """Build one activity event from a feed item, or None when no actor can be resolved.

    `default_actor_id` is the owner of the feed being read; it is used when the item
    itself does not link its author.
    """
    try:
        return _build_event(element, locators, default_actor_id)
    except (ExtractionFailure, ValidationError) as e:
        logger.debug("Skipping activity: %s", e, extra={"kind": KIND})
        return None
