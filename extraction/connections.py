from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from config.locators import Locators
from extraction.locators import attr_fallback, text_fallback
from models import Experience, Node, Profile
from pipelines.errors import ExtractionFailure
from ports.page import PageElement
from services.profile_urls import extract_profile_id, normalize_profile_url
from utils.number_parsing import parse_int_shorthand


logger = logging.getLogger(__name__)

KIND = "connections"


def _build_node(card: PageElement, locators: Locators) -> Node:
    href = attr_fallback(card, locators.chain(KIND, "profile_url"), "href")
    profile_id = extract_profile_id(href)
    if not profile_id:
        raise ExtractionFailure("connection card has no profile link")

    name = text_fallback(card, locators.chain(KIND, "name"))
    if not name:
        raise ExtractionFailure(f"connection card {profile_id} has no name")

    headline = text_fallback(card, locators.chain(KIND, "headline"))
    company = text_fallback(card, locators.chain(KIND, "company"))
    location = text_fallback(card, locators.chain(KIND, "location"))
    avatar = attr_fallback(card, locators.chain(KIND, "avatar"), "src")
    if avatar and avatar.startswith("data:image"):
        avatar = None

    experience = [Experience(company=company, title=headline or "")] if company else []
    profile = Profile(
        name=name,
        headline=headline,
        location=location,
        avatar_url=avatar,
        profile_url=normalize_profile_url(href),
        experience=experience,
    )
    return Node(id=profile_id, degree=1, status="connected", profile=profile)


def extract_connection(card: PageElement, locators: Locators) -> Optional[Node]:
    """Build a 1st-degree node from one connection card, or None if its id or name is missing."""
    try:
        return _build_node(card, locators)
    except (ExtractionFailure, ValidationError) as e:
        logger.debug("Skipping connection card: %s", e, extra={"kind": KIND})
        return None


def extract_total_count(root: PageElement, locators: Locators) -> Optional[int]:
    """Total connections announced in the page header ('1,234 Connections')."""
    text = text_fallback(root, locators.chain(KIND, "total_count"))
    return parse_int_shorthand(text)
