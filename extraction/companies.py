from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import ValidationError

from config.locators import Locators
from extraction.locators import attr_fallback, query_fallback, text_fallback
from models import Employee
from pipelines.errors import ExtractionFailure
from ports.page import PageElement
from services.profile_urls import extract_profile_id, normalize_profile_url
from utils.number_parsing import parse_degree


logger = logging.getLogger(__name__)

KIND = "company_employees"

DEPARTMENT_KEYWORDS: dict[str, list[str]] = {
    "Engineering": ["engineer", "developer", "software", "sre", "devops", "architect"],
    "Product": ["product manager", "product owner", "product designer"],
    "Design": ["designer", "ux", "ui", "creative"],
    "Sales": ["sales", "account executive", "business development"],
    "Marketing": ["marketing", "brand", "growth", "content"],
    "Finance": ["finance", "accounting", "controller", "treasury"],
    "HR": ["hr", "recruiter", "talent", "people operations"],
    "Operations": ["operations", "ops", "supply chain", "logistics"],
    "Legal": ["lawyer", "attorney", "legal", "counsel"],
    "Executive": ["ceo", "cto", "cfo", "coo", "vp", "chief", "president"],
    "Research": ["researcher", "scientist", "phd", "research"],
    "IT": ["it manager", "system admin", "infrastructure", "security"],
}

_MUTUAL_RE = re.compile(r"(\d+)\s+mutual", re.IGNORECASE)


def infer_department(headline: Optional[str]) -> Optional[str]:
    if not headline:
        return None
    text = headline.lower()
    for department, keywords in DEPARTMENT_KEYWORDS.items():
        if any(k in text for k in keywords):
            return department
    return None


def detect_degree(card: PageElement, locators: Locators) -> int:
    """Degree badge first, then action buttons; unknown people count as 3rd degree."""
    degree = parse_degree(text_fallback(card, locators.chain(KIND, "degree")))
    if degree:
        return degree
    if query_fallback(card, locators.chain(KIND, "message_button")) is not None:
        return 1
    if query_fallback(card, locators.chain(KIND, "connect_button")) is not None:
        return 3
    return 3


def _mutual_count(card: PageElement, locators: Locators) -> int:
    text = text_fallback(card, locators.chain(KIND, "mutual")) or ""
    m = _MUTUAL_RE.search(text)
    return int(m.group(1)) if m else 0


def _build_employee(card: PageElement, locators: Locators) -> Employee:
    href = attr_fallback(card, locators.chain(KIND, "profile_url"), "href")
    profile_id = extract_profile_id(href)
    if not profile_id:
        raise ExtractionFailure("employee card has no profile link")
    name = text_fallback(card, locators.chain(KIND, "name"))
    if not name:
        raise ExtractionFailure(f"employee card {profile_id} has no name")

    headline = text_fallback(card, locators.chain(KIND, "headline"))
    role = text_fallback(card, locators.chain(KIND, "role")) or headline or "Unknown"
    degree = detect_degree(card, locators)
    return Employee(
        profile_id=profile_id,
        name=name,
        headline=headline,
        role=role,
        department=infer_department(headline),
        connection_degree=degree,
        mutual_connections=_mutual_count(card, locators) if degree == 2 else 0,
        profile_url=normalize_profile_url(href),
    )


def extract_employee(card: PageElement, locators: Locators) -> Optional[Employee]:
    try:
        return _build_employee(card, locators)
    except (ExtractionFailure, ValidationError) as e:
        logger.debug("Skipping employee card: %s", e, extra={"kind": KIND})
        return None


def extract_company_name(root: PageElement, locators: Locators) -> Optional[str]:
    return text_fallback(root, locators.chain(KIND, "company_name"))
