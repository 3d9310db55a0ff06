from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from models import ParsedQuery, SearchFilters, YearsRange
from services.query_formatters import capitalize_company, capitalize_location


logger = logging.getLogger(__name__)

_ENTITY_CHARS = r"[A-Za-z0-9\s&.'-]"
_PLACE_CHARS = r"[A-Za-z\s.-]"

# A company phrase stops at the next location/clause keyword; a location phrase
# stops at the next company/clause keyword.
_COMPANY_STOP = r"(?:\s+(?:in|with|who|that|and|or)\b|\s*,|$)"
_LOCATION_STOP = r"(?:\s+(?:at|with|who|that|and|or)\b|\s*,|$)"

_COMPANY_LEADS = (r"\bat", r"\bfrom", r"\bworks?\s+at")
_LOCATION_LEADS = (r"\bin", r"\bbased\s+in", r"\blocated\s+in")

_COMPANY_PATTERNS = [re.compile(lead + r"\s+(" + _ENTITY_CHARS + r"+?)" + _COMPANY_STOP) for lead in _COMPANY_LEADS]
_LOCATION_PATTERNS = [re.compile(lead + r"\s+(" + _PLACE_CHARS + r"+?)" + _LOCATION_STOP) for lead in _LOCATION_LEADS]

# Longer leads are removed first so "works at" does not leave a stray "works".
_COMPANY_CLEANERS = [
    re.compile(lead + r"\s+" + _ENTITY_CHARS + r"+?(?=" + _COMPANY_STOP + ")") for lead in reversed(_COMPANY_LEADS)
]
_LOCATION_CLEANERS = [
    re.compile(lead + r"\s+" + _PLACE_CHARS + r"+?(?=" + _LOCATION_STOP + ")") for lead in reversed(_LOCATION_LEADS)
]

_YEARS_PLUS = re.compile(r"(\d+)\s*\+\s*years?")
_YEARS_RANGE = re.compile(r"(\d+)\s*(?:-|to)\s*(\d+)\s*years?")
_YEARS_EXACT = re.compile(r"(\d+)\s*years?(?:\s+(?:of\s+)?experience)?")

_EXPERIENCE_TAIL = r"(?:\s+(?:of\s+)?experience)?"
_YEARS_CLEANERS = [
    re.compile(r"\bwith\s+\d+\s*\+\s*years?" + _EXPERIENCE_TAIL),
    re.compile(r"\bwith\s+\d+\s*(?:-|to)\s*\d+\s*years?" + _EXPERIENCE_TAIL),
    re.compile(r"\bwith\s+\d+\s*years?" + _EXPERIENCE_TAIL),
    re.compile(r"\d+\s*\+\s*years?" + _EXPERIENCE_TAIL),
    re.compile(r"\d+\s*(?:-|to)\s*\d+\s*years?" + _EXPERIENCE_TAIL),
    re.compile(r"\d+\s*years?" + _EXPERIENCE_TAIL),
]

_DEGREE_PATTERNS = [
    (re.compile(r"\b(?:1st|first)\s+degree"), 1),
    (re.compile(r"\b(?:2nd|second)\s+degree"), 2),
    (re.compile(r"\b(?:3rd|third)\s+degree"), 3),
    (re.compile(r"\b1st\s+connections?"), 1),
    (re.compile(r"\b2nd\s+connections?"), 2),
    (re.compile(r"\b3rd\s+connections?"), 3),
    (re.compile(r"\bdirect\s+connections?"), 1),
]
_DEGREE_CLEANERS = [
    re.compile(r"\b(?:1st|2nd|3rd|first|second|third)\s+degree\s+connections?"),
    re.compile(r"\b(?:1st|2nd|3rd|first|second|third)\s+(?:degree|connections?)"),
    re.compile(r"\bdirect\s+connections?"),
]

ROLE_KEYWORDS = (
    "senior",
    "junior",
    "lead",
    "principal",
    "staff",
    "manager",
    "director",
    "vp",
    "chief",
    "head of",
    "associate",
    "entry level",
    "mid level",
    "executive",
)
_ROLE_PATTERNS = [(kw, re.compile(r"\b" + re.escape(kw) + r"\b")) for kw in ROLE_KEYWORDS]

_LEADING_FILLER = re.compile(r"^(?:find|show(?:\s+me)?|get|list|search(?:\s+for)?|looking\s+for)\s+")
_TRAILING_FILLER = re.compile(r"\s+(?:who|that|with)$")


def _first_capture(text: str, patterns) -> Optional[str]:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            value = m.group(1).strip()
            if value:
                return value
    return None


def extract_company(text: str) -> Optional[str]:
    value = _first_capture(text, _COMPANY_PATTERNS)
    return capitalize_company(value) if value else None


def extract_location(text: str) -> Optional[str]:
    value = _first_capture(text, _LOCATION_PATTERNS)
    return capitalize_location(value) if value else None


def extract_years(text: str) -> Optional[YearsRange]:
    m = _YEARS_PLUS.search(text)
    if m:
        return YearsRange(min=int(m.group(1)))
    m = _YEARS_RANGE.search(text)
    if m:
        return YearsRange(min=int(m.group(1)), max=int(m.group(2)))
    m = _YEARS_EXACT.search(text)
    if m:
        years = int(m.group(1))
        return YearsRange(min=years, max=years)
    return None


def extract_degrees(text: str) -> Optional[List[int]]:
    found = {degree for pattern, degree in _DEGREE_PATTERNS if pattern.search(text)}
    return sorted(found) or None


def extract_role(text: str) -> Optional[str]:
    for keyword, pattern in _ROLE_PATTERNS:
        if pattern.search(text):
            return keyword
    return None


def _clean_query(text: str, filters: SearchFilters) -> str:
    cleaned = text
    if filters.company:
        for pattern in _COMPANY_CLEANERS:
            cleaned = pattern.sub(" ", cleaned)
    if filters.location:
        for pattern in _LOCATION_CLEANERS:
            cleaned = pattern.sub(" ", cleaned)
    if filters.years_experience:
        for pattern in _YEARS_CLEANERS:
            cleaned = pattern.sub(" ", cleaned)
    if filters.connection_degree:
        for pattern in _DEGREE_CLEANERS:
            cleaned = pattern.sub(" ", cleaned)
    if filters.role:
        cleaned = re.sub(r"\b" + re.escape(filters.role) + r"\b", " ", cleaned)

    cleaned = " ".join(cleaned.split())
    cleaned = _LEADING_FILLER.sub("", cleaned)
    cleaned = _TRAILING_FILLER.sub("", cleaned)
    return cleaned.strip()


def parse_query(text: str) -> ParsedQuery:
    """Split a natural-language search into residual keywords and structured filters.

    Extraction runs on the lower-cased input in a fixed order (company, location,
    years, degree, role); every matched phrase is then removed from the residual.
    Inputs with no recognizable filter yield the whole normalized text as query.
    """
    normalized = (text or "").strip().lower()
    if not normalized:
        return ParsedQuery()

    filters = SearchFilters(
        company=extract_company(normalized),
        location=extract_location(normalized),
        years_experience=extract_years(normalized),
        connection_degree=extract_degrees(normalized),
        role=extract_role(normalized),
    )
    parsed = ParsedQuery(query=_clean_query(normalized, filters), filters=filters)
    logger.debug("Parsed query %r -> %s", text, parsed.model_dump(exclude_none=True))
    return parsed


def parse_queries(texts: Iterable[str]) -> List[ParsedQuery]:
    return [parse_query(t) for t in texts]
