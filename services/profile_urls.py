from __future__ import annotations

import re
import unicodedata
from typing import Optional
from urllib.parse import unquote, urlparse


_PROFILE_ID_RE = re.compile(r"/in/([^/?#]+)")
_COMPANY_ID_RE = re.compile(r"/company/([^/?#]+)")


def _clean_slug(slug: str) -> str:
    # Decode percent-encoding and normalize Unicode; canonicalize to lowercase
    slug = unquote(slug)
    slug = unicodedata.normalize("NFKC", slug).strip().lower()
    # Remove invisible characters occasionally present
    return slug.replace("\u200b", "").replace("\u200c", "").replace("\u200d", "")


def extract_profile_id(url: Optional[str]) -> Optional[str]:
    """'/in/jane-doe-123/?miniProfile=...' -> 'jane-doe-123'."""
    if not url:
        return None
    m = _PROFILE_ID_RE.search(str(url))
    if not m:
        return None
    return _clean_slug(m.group(1)) or None


def extract_company_id(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    m = _COMPANY_ID_RE.search(str(url))
    if not m:
        return None
    return _clean_slug(m.group(1)) or None


def normalize_profile_url(url: Optional[str]) -> Optional[str]:
    """Canonical https://linkedin.com/in/{slug} form; relative '/in/..' hrefs are accepted."""
    if not url:
        return None
    u = urlparse(str(url).strip())
    host = (u.netloc or "linkedin.com").lower().replace("www.", "")
    if "linkedin.com" not in host:
        return None
    slug = extract_profile_id(u.path)
    if not slug:
        return None
    return f"https://linkedin.com/in/{slug}"
