from __future__ import annotations


KNOWN_COMPANIES: dict[str, str] = {
    "google": "Google",
    "facebook": "Facebook",
    "meta": "Meta",
    "microsoft": "Microsoft",
    "apple": "Apple",
    "amazon": "Amazon",
    "netflix": "Netflix",
    "tesla": "Tesla",
    "ibm": "IBM",
    "salesforce": "Salesforce",
    "linkedin": "LinkedIn",
    "uber": "Uber",
    "airbnb": "Airbnb",
    "spotify": "Spotify",
}

KNOWN_LOCATIONS: dict[str, str] = {
    "sf": "SF",
    "san francisco": "San Francisco",
    "nyc": "NYC",
    "new york": "New York",
    "la": "LA",
    "los angeles": "Los Angeles",
    "seattle": "Seattle",
    "boston": "Boston",
    "austin": "Austin",
    "chicago": "Chicago",
    "dc": "DC",
    "washington dc": "Washington DC",
}


def _title_words(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.split())


def capitalize_company(company: str) -> str:
    key = " ".join(company.lower().split())
    return KNOWN_COMPANIES.get(key) or _title_words(company)


def capitalize_location(location: str) -> str:
    key = " ".join(location.lower().split())
    return KNOWN_LOCATIONS.get(key) or _title_words(location)
