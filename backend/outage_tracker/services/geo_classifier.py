"""Service-area classification of geocoded county strings.

The reverse geocoder formats counties as "<Name> County" ("Forsyth County"),
so the first whitespace-separated token is taken as the county name and
compared verbatim against the configured service areas.
"""

from collections.abc import Collection


def county_token(raw_county: str | None) -> str | None:
    """First whitespace-separated token of a county string, or None if there is none."""
    if not raw_county:
        return None
    parts = raw_county.split()
    return parts[0] if parts else None


def classify(raw_county: str | None, service_areas: Collection[str]) -> str | None:
    """Return the canonical county if it is one of ``service_areas``, else None."""
    token = county_token(raw_county)
    if token is None or token not in service_areas:
        return None
    return token
