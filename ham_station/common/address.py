"""Postal address normalisation and duplicate-detection hashing."""

from __future__ import annotations

import hashlib
import re

from ham_station.common.models import PostalAddress

_PUNCTUATION_RE = re.compile(r"[\.,;:'\"`_\-/\\()\[\]{}|~!?@#$%^&*+=]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalise_component(raw: str | None) -> str:
    if raw is None:
        return ""
    cleaned = raw.strip().upper()
    cleaned = _PUNCTUATION_RE.sub(" ", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def normalise_address(address: PostalAddress) -> str:
    parts = (
        address.address_line1,
        address.locality,
        address.administrative_area,
        address.postal_code,
        address.country_code,
    )
    return "|".join(normalise_component(part) for part in parts)


def address_hash(address: PostalAddress) -> str:
    return hashlib.sha1(normalise_address(address).encode("utf-8")).hexdigest()
