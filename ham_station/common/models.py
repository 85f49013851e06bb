"""Data models shared by the store and the geocoder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class GeocodeStatus(IntEnum):
    PENDING = 0
    SUCCESS = 1
    NOT_FOUND = 2


@dataclass(frozen=True)
class PostalAddress:
    address_line1: str
    locality: str
    administrative_area: str
    postal_code: str
    country_code: str


@dataclass(frozen=True)
class StationRecord:
    id: int | None
    callsign: str
    address: PostalAddress
    address_hash: str
    geocode_status: GeocodeStatus = GeocodeStatus.PENDING
    latitude: float | None = None
    longitude: float | None = None
    geocode_response: str | None = None

    @property
    def location(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude
