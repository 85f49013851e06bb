"""Google Geocoding API request construction."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from ham_station.common.constants import GOOGLE_GEOCODE_URL
from ham_station.common.models import PostalAddress


@dataclass(frozen=True)
class GeocodeRequest:
    endpoint: str
    params: dict[str, str]

    @property
    def url(self) -> str:
        return f"{self.endpoint}?{urlencode(self.params)}"


def build_geocode_request(
    address: PostalAddress,
    api_key: str,
    endpoint: str = GOOGLE_GEOCODE_URL,
) -> GeocodeRequest:
    # Postal code goes in a component filter rather than the address string;
    # the API matches more reliably when the street line is imperfect.
    return GeocodeRequest(
        endpoint=endpoint,
        params={
            "address": f"{address.address_line1},{address.locality},{address.administrative_area}",
            "components": f"postal_code:{address.postal_code}|country:{address.country_code}",
            "key": api_key,
        },
    )
