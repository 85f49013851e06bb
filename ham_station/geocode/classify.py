"""Classification of Google Geocoding API responses."""

from __future__ import annotations

import json
from dataclasses import dataclass

from ham_station.common.errors import UpstreamRecordError, UpstreamSystemicError
from ham_station.common.models import GeocodeStatus

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"
STATUS_OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
STATUS_REQUEST_DENIED = "REQUEST_DENIED"
STATUS_INVALID_REQUEST = "INVALID_REQUEST"
STATUS_UNKNOWN_ERROR = "UNKNOWN_ERROR"

# status -> whether it counts towards the run's error total
SYSTEMIC_STATUSES = {
    STATUS_OVER_QUERY_LIMIT: False,
    STATUS_REQUEST_DENIED: True,
    STATUS_INVALID_REQUEST: True,
}


@dataclass(frozen=True)
class GeocodeAnswer:
    status: GeocodeStatus
    location: tuple[float, float] | None = None


def decode_body(body: str) -> dict:
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise UpstreamRecordError("Response body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise UpstreamRecordError("Response body is not a JSON object")
    return payload


def _first_location(payload: dict) -> tuple[float, float]:
    try:
        location = payload["results"][0]["geometry"]["location"]
        return float(location["lat"]), float(location["lng"])
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise UpstreamRecordError("OK response without a usable location", status=STATUS_OK) from exc


def classify_response(payload: dict) -> GeocodeAnswer:
    """Map a decoded response onto a record outcome.

    Raises ``UpstreamSystemicError`` for statuses that should end the run and
    ``UpstreamRecordError`` for statuses that leave the record pending.
    """
    status = payload.get("status")
    if not isinstance(status, str):
        raise UpstreamRecordError(f"New response status {status}")

    if status in SYSTEMIC_STATUSES:
        raise UpstreamSystemicError(
            f"Geocoding stopped by {status}",
            status=status,
            counts_as_error=SYSTEMIC_STATUSES[status],
        )
    if status == STATUS_OK:
        return GeocodeAnswer(status=GeocodeStatus.SUCCESS, location=_first_location(payload))
    if status == STATUS_ZERO_RESULTS:
        return GeocodeAnswer(status=GeocodeStatus.NOT_FOUND)
    if status == STATUS_UNKNOWN_ERROR:
        raise UpstreamRecordError("Unknown error", status=status)
    raise UpstreamRecordError(f"New response status {status}", status=status)
