"""Load station license rows from CSV into the record store."""

from __future__ import annotations

from pathlib import Path

from ham_station.common.address import address_hash
from ham_station.common.constants import STATION_CSV_COLUMNS
from ham_station.common.errors import StageError
from ham_station.common.fs import read_csv_rows
from ham_station.common.models import GeocodeStatus, PostalAddress, StationRecord
from ham_station.store.repository import StationRepository


def _clean(value: str | None) -> str:
    return (value or "").strip()


def record_from_row(row: dict) -> StationRecord | None:
    callsign = _clean(row.get("callsign")).upper()
    if not callsign:
        return None

    address = PostalAddress(
        address_line1=_clean(row.get("address_line1")),
        locality=_clean(row.get("locality")),
        administrative_area=_clean(row.get("administrative_area")),
        postal_code=_clean(row.get("postal_code")),
        country_code=_clean(row.get("country_code")).upper(),
    )
    return StationRecord(
        id=None,
        callsign=callsign,
        address=address,
        address_hash=address_hash(address),
        geocode_status=GeocodeStatus.PENDING,
    )


def import_stations_csv(path: Path, repository: StationRepository) -> int:
    if not path.exists():
        raise StageError(f"Missing CSV input: {path}")

    header, rows = read_csv_rows(path)
    missing = [column for column in STATION_CSV_COLUMNS if column not in header]
    if missing:
        raise StageError(f"Station CSV {path} is missing columns: {', '.join(missing)}")

    records = [record for record in (record_from_row(row) for row in rows) if record is not None]
    return repository.add(records)
