from __future__ import annotations

from pathlib import Path

import pytest

from ham_station.common.models import GeocodeStatus, PostalAddress, StationRecord
from ham_station.store.database import build_engine, build_session_factory, create_tables
from ham_station.store.repository import SqlStationRepository


@pytest.fixture()
def repository(tmp_path: Path):
    engine = build_engine(f"sqlite:///{tmp_path / 'stations.db'}")
    create_tables(engine)
    yield SqlStationRepository(build_session_factory(engine))
    engine.dispose()


@pytest.fixture()
def add_station(repository):
    def _add(
        station_id: int,
        callsign: str,
        address_hash: str,
        status: GeocodeStatus = GeocodeStatus.PENDING,
        latitude: float | None = None,
        longitude: float | None = None,
        response: str | None = None,
        line1: str = "123 Main St",
    ) -> StationRecord:
        record = StationRecord(
            id=station_id,
            callsign=callsign,
            address=PostalAddress(
                address_line1=line1,
                locality="Springfield",
                administrative_area="IL",
                postal_code="62704",
                country_code="US",
            ),
            address_hash=address_hash,
            geocode_status=status,
            latitude=latitude,
            longitude=longitude,
            geocode_response=response,
        )
        repository.add([record])
        return record

    return _add
