"""Station record repository backed by SQLAlchemy."""

from __future__ import annotations

from typing import Iterable, Protocol

from sqlalchemy import and_, func, select, text
from sqlalchemy.orm import aliased, sessionmaker

from ham_station.common.errors import StageError
from ham_station.common.models import GeocodeStatus, PostalAddress, StationRecord
from ham_station.store.database import StationRow


class StationRepository(Protocol):
    def select_pending_batch(self, limit: int, extra_where: str | None = None) -> list[int]: ...

    def load(self, station_id: int) -> StationRecord: ...

    def save(self, record: StationRecord) -> None: ...

    def duplicate_pairs(self) -> list[tuple[int, int]]: ...

    def add(self, records: Iterable[StationRecord]) -> int: ...


def _to_record(row: StationRow) -> StationRecord:
    return StationRecord(
        id=row.id,
        callsign=row.callsign,
        address=PostalAddress(
            address_line1=row.address_line1,
            locality=row.locality,
            administrative_area=row.administrative_area,
            postal_code=row.postal_code,
            country_code=row.country_code,
        ),
        address_hash=row.address_hash,
        geocode_status=GeocodeStatus(row.geocode_status),
        latitude=row.latitude,
        longitude=row.longitude,
        geocode_response=row.geocode_response,
    )


def _apply_record(row: StationRow, record: StationRecord) -> None:
    row.callsign = record.callsign
    row.address_line1 = record.address.address_line1
    row.locality = record.address.locality
    row.administrative_area = record.address.administrative_area
    row.postal_code = record.address.postal_code
    row.country_code = record.address.country_code
    row.address_hash = record.address_hash
    row.geocode_status = int(record.geocode_status)
    row.latitude = record.latitude
    row.longitude = record.longitude
    row.geocode_response = record.geocode_response


class SqlStationRepository:
    """Each call runs in its own session and transaction."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def select_pending_batch(self, limit: int, extra_where: str | None = None) -> list[int]:
        # The outer table is aliased "hs" so raw extra predicates can refer to it.
        hs = aliased(StationRow, name="hs")
        hs2 = aliased(StationRow, name="hs2")
        hs3 = aliased(StationRow, name="hs3")

        first_in_group = (
            select(func.min(hs2.id))
            .where(hs2.address_hash == hs.address_hash)
            .scalar_subquery()
        )
        group_resolved = (
            select(hs3.id)
            .where(
                hs3.address_hash == hs.address_hash,
                hs3.geocode_status == int(GeocodeStatus.SUCCESS),
            )
            .exists()
        )

        stmt = (
            select(hs.id)
            .where(hs.geocode_status == int(GeocodeStatus.PENDING))
            .where(hs.id == first_in_group)
            .where(~group_resolved)
        )
        if extra_where:
            stmt = stmt.where(text(extra_where))
        stmt = stmt.limit(limit)

        with self.session_factory() as session:
            return list(session.scalars(stmt))

    def load(self, station_id: int) -> StationRecord:
        with self.session_factory() as session:
            row = session.get(StationRow, station_id)
            if row is None:
                raise StageError(f"Station {station_id} not found")
            return _to_record(row)

    def save(self, record: StationRecord) -> None:
        if record.id is None:
            raise StageError(f"Cannot save station {record.callsign} without an id")
        with self.session_factory() as session, session.begin():
            row = session.get(StationRow, record.id)
            if row is None:
                raise StageError(f"Station {record.id} not found")
            _apply_record(row, record)

    def duplicate_pairs(self) -> list[tuple[int, int]]:
        hs1 = aliased(StationRow, name="hs1")
        hs2 = aliased(StationRow, name="hs2")

        stmt = (
            select(hs1.id.label("success_id"), hs2.id.label("other_id"))
            .join(
                hs2,
                and_(
                    hs2.address_hash == hs1.address_hash,
                    hs2.geocode_status != int(GeocodeStatus.SUCCESS),
                ),
            )
            .where(hs1.geocode_status == int(GeocodeStatus.SUCCESS))
            .order_by(hs1.id)
        )

        with self.session_factory() as session:
            return [(row.success_id, row.other_id) for row in session.execute(stmt)]

    def add(self, records: Iterable[StationRecord]) -> int:
        count = 0
        with self.session_factory() as session, session.begin():
            for record in records:
                row = StationRow(id=record.id)
                _apply_record(row, record)
                session.add(row)
                count += 1
        return count
