from __future__ import annotations

from dataclasses import replace

import pytest

from ham_station.common.errors import StageError
from ham_station.common.models import GeocodeStatus


@pytest.mark.integration
def test_select_pending_batch_takes_lowest_id_per_address(repository, add_station):
    add_station(1, "W1AW", "H1")
    add_station(2, "K1ABC", "H1")
    add_station(3, "N0CALL", "H2")

    assert sorted(repository.select_pending_batch(10)) == [1, 3]


@pytest.mark.integration
def test_select_pending_batch_skips_groups_already_resolved(repository, add_station):
    add_station(1, "W1AW", "H1")
    add_station(2, "K1ABC", "H1", status=GeocodeStatus.SUCCESS, latitude=1.0, longitude=2.0)
    add_station(3, "N0CALL", "H2")

    assert repository.select_pending_batch(10) == [3]


@pytest.mark.integration
def test_select_pending_batch_skips_group_when_first_record_not_pending(repository, add_station):
    add_station(1, "W1AW", "H1", status=GeocodeStatus.NOT_FOUND)
    add_station(2, "K1ABC", "H1")

    assert repository.select_pending_batch(10) == []


@pytest.mark.integration
def test_select_pending_batch_honours_limit_and_extra_where(repository, add_station):
    for station_id, callsign in enumerate(["W1AW", "K1ABC", "W2XYZ", "N0CALL"], start=1):
        add_station(station_id, callsign, f"H{station_id}")

    assert len(repository.select_pending_batch(2)) == 2
    assert sorted(repository.select_pending_batch(10, "hs.callsign LIKE 'W%'")) == [1, 3]


@pytest.mark.integration
def test_select_pending_batch_is_idempotent_after_resolution(repository, add_station):
    add_station(1, "W1AW", "H1")
    add_station(2, "K1ABC", "H2")
    add_station(3, "N0CALL", "H3")

    first = repository.select_pending_batch(10)
    assert sorted(first) == [1, 2, 3]
    assert repository.select_pending_batch(10) == first

    repository.save(replace(repository.load(1), geocode_status=GeocodeStatus.SUCCESS, latitude=1.0, longitude=1.0))
    repository.save(replace(repository.load(2), geocode_status=GeocodeStatus.NOT_FOUND))

    assert repository.select_pending_batch(10) == [3]
    assert repository.select_pending_batch(10) == [3]


@pytest.mark.integration
def test_load_and_save_round_trip_fields(repository, add_station):
    add_station(7, "W1AW", "H1")
    record = repository.load(7)

    repository.save(
        replace(record, geocode_status=GeocodeStatus.SUCCESS, latitude=40.0, longitude=-105.0, geocode_response="{}")
    )
    saved = repository.load(7)

    assert saved.geocode_status is GeocodeStatus.SUCCESS
    assert saved.location == (40.0, -105.0)
    assert saved.geocode_response == "{}"
    assert saved.address == record.address


@pytest.mark.integration
def test_load_missing_station_raises(repository):
    with pytest.raises(StageError):
        repository.load(404)


@pytest.mark.integration
def test_duplicate_pairs_join_on_hash_ordered_by_success_id(repository, add_station):
    add_station(1, "W1AW", "H1")
    add_station(2, "K1ABC", "H2", status=GeocodeStatus.SUCCESS, latitude=1.0, longitude=1.0)
    add_station(3, "N0CALL", "H1", status=GeocodeStatus.SUCCESS, latitude=2.0, longitude=2.0)
    add_station(4, "W2XYZ", "H2", status=GeocodeStatus.NOT_FOUND)
    add_station(5, "W3XYZ", "H3")

    pairs = repository.duplicate_pairs()

    assert [success_id for success_id, _ in pairs] == [2, 3]
    assert sorted(pairs) == [(2, 4), (3, 1)]
