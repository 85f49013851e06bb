"""Copy successful geocode results onto other stations at the same address."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator

from ham_station.common.logging import log_event
from ham_station.geocode.progress import ProgressEvent, ProgressSink, drain
from ham_station.store.repository import StationRepository


def iter_copy_duplicates(
    repository: StationRepository,
    *,
    logger: logging.Logger | None = None,
) -> Iterator[ProgressEvent]:
    logger = logger or logging.getLogger("ham_station.duplicates")

    source = None
    update_count = 0

    # Pairs arrive grouped by success id, so each source is loaded once per group.
    for success_id, other_id in repository.duplicate_pairs():
        if source is None or source.id != success_id:
            source = repository.load(success_id)

        other = repository.load(other_id)
        repository.save(
            replace(
                other,
                latitude=source.latitude,
                longitude=source.longitude,
                geocode_response=source.geocode_response,
                geocode_status=source.geocode_status,
            )
        )
        update_count += 1

    message = f"{update_count} geocode results copied to duplicate addresses"
    log_event(logger, message, stage="copy-duplicates", event="COPY_END", status="ok")
    yield ProgressEvent("copied", message, summary=update_count)


def run_copy_duplicates(
    repository: StationRepository,
    *,
    logger: logging.Logger | None = None,
    on_progress: ProgressSink | None = None,
) -> int:
    last = drain(iter_copy_duplicates(repository, logger=logger), on_progress)
    return last.summary
