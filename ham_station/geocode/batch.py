"""Geocode a bounded batch of pending station records.

One representative record per address hash is sent to the Google Geocoding
API. Results are written back one record at a time. Quota, auth and
malformed-request responses, or an address that keeps failing at the HTTP
level, end the run early; the remaining records stay pending for the next
scheduled run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterator

from ham_station.common.config_loader import parse_batch_size
from ham_station.common.constants import GOOGLE_GEOCODE_URL
from ham_station.common.errors import ConfigError, UpstreamRecordError, UpstreamSystemicError
from ham_station.common.http import HttpClient, TransportError
from ham_station.common.logging import log_event
from ham_station.common.models import GeocodeStatus, StationRecord
from ham_station.geocode.classify import (
    STATUS_INVALID_REQUEST,
    STATUS_OVER_QUERY_LIMIT,
    STATUS_REQUEST_DENIED,
    GeocodeAnswer,
    classify_response,
    decode_body,
)
from ham_station.geocode.progress import ProgressEvent, ProgressSink, drain
from ham_station.geocode.request import build_geocode_request
from ham_station.store.repository import StationRepository

STOPPED_TRANSPORT = "transport"
STAGE = "geocode"


@dataclass(frozen=True)
class BatchSummary:
    success: int = 0
    not_found: int = 0
    error_count: int = 0
    stopped_reason: str | None = None

    @property
    def stopped_early(self) -> bool:
        return self.stopped_reason is not None

    @property
    def message(self) -> str:
        return (
            f"Geocode results: Success: {self.success} | "
            f"Not found: {self.not_found} | Errors: {self.error_count}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "not_found": self.not_found,
            "error_count": self.error_count,
            "stopped_reason": self.stopped_reason,
        }


def _systemic_message(exc: UpstreamSystemicError, record: StationRecord) -> str:
    if exc.status == STATUS_OVER_QUERY_LIMIT:
        return "Geocoding query limit exceeded"
    if exc.status == STATUS_REQUEST_DENIED:
        return f"Geocoding request denied for {record.callsign}."
    if exc.status == STATUS_INVALID_REQUEST:
        return f"Invalid geocoding request for {record.callsign}."
    return f"Geocoding stopped by {exc.status} for {record.callsign}."


def _apply_answer(record: StationRecord, answer: GeocodeAnswer, body: str) -> StationRecord:
    if answer.status == GeocodeStatus.SUCCESS and answer.location is not None:
        lat, lng = answer.location
        return replace(
            record,
            geocode_status=GeocodeStatus.SUCCESS,
            latitude=lat,
            longitude=lng,
            geocode_response=body,
        )
    return replace(record, geocode_status=answer.status, geocode_response=body)


def _fetch(
    http_client: HttpClient,
    record: StationRecord,
    api_key: str,
    endpoint: str,
    logger: logging.Logger,
) -> str:
    request = build_geocode_request(record.address, api_key, endpoint=endpoint)

    def _warn(attempt: int, exc: TransportError) -> None:
        log_event(
            logger,
            f"{exc} while geocoding {record.callsign}",
            logging.WARNING,
            stage=STAGE,
            event="HTTP_RETRY",
            status="warning",
            callsign=record.callsign,
            attempt=attempt,
            error_code=exc.error_code,
        )

    return http_client.get_text(request.endpoint, params=request.params, on_failure=_warn)


def _geocode_events(
    repository: StationRepository,
    http_client: HttpClient,
    api_key: str,
    batch_size: int,
    extra_where: str | None,
    endpoint: str,
    logger: logging.Logger,
) -> Iterator[ProgressEvent]:
    success = 0
    not_found = 0
    error_count = 0
    stopped_reason = None

    station_ids = repository.select_pending_batch(batch_size, extra_where)
    log_event(
        logger,
        f"Selected {len(station_ids)} stations for geocoding",
        stage=STAGE,
        event="BATCH_START",
        status="ok",
    )

    for station_id in station_ids:
        record = repository.load(station_id)

        try:
            body = _fetch(http_client, record, api_key, endpoint, logger)
        except TransportError as exc:
            message = f"Excessive http errors while geocoding {record.callsign}."
            log_event(
                logger,
                message,
                logging.ERROR,
                stage=STAGE,
                event="BATCH_HALT",
                status="error",
                callsign=record.callsign,
                error_code=exc.error_code,
            )
            yield ProgressEvent("halted", message)
            stopped_reason = STOPPED_TRANSPORT
            break

        try:
            answer = classify_response(decode_body(body))
        except UpstreamSystemicError as exc:
            if exc.counts_as_error:
                error_count += 1
            message = _systemic_message(exc, record)
            log_event(
                logger,
                message,
                logging.ERROR if exc.counts_as_error else logging.INFO,
                stage=STAGE,
                event="BATCH_HALT",
                status=exc.status,
                callsign=record.callsign,
                error_code=exc.error_code,
            )
            yield ProgressEvent("halted", message)
            stopped_reason = exc.status
            break
        except UpstreamRecordError as exc:
            error_count += 1
            log_event(
                logger,
                f"{exc} while geocoding {record.callsign}.",
                logging.ERROR,
                stage=STAGE,
                event="RECORD_ERROR",
                status=exc.status,
                callsign=record.callsign,
                error_code=exc.error_code,
            )
            continue

        repository.save(_apply_answer(record, answer, body))
        if answer.status == GeocodeStatus.SUCCESS:
            success += 1
        else:
            not_found += 1

    summary = BatchSummary(
        success=success,
        not_found=not_found,
        error_count=error_count,
        stopped_reason=stopped_reason,
    )
    log_event(logger, summary.message, stage=STAGE, event="BATCH_END", status=stopped_reason or "ok")
    yield ProgressEvent("summary", summary.message, summary=summary)


def iter_geocode_batch(
    repository: StationRepository,
    http_client: HttpClient,
    *,
    api_key: str,
    batch_size: Any,
    extra_where: str | None = None,
    endpoint: str = GOOGLE_GEOCODE_URL,
    logger: logging.Logger | None = None,
) -> Iterator[ProgressEvent]:
    """Validate inputs, then return the event stream for one batch run.

    Configuration problems raise ``ConfigError`` here, before any query or
    request is made. The last event is always of kind ``"summary"`` and
    carries the ``BatchSummary``.
    """
    if not api_key:
        raise ConfigError("Google geocode key is not set.")
    limit = parse_batch_size(batch_size)

    return _geocode_events(
        repository,
        http_client,
        api_key,
        limit,
        extra_where,
        endpoint,
        logger or logging.getLogger("ham_station.geocode"),
    )


def run_geocode_batch(
    repository: StationRepository,
    http_client: HttpClient,
    *,
    api_key: str,
    batch_size: Any,
    extra_where: str | None = None,
    endpoint: str = GOOGLE_GEOCODE_URL,
    logger: logging.Logger | None = None,
    on_progress: ProgressSink | None = None,
) -> BatchSummary:
    events = iter_geocode_batch(
        repository,
        http_client,
        api_key=api_key,
        batch_size=batch_size,
        extra_where=extra_where,
        endpoint=endpoint,
        logger=logger,
    )
    last = drain(events, on_progress)
    return last.summary
