"""CLI entrypoint for the ham station geocoder."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sqlalchemy.engine import Engine

from ham_station.common.config_loader import Settings, load_settings
from ham_station.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from ham_station.common.errors import GeocodeError, StageError
from ham_station.common.fs import write_json
from ham_station.common.http import HttpClient
from ham_station.common.ids import generate_run_id
from ham_station.common.logging import build_logger, log_event
from ham_station.common.time_utils import utc_timestamp_iso
from ham_station.geocode.batch import run_geocode_batch
from ham_station.geocode.duplicates import run_copy_duplicates
from ham_station.geocode.progress import ProgressSink
from ham_station.store.database import build_engine, build_session_factory, create_tables
from ham_station.store.importer import import_stations_csv
from ham_station.store.repository import SqlStationRepository


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config", default="./config/ham_station.yml")
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--csv", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--quiet", action="store_true")
    return parser.parse_args(argv)


def execute_command(
    command: str,
    args: argparse.Namespace,
    settings: Settings,
    engine: Engine,
    logger: logging.Logger,
    on_progress: ProgressSink | None,
) -> dict:
    repository = SqlStationRepository(build_session_factory(engine))

    if command == "init-db":
        create_tables(engine)
        return {"status": "ok"}
    if command == "import":
        if not args.csv:
            raise StageError("The import command needs --csv")
        create_tables(engine)
        imported = import_stations_csv(Path(args.csv), repository)
        if on_progress is not None:
            on_progress(f"{imported} stations imported")
        return {"imported": imported}
    if command == "geocode":
        batch_size = args.batch_size if args.batch_size is not None else settings.geocode.batch_size
        with HttpClient(
            timeout=settings.timeout,
            retry=settings.retry,
            rate_per_sec=settings.rate_per_sec,
        ) as client:
            summary = run_geocode_batch(
                repository,
                client,
                api_key=settings.geocode.api_key,
                batch_size=batch_size,
                extra_where=settings.geocode.extra_where,
                endpoint=settings.geocode.endpoint,
                logger=logger,
                on_progress=on_progress,
            )
        return summary.to_dict()
    if command == "copy-duplicates":
        copied = run_copy_duplicates(repository, logger=logger, on_progress=on_progress)
        return {"copied": copied}
    raise ValueError(f"Unknown command: {command}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    overlay_path = Path(args.overlay_config) if args.overlay_config else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    on_progress = None if args.quiet else print
    commands = ("geocode", "copy-duplicates") if args.command == "all" else (args.command,)

    report = {
        "run_id": run_id,
        "command": args.command,
        "started_at": utc_timestamp_iso(),
        "results": {},
    }
    exit_code = EXIT_SUCCESS

    try:
        settings = load_settings(Path(args.config), overlay_path=overlay_path)
    except GeocodeError as exc:
        log_event(
            logger,
            str(exc),
            logging.ERROR,
            run_id=run_id,
            event="CONFIG_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL

    engine = build_engine(args.database_url or settings.database_url)
    try:
        for command in commands:
            log_event(logger, "command start", run_id=run_id, stage=command, event="COMMAND_START", status="ok")
            try:
                result = execute_command(command, args, settings, engine, logger, on_progress)
            except GeocodeError as exc:
                log_event(
                    logger,
                    f"{command} failed: {exc}",
                    logging.ERROR,
                    run_id=run_id,
                    stage=command,
                    event="COMMAND_FAIL",
                    status="error",
                    error_code=exc.error_code,
                )
                report["results"][command] = {"error": str(exc), "error_code": exc.error_code}
                exit_code = EXIT_HARD_FAIL
                break

            report["results"][command] = result
            if result.get("stopped_reason"):
                exit_code = EXIT_PARTIAL
            log_event(logger, "command end", run_id=run_id, stage=command, event="COMMAND_END", status="ok")
    finally:
        engine.dispose()

    report["finished_at"] = utc_timestamp_iso()
    write_json(data_dir / "reports" / f"{run_id}.json", report)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except GeocodeError:
        return EXIT_HARD_FAIL
    except Exception:
        logging.getLogger("ham_station").exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
