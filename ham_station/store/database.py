"""
Database Module
---------------
ORM table for station records plus engine/session construction.
Uses SQLAlchemy so the store can be SQLite locally or any server database in production.
"""
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Float, Index, Integer, String, Text, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from ham_station.common.fs import ensure_dir
from ham_station.common.models import GeocodeStatus

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StationRow(Base):
    __tablename__ = "ham_station"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    callsign: Mapped[str] = mapped_column(String(20), nullable=False)
    address_line1: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    locality: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    administrative_area: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    postal_code: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    country_code: Mapped[str] = mapped_column(String(2), nullable=False, default="")
    address_hash: Mapped[str] = mapped_column(String(40), nullable=False)
    geocode_status: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(GeocodeStatus.PENDING)
    )
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    geocode_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("index_address_hash", "address_hash"),
        Index("index_geocode_status", "geocode_status"),
    )


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        ensure_dir(Path(url.database).parent)
    return create_engine(url)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created (if they didn't exist previously).")
