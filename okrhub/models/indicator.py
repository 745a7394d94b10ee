"""Indicators and their time series and milestones."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, SluggedMixin, SyncedEntityMixin, UUIDMixin


class Indicator(UUIDMixin, SyncedEntityMixin, SluggedMixin, Base):
    __tablename__ = "indicator"
    entity_type = "indicator"
    payload_fields = (
        "company_external_id",
        "description",
        "symbol",
        "periodicity",
        "assignee_external_id",
        "is_reverse",
        "type",
        "notes",
        "automation_url",
        "automation_description",
        "forecast_date",
    )

    company_external_id: Mapped[str] = mapped_column(String(160), index=True)
    description: Mapped[str] = mapped_column(Text)
    symbol: Mapped[str] = mapped_column(String(20))
    periodicity: Mapped[str] = mapped_column(String(20))  # weekly/monthly/quarterly/semesterly/yearly
    assignee_external_id: Mapped[str | None] = mapped_column(String(160), default=None)
    is_reverse: Mapped[bool | None] = mapped_column(Boolean, default=None)
    type: Mapped[str | None] = mapped_column(String(20), default=None)  # OUTPUT/OUTCOME
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    automation_url: Mapped[str | None] = mapped_column(Text, default=None)
    automation_description: Mapped[str | None] = mapped_column(Text, default=None)
    forecast_date: Mapped[int | None] = mapped_column(BigInteger, default=None)

    def __repr__(self) -> str:
        return f"<Indicator {self.symbol}>"


class IndicatorValue(UUIDMixin, SyncedEntityMixin, Base):
    __tablename__ = "indicator_value"
    entity_type = "indicatorValue"
    payload_fields = ("indicator_external_id", "value", "date")

    indicator_external_id: Mapped[str] = mapped_column(String(160), index=True)
    value: Mapped[float] = mapped_column(Float)
    date: Mapped[int] = mapped_column(BigInteger)


class IndicatorForecast(UUIDMixin, SyncedEntityMixin, Base):
    __tablename__ = "indicator_forecast"
    entity_type = "indicatorForecast"
    payload_fields = ("indicator_external_id", "value", "date")

    indicator_external_id: Mapped[str] = mapped_column(String(160), index=True)
    value: Mapped[float] = mapped_column(Float)
    date: Mapped[int] = mapped_column(BigInteger)


class Milestone(UUIDMixin, SyncedEntityMixin, SluggedMixin, Base):
    __tablename__ = "milestone"
    entity_type = "milestone"
    payload_fields = (
        "indicator_external_id",
        "description",
        "value",
        "forecast_date",
        "status",
        "achieved_at",
    )

    indicator_external_id: Mapped[str] = mapped_column(String(160), index=True)
    description: Mapped[str] = mapped_column(Text)
    value: Mapped[float] = mapped_column(Float)
    forecast_date: Mapped[int | None] = mapped_column(BigInteger, default=None)
    status: Mapped[str] = mapped_column(
        String(20), default="ON_TIME"
    )  # ON_TIME/OVERDUE/ACHIEVED_ON_TIME/ACHIEVED_LATE
    achieved_at: Mapped[int | None] = mapped_column(BigInteger, default=None)
