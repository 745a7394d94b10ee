"""Objectives, key results, risks and initiatives."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, SluggedMixin, SyncedEntityMixin, UUIDMixin


class Objective(UUIDMixin, SyncedEntityMixin, SluggedMixin, Base):
    __tablename__ = "objective"
    entity_type = "objective"
    payload_fields = ("title", "description", "team_external_id")

    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    team_external_id: Mapped[str] = mapped_column(String(160), index=True)

    def __repr__(self) -> str:
        return f"<Objective {self.title}>"


class KeyResult(UUIDMixin, SyncedEntityMixin, SluggedMixin, Base):
    __tablename__ = "key_result"
    entity_type = "keyResult"
    payload_fields = (
        "objective_external_id",
        "indicator_external_id",
        "team_external_id",
        "weight",
        "impact",
        "forecast_value",
        "target_value",
    )

    objective_external_id: Mapped[str] = mapped_column(String(160), index=True)
    indicator_external_id: Mapped[str] = mapped_column(String(160), index=True)
    team_external_id: Mapped[str] = mapped_column(String(160), index=True)
    # Owned by LinkHub; kept locally but never sent.
    weight: Mapped[float] = mapped_column(Float, default=0)
    impact: Mapped[float | None] = mapped_column(Float, default=None)
    forecast_value: Mapped[float | None] = mapped_column(Float, default=None)
    target_value: Mapped[float | None] = mapped_column(Float, default=None)


class Risk(UUIDMixin, SyncedEntityMixin, SluggedMixin, Base):
    __tablename__ = "risk"
    entity_type = "risk"
    payload_fields = (
        "description",
        "team_external_id",
        "key_result_external_id",
        "priority",
        "indicator_external_id",
        "trigger_value",
        "triggered_if_lower",
        "use_forecast_as_trigger",
        "is_red",
    )

    description: Mapped[str] = mapped_column(Text)
    team_external_id: Mapped[str] = mapped_column(String(160), index=True)
    key_result_external_id: Mapped[str] = mapped_column(String(160), index=True)
    priority: Mapped[str] = mapped_column(String(20), default="medium")  # lowest/low/medium/high/highest
    indicator_external_id: Mapped[str | None] = mapped_column(String(160), default=None)
    trigger_value: Mapped[float | None] = mapped_column(Float, default=None)
    triggered_if_lower: Mapped[bool | None] = mapped_column(Boolean, default=None)
    use_forecast_as_trigger: Mapped[bool | None] = mapped_column(Boolean, default=None)
    is_red: Mapped[bool | None] = mapped_column(Boolean, default=None)


class Initiative(UUIDMixin, SyncedEntityMixin, SluggedMixin, Base):
    __tablename__ = "initiative"
    entity_type = "initiative"
    payload_fields = (
        "description",
        "team_external_id",
        "risk_external_id",
        "assignee_external_id",
        "created_by_external_id",
        "priority",
        "status",
        "finished_at",
        "external_url",
        "notes",
    )

    description: Mapped[str] = mapped_column(Text)
    team_external_id: Mapped[str] = mapped_column(String(160), index=True)
    risk_external_id: Mapped[str | None] = mapped_column(String(160), default=None, index=True)
    assignee_external_id: Mapped[str] = mapped_column(String(160), index=True)
    created_by_external_id: Mapped[str] = mapped_column(String(160))
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    status: Mapped[str] = mapped_column(String(20), default="ON_TIME")  # ON_TIME/OVERDUE/FINISHED
    finished_at: Mapped[int | None] = mapped_column(BigInteger, default=None)
    external_url: Mapped[str | None] = mapped_column(Text, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
