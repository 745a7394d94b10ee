"""Pydantic models for local entity create/update operations."""

from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel

Priority = Literal["lowest", "low", "medium", "high", "highest"]
Periodicity = Literal["weekly", "monthly", "quarterly", "semesterly", "yearly"]
IndicatorType = Literal["OUTPUT", "OUTCOME"]
InitiativeStatus = Literal["ON_TIME", "OVERDUE", "FINISHED"]
MilestoneStatus = Literal["ON_TIME", "OVERDUE", "ACHIEVED_ON_TIME", "ACHIEVED_LATE"]


class EntityCreate(BaseModel):
    external_id: str | None = None
    source_url: str | None = None


# ── Directory ─────────────────────────────────────────────────────────────

class CompanyCreate(EntityCreate):
    name: str


class CompanyUpdate(BaseModel):
    name: str | None = None


class TeamCreate(EntityCreate):
    company_external_id: str
    name: str


class TeamUpdate(BaseModel):
    name: str | None = None


class UserCreate(EntityCreate):
    email: str
    name: str | None = None
    surname: str | None = None


class UserUpdate(BaseModel):
    email: str | None = None
    name: str | None = None
    surname: str | None = None


# ── Indicators ────────────────────────────────────────────────────────────

class IndicatorCreate(EntityCreate):
    company_external_id: str
    description: str
    symbol: str
    periodicity: Periodicity
    assignee_external_id: str | None = None
    is_reverse: bool | None = None
    type: IndicatorType | None = None
    notes: str | None = None
    automation_url: str | None = None
    automation_description: str | None = None
    forecast_date: int | None = None


class IndicatorUpdate(BaseModel):
    description: str | None = None
    symbol: str | None = None
    periodicity: Periodicity | None = None
    assignee_external_id: str | None = None
    is_reverse: bool | None = None
    type: IndicatorType | None = None
    notes: str | None = None
    automation_url: str | None = None
    automation_description: str | None = None
    forecast_date: int | None = None


class IndicatorValueCreate(EntityCreate):
    indicator_external_id: str
    value: float
    date: int


class IndicatorValueUpdate(BaseModel):
    value: float | None = None


class IndicatorForecastCreate(IndicatorValueCreate):
    pass


class IndicatorForecastUpdate(IndicatorValueUpdate):
    pass


class MilestoneCreate(EntityCreate):
    indicator_external_id: str
    description: str
    value: float
    forecast_date: int | None = None
    status: MilestoneStatus = "ON_TIME"
    achieved_at: int | None = None


class MilestoneUpdate(BaseModel):
    description: str | None = None
    value: float | None = None
    forecast_date: int | None = None
    status: MilestoneStatus | None = None
    achieved_at: int | None = None


# ── OKRs ──────────────────────────────────────────────────────────────────

class ObjectiveCreate(EntityCreate):
    title: str
    description: str
    team_external_id: str


class ObjectiveUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    team_external_id: str | None = None


class KeyResultCreate(EntityCreate):
    objective_external_id: str
    indicator_external_id: str
    team_external_id: str
    impact: float | None = None
    forecast_value: float | None = None
    target_value: float | None = None


class KeyResultUpdate(BaseModel):
    objective_external_id: str | None = None
    impact: float | None = None
    forecast_value: float | None = None
    target_value: float | None = None


class RiskCreate(EntityCreate):
    description: str
    team_external_id: str
    key_result_external_id: str
    priority: Priority
    indicator_external_id: str | None = None
    trigger_value: float | None = None
    triggered_if_lower: bool | None = None
    use_forecast_as_trigger: bool | None = None
    is_red: bool | None = None


class RiskUpdate(BaseModel):
    description: str | None = None
    priority: Priority | None = None
    indicator_external_id: str | None = None
    trigger_value: float | None = None
    triggered_if_lower: bool | None = None
    use_forecast_as_trigger: bool | None = None
    is_red: bool | None = None


class InitiativeCreate(EntityCreate):
    description: str
    team_external_id: str
    assignee_external_id: str
    created_by_external_id: str
    priority: Priority
    risk_external_id: str | None = None
    status: InitiativeStatus = "ON_TIME"
    finished_at: int | None = None
    external_url: str | None = None
    notes: str | None = None


class InitiativeUpdate(BaseModel):
    description: str | None = None
    assignee_external_id: str | None = None
    risk_external_id: str | None = None
    priority: Priority | None = None
    status: InitiativeStatus | None = None
    finished_at: int | None = None
    external_url: str | None = None
    notes: str | None = None


# ── Results ───────────────────────────────────────────────────────────────

class MutationResult(BaseModel):
    """Outcome of a local create/update. Errors are reported, not raised."""

    success: bool
    external_id: str = ""
    local_id: uuid.UUID | None = None
    queue_id: int | None = None
    error: str | None = None
    existing: bool = False
