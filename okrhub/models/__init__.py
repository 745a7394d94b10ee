"""OKRHub models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, SyncedEntityMixin, SluggedMixin
from .organization import Company, Team, User
from .indicator import Indicator, IndicatorValue, IndicatorForecast, Milestone
from .okr import Objective, KeyResult, Risk, Initiative
from .sync import SyncQueueItem, SyncLogEntry

__all__ = [
    "Base",
    "UUIDMixin",
    "SyncedEntityMixin",
    "SluggedMixin",
    "Company",
    "Team",
    "User",
    "Indicator",
    "IndicatorValue",
    "IndicatorForecast",
    "Milestone",
    "Objective",
    "KeyResult",
    "Risk",
    "Initiative",
    "SyncQueueItem",
    "SyncLogEntry",
    "MODELS_BY_ENTITY_TYPE",
]

MODELS_BY_ENTITY_TYPE: dict[str, type[SyncedEntityMixin]] = {
    model.entity_type: model
    for model in (
        Company,
        Team,
        User,
        Indicator,
        IndicatorValue,
        IndicatorForecast,
        Milestone,
        Objective,
        KeyResult,
        Risk,
        Initiative,
    )
}
