"""Entity service - local create/update with outbox enqueue in one transaction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, OKRHubError, ValidationError
from ..external_id import (
    assert_valid_external_id,
    extract_entity_type,
    extract_source_app,
    generate_external_id,
    generate_indicator_time_series_external_id,
    generate_scoped_description_external_id,
    generate_slug,
)
from ..models import (
    Company,
    Indicator,
    IndicatorForecast,
    IndicatorValue,
    Initiative,
    KeyResult,
    Milestone,
    Objective,
    Risk,
    Team,
    User,
)
from ..models.base import SyncedEntityMixin, utcnow
from ..schemas import entities as s
from ..schemas.entities import MutationResult
from ..sync.queue import enqueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParentRef:
    """A hierarchy parent that must exist locally before the child is written."""

    field: str
    entity_type: str


@dataclass(frozen=True)
class EntityDefinition:
    model: type[SyncedEntityMixin]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    parents: tuple[ParentRef, ...] = ()
    # Builds the id when the caller supplies none; None means random.
    derive_id: Callable[[str, Any], str] | None = None
    slug_text: Callable[[Any], str] | None = None
    reference_fields: tuple[str, ...] = ()

    @property
    def entity_type(self) -> str:
        return self.model.entity_type


def _reference_fields(schema: type[BaseModel]) -> tuple[str, ...]:
    return tuple(name for name in schema.model_fields if name.endswith("_external_id"))


def _define(model, create_schema, update_schema, **kwargs) -> EntityDefinition:
    return EntityDefinition(
        model=model,
        create_schema=create_schema,
        update_schema=update_schema,
        reference_fields=_reference_fields(create_schema),
        **kwargs,
    )


def _time_series_id(entity_type: str) -> Callable[[str, Any], str]:
    def derive(source_app: str, data: Any) -> str:
        return generate_indicator_time_series_external_id(
            source_app, entity_type, data.indicator_external_id, data.date
        )

    return derive


ENTITY_DEFINITIONS: dict[str, EntityDefinition] = {
    d.entity_type: d
    for d in (
        _define(Company, s.CompanyCreate, s.CompanyUpdate),
        _define(Team, s.TeamCreate, s.TeamUpdate),
        _define(User, s.UserCreate, s.UserUpdate),
        _define(
            Indicator,
            s.IndicatorCreate,
            s.IndicatorUpdate,
            slug_text=lambda d: d.description,
        ),
        _define(
            Objective,
            s.ObjectiveCreate,
            s.ObjectiveUpdate,
            slug_text=lambda d: d.title,
        ),
        _define(
            KeyResult,
            s.KeyResultCreate,
            s.KeyResultUpdate,
            parents=(
                ParentRef("objective_external_id", "objective"),
                ParentRef("indicator_external_id", "indicator"),
            ),
            slug_text=lambda d: "kr",
        ),
        _define(
            Risk,
            s.RiskCreate,
            s.RiskUpdate,
            parents=(
                ParentRef("key_result_external_id", "keyResult"),
                ParentRef("indicator_external_id", "indicator"),
            ),
            slug_text=lambda d: d.description[:30],
        ),
        _define(
            Initiative,
            s.InitiativeCreate,
            s.InitiativeUpdate,
            parents=(ParentRef("risk_external_id", "risk"),),
            slug_text=lambda d: d.description[:30],
        ),
        _define(
            Milestone,
            s.MilestoneCreate,
            s.MilestoneUpdate,
            parents=(ParentRef("indicator_external_id", "indicator"),),
            derive_id=lambda app, d: generate_scoped_description_external_id(
                app, "milestone", d.indicator_external_id, d.description
            ),
            slug_text=lambda d: d.description,
        ),
        _define(
            IndicatorValue,
            s.IndicatorValueCreate,
            s.IndicatorValueUpdate,
            parents=(ParentRef("indicator_external_id", "indicator"),),
            derive_id=_time_series_id("indicatorValue"),
        ),
        _define(
            IndicatorForecast,
            s.IndicatorForecastCreate,
            s.IndicatorForecastUpdate,
            parents=(ParentRef("indicator_external_id", "indicator"),),
            derive_id=_time_series_id("indicatorForecast"),
        ),
    )
}


def get_definition(entity_type: str) -> EntityDefinition:
    definition = ENTITY_DEFINITIONS.get(entity_type)
    if definition is None:
        raise ValidationError(f'Unknown entityType: "{entity_type}"', field="entityType")
    return definition


def snake_case(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def _coerce(schema: type[BaseModel], data: BaseModel | dict[str, Any]) -> BaseModel:
    if isinstance(data, schema):
        return data
    raw = data.model_dump(exclude_unset=True) if isinstance(data, BaseModel) else data
    try:
        return schema.model_validate(raw)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(f"{loc}: {first['msg']}" if loc else first["msg"], field=loc) from exc


def _validate_references(definition: EntityDefinition, values: dict[str, Any]) -> None:
    for name in definition.reference_fields:
        value = values.get(name)
        if value is not None:
            assert_valid_external_id(value, field_name=name)


async def get_entity(db: AsyncSession, entity_type: str, external_id: str):
    model = get_definition(entity_type).model
    result = await db.execute(select(model).where(model.external_id == external_id))
    return result.scalar_one_or_none()


async def list_entities(
    db: AsyncSession,
    entity_type: str,
    sync_status: str | None = None,
    include_deleted: bool = False,
    limit: int = 100,
    **filters: Any,
) -> list:
    model = get_definition(entity_type).model
    stmt = select(model)
    if sync_status:
        stmt = stmt.where(model.sync_status == sync_status)
    if not include_deleted:
        stmt = stmt.where(model.deleted_at.is_(None))
    for name, value in filters.items():
        stmt = stmt.where(getattr(model, name) == value)
    stmt = stmt.order_by(model.created_at.asc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _check_parents(
    db: AsyncSession,
    definition: EntityDefinition,
    values: dict[str, Any],
) -> None:
    for parent in definition.parents:
        parent_id = values.get(parent.field)
        if parent_id is None:
            continue
        if await get_entity(db, parent.entity_type, parent_id) is None:
            raise NotFoundError(
                f"Parent {parent.entity_type} not found: {parent_id}. "
                f"Create it first via create_{snake_case(parent.entity_type)}().",
                entity_type=parent.entity_type,
                external_id=parent_id,
            )


def _resolve_external_id(
    definition: EntityDefinition,
    data: Any,
    source_app: str | None,
) -> tuple[str, bool]:
    """Return the id to use and whether it may already exist locally."""
    supplied = data.external_id
    if supplied:
        assert_valid_external_id(supplied)
        if extract_entity_type(supplied) != definition.entity_type:
            raise ValidationError(
                f'externalId "{supplied}" does not name a {definition.entity_type}',
                field="externalId",
            )
        return supplied, True
    if definition.derive_id is not None:
        return definition.derive_id(source_app or "", data), True
    return generate_external_id(source_app or "", definition.entity_type), False


async def create_entity(
    db: AsyncSession,
    entity_type: str,
    data: BaseModel | dict[str, Any],
    source_app: str | None = None,
) -> MutationResult:
    """Persist a new entity and append its first queue entry.

    Replaying a create whose id was supplied or derived returns the stored
    row with ``existing=True`` and writes nothing.
    """
    external_id = ""
    try:
        definition = get_definition(entity_type)
        payload = _coerce(definition.create_schema, data)
        values = payload.model_dump(exclude={"external_id"})
        _validate_references(definition, values)
        external_id, may_exist = _resolve_external_id(definition, payload, source_app)

        if may_exist:
            existing = await get_entity(db, entity_type, external_id)
            if existing is not None:
                return MutationResult(
                    success=True,
                    external_id=external_id,
                    local_id=existing.id,
                    existing=True,
                )

        await _check_parents(db, definition, values)

        row = definition.model(
            **values,
            external_id=external_id,
            sync_status="pending",
            created_at=utcnow(),
        )
        if definition.slug_text is not None:
            slug_app = source_app or extract_source_app(external_id) or ""
            row.slug = generate_slug(slug_app, definition.slug_text(payload))
        db.add(row)
        await db.flush()

        item = await enqueue(db, entity_type, external_id, row.to_payload())
        await db.commit()
    except OKRHubError as exc:
        await db.rollback()
        logger.info("Create %s rejected: %s", entity_type, exc)
        return MutationResult(success=False, external_id=external_id, error=str(exc))
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Create %s %s hit a constraint: %s", entity_type, external_id, exc.orig)
        return MutationResult(success=False, external_id=external_id, error=str(exc.orig))

    return MutationResult(
        success=True,
        external_id=external_id,
        local_id=row.id,
        queue_id=item.id,
    )


async def update_entity(
    db: AsyncSession,
    entity_type: str,
    external_id: str,
    data: BaseModel | dict[str, Any],
) -> MutationResult:
    """Patch supplied fields and enqueue the merged snapshot.

    Earlier queue entries for the same entity are left untouched.
    """
    try:
        definition = get_definition(entity_type)
        assert_valid_external_id(external_id)
        patch = _coerce(definition.update_schema, data)
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        _validate_references(definition, changes)

        row = await get_entity(db, entity_type, external_id)
        if row is None:
            raise NotFoundError(
                f"{entity_type} not found: {external_id}",
                entity_type=entity_type,
                external_id=external_id,
            )

        await _check_parents(db, definition, changes)

        for name, value in changes.items():
            setattr(row, name, value)
        row.sync_status = "pending"
        row.updated_at = utcnow()
        await db.flush()

        item = await enqueue(db, entity_type, external_id, row.to_payload())
        await db.commit()
    except OKRHubError as exc:
        await db.rollback()
        logger.info("Update %s %s rejected: %s", entity_type, external_id, exc)
        return MutationResult(success=False, external_id=external_id, error=str(exc))

    return MutationResult(
        success=True,
        external_id=external_id,
        local_id=row.id,
        queue_id=item.id,
    )
