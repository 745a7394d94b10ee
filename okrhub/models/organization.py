"""Directory entities: companies, teams and users."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, SyncedEntityMixin, UUIDMixin


class Company(UUIDMixin, SyncedEntityMixin, Base):
    __tablename__ = "company"
    entity_type = "company"
    payload_fields = ("name",)

    name: Mapped[str] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<Company {self.name}>"


class Team(UUIDMixin, SyncedEntityMixin, Base):
    __tablename__ = "team"
    entity_type = "team"
    payload_fields = ("company_external_id", "name")

    company_external_id: Mapped[str] = mapped_column(String(160), index=True)
    name: Mapped[str] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<Team {self.name}>"


class User(UUIDMixin, SyncedEntityMixin, Base):
    __tablename__ = "okr_user"
    entity_type = "user"
    payload_fields = ("email", "name", "surname")

    email: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str | None] = mapped_column(String(255), default=None)
    surname: Mapped[str | None] = mapped_column(String(255), default=None)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
