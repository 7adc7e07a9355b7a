# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School-scoped organisation models.

Every row here belongs to exactly one school (tenant). Placement during a
transfer reads these tables on the destination side only.
"""

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edutransfer.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class School(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A tenant school."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Teacher(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A teacher employed by one school."""

    __tablename__ = "teachers"
    __table_args__ = (Index("ix_teachers_school_id", "school_id"),)

    school_id: Mapped[str] = mapped_column(ForeignKey("schools.id"), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class SchoolClass(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A class offered by a school for an academic year (e.g. "JSS2")."""

    __tablename__ = "classes"
    __table_args__ = (Index("ix_classes_school_id", "school_id"),)

    school_id: Mapped[str] = mapped_column(ForeignKey("schools.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    class_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    academic_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ClassLevel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A grade level within a school (e.g. "JSS2"), subdivided into arms."""

    __tablename__ = "class_levels"
    __table_args__ = (Index("ix_class_levels_school_id", "school_id"),)

    school_id: Mapped[str] = mapped_column(ForeignKey("schools.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    arms: Mapped[list["ClassArm"]] = relationship(back_populates="class_level")


class ClassArm(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A subdivision of a class level with its own optional capacity."""

    __tablename__ = "class_arms"

    class_level_id: Mapped[str] = mapped_column(
        ForeignKey("class_levels.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    class_level: Mapped[ClassLevel] = relationship(back_populates="arms")


class AcademicSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An academic session (school year) of one school."""

    __tablename__ = "academic_sessions"
    __table_args__ = (Index("ix_academic_sessions_school_id", "school_id"),)

    school_id: Mapped[str] = mapped_column(ForeignKey("schools.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE", nullable=False)

    terms: Mapped[list["Term"]] = relationship(back_populates="academic_session")


class Term(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A term within an academic session."""

    __tablename__ = "terms"

    academic_session_id: Mapped[str] = mapped_column(
        ForeignKey("academic_sessions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE", nullable=False)

    academic_session: Mapped[AcademicSession] = relationship(back_populates="terms")
