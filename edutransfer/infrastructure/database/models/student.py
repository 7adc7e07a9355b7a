# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student, enrollment and grade models.

A student is a platform-wide identity; enrollments tie the student to one
school for one academic year, and grades hang off an enrollment. A transfer
never deletes rows here: the origin enrollment is only deactivated.
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edutransfer.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from edutransfer.utils.datetime import utc_now

# Health fields carried from the origin profile when the destination copy is empty.
HEALTH_FIELDS = (
    "blood_group",
    "allergies",
    "medications",
    "emergency_contact",
    "emergency_contact_phone",
    "medical_notes",
)


class Student(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Platform-wide student identity and profile."""

    __tablename__ = "students"

    uid: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    blood_group: Mapped[str | None] = mapped_column(String(10), nullable=True)
    allergies: Mapped[str | None] = mapped_column(Text, nullable=True)
    medications: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    medical_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    enrollments: Mapped[list["Enrollment"]] = relationship(back_populates="student")

    @property
    def full_name(self) -> str:
        """First and last name joined for display."""
        return f"{self.first_name} {self.last_name}"


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's membership in one school for one academic year."""

    __tablename__ = "enrollments"
    __table_args__ = (
        Index("ix_enrollments_student_school", "student_id", "school_id"),
        Index("ix_enrollments_class_arm_year", "class_arm_id", "academic_year"),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("students.id"), nullable=False)
    school_id: Mapped[str] = mapped_column(ForeignKey("schools.id"), nullable=False)
    class_id: Mapped[str | None] = mapped_column(ForeignKey("classes.id"), nullable=True)
    class_arm_id: Mapped[str | None] = mapped_column(
        ForeignKey("class_arms.id"), nullable=True
    )
    term_id: Mapped[str | None] = mapped_column(ForeignKey("terms.id"), nullable=True)
    class_level: Mapped[str] = mapped_column(String(50), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    student: Mapped[Student] = relationship(back_populates="enrollments")
    grades: Mapped[list["Grade"]] = relationship(back_populates="enrollment")


class Grade(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One assessment result recorded against an enrollment."""

    __tablename__ = "grades"

    enrollment_id: Mapped[str] = mapped_column(
        ForeignKey("enrollments.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str] = mapped_column(ForeignKey("teachers.id"), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(100), nullable=True)
    grade_type: Mapped[str] = mapped_column(String(20), default="CA", nullable=False)
    assessment_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sequence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assessment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    score: Mapped[float] = mapped_column(Float, nullable=False)
    max_score: Mapped[float] = mapped_column(Float, default=100.0, nullable=False)
    grade: Mapped[str | None] = mapped_column(String(5), nullable=True)
    term: Mapped[str] = mapped_column(String(20), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    enrollment: Mapped[Enrollment] = relationship(back_populates="grades")
