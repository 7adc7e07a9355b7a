# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Destination-side writes performed when a transfer completes.

MigrationExecutor never commits. It is always run inside the caller's
UnitOfWork together with the transfer finalization, so a failure at any
step (full class arm, no teacher, a grade insert error) leaves no
enrollment, no grades and an unchanged transfer behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from edutransfer.domains.transfer.accessor import CrossTenantAccessor
from edutransfer.domains.transfer.errors import TransferBadRequestError, TransferNotFoundError
from edutransfer.infrastructure.database.models import (
    HEALTH_FIELDS,
    AcademicSession,
    ClassArm,
    ClassLevel,
    Enrollment,
    Grade,
    SchoolClass,
    Student,
    Teacher,
    Term,
    Transfer,
)
from edutransfer.models.transfer import GradeRecord, StudentProfile
from edutransfer.utils.datetime import utc_now

logger = logging.getLogger(__name__)

ACTIVE = "ACTIVE"


@dataclass
class Placement:
    """Where the student lands at the destination school."""

    class_level: str
    class_id: str | None = None
    class_arm_id: str | None = None


class MigrationExecutor:
    """Creates the destination enrollment and carries the record over."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.accessor = CrossTenantAccessor(session)

    async def migrate(
        self,
        to_school_id: str,
        transfer: Transfer,
        target_class_level: str,
        academic_year: str,
        class_id: str | None = None,
        class_arm_id: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Move the student's current origin record into the destination.

        Args:
            to_school_id: Destination school (already checked as the bound one).
            transfer: The locked, APPROVED transfer.
            target_class_level: Requested class level, e.g. "JSS2".
            academic_year: Academic year of the new enrollment.
            class_id: Optional explicit destination class.
            class_arm_id: Optional destination class arm (capacity-checked).
            now: Reference instant.

        Returns:
            Id of the new destination enrollment.

        Raises:
            TransferBadRequestError: Foreign or full class arm, foreign class,
                or no teacher at the destination.
            TransferNotFoundError: Student or origin enrollment vanished.
        """
        now = now or utc_now()

        snapshot = await self.accessor.fetch_by_tac(transfer.tac or "", transfer.student_id)

        placement = await self._resolve_placement(
            to_school_id, target_class_level, academic_year, class_id, class_arm_id
        )
        term_id = await self._find_active_term_id(to_school_id)

        enrollment = Enrollment(
            student_id=transfer.student_id,
            school_id=to_school_id,
            class_id=placement.class_id,
            class_arm_id=placement.class_arm_id,
            term_id=term_id,
            class_level=placement.class_level,
            academic_year=academic_year,
            enrollment_date=now,
            is_active=True,
        )
        self.session.add(enrollment)
        await self.session.flush()

        teacher_id = await self._find_placeholder_teacher_id(to_school_id)
        for record in snapshot.grades:
            self._copy_grade(enrollment.id, teacher_id, record)

        await self._merge_health_fields(transfer.student_id, snapshot.student)
        await self._deactivate_enrollment(snapshot.enrollment.id)
        await self.session.flush()

        logger.info(
            "Migrated student record: transfer=%s, enrollment=%s, grades=%d, level=%s",
            transfer.id,
            enrollment.id,
            len(snapshot.grades),
            placement.class_level,
        )
        return enrollment.id

    async def _resolve_placement(
        self,
        to_school_id: str,
        target_class_level: str,
        academic_year: str,
        class_id: str | None,
        class_arm_id: str | None,
    ) -> Placement:
        if class_arm_id:
            # Lock the arm so concurrent completions into it count serially.
            result = await self.session.execute(
                select(ClassArm, ClassLevel)
                .join(ClassLevel, ClassArm.class_level_id == ClassLevel.id)
                .where(ClassArm.id == class_arm_id)
                .with_for_update(of=ClassArm)
            )
            row = result.first()
            if row is None or row.ClassLevel.school_id != to_school_id:
                raise TransferBadRequestError(
                    "Class arm not found or does not belong to the destination school"
                )
            arm, level = row.ClassArm, row.ClassLevel

            if arm.capacity is not None:
                occupied = (
                    await self.session.execute(
                        select(func.count(Enrollment.id)).where(
                            Enrollment.class_arm_id == arm.id,
                            Enrollment.academic_year == academic_year,
                            Enrollment.is_active.is_(True),
                        )
                    )
                ).scalar_one()
                if occupied >= arm.capacity:
                    raise TransferBadRequestError(
                        f'Class arm "{arm.name}" is at full capacity ({arm.capacity} students)'
                    )

            if class_id:
                class_id = await self._owned_class_id(to_school_id, class_id)
            return Placement(class_level=level.name, class_id=class_id, class_arm_id=arm.id)

        if class_id:
            return Placement(
                class_level=target_class_level,
                class_id=await self._owned_class_id(to_school_id, class_id),
            )

        result = await self.session.execute(
            select(SchoolClass.id)
            .where(
                SchoolClass.school_id == to_school_id,
                SchoolClass.is_active.is_(True),
                or_(
                    SchoolClass.name == target_class_level,
                    SchoolClass.class_level == target_class_level,
                ),
            )
            .limit(1)
        )
        return Placement(class_level=target_class_level, class_id=result.scalar_one_or_none())

    async def _owned_class_id(self, school_id: str, class_id: str) -> str:
        school_class = await self.session.get(SchoolClass, class_id)
        if school_class is None or school_class.school_id != school_id:
            raise TransferBadRequestError(
                "Class not found or does not belong to the destination school"
            )
        return school_class.id

    async def _find_active_term_id(self, school_id: str) -> str | None:
        result = await self.session.execute(
            select(Term.id)
            .join(AcademicSession, Term.academic_session_id == AcademicSession.id)
            .where(
                AcademicSession.school_id == school_id,
                AcademicSession.status == ACTIVE,
                Term.status == ACTIVE,
            )
            .order_by(Term.number.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _find_placeholder_teacher_id(self, school_id: str) -> str:
        result = await self.session.execute(
            select(Teacher.id)
            .where(Teacher.school_id == school_id)
            .order_by(Teacher.created_at)
            .limit(1)
        )
        teacher_id = result.scalar_one_or_none()
        if teacher_id is None:
            raise TransferBadRequestError(
                "No teacher found in destination school. Cannot transfer grades."
            )
        return teacher_id

    def _copy_grade(self, enrollment_id: str, teacher_id: str, record: GradeRecord) -> Grade:
        grade = Grade(
            enrollment_id=enrollment_id,
            teacher_id=teacher_id,
            subject=record.subject,
            grade_type=record.grade_type or "CA",
            assessment_name=record.assessment_name,
            sequence=record.sequence,
            assessment_date=record.assessment_date,
            score=record.score,
            max_score=record.max_score,
            grade=record.grade,
            term=record.term,
            academic_year=record.academic_year,
            remarks=record.remarks,
            signed_at=record.signed_at,
            created_at=record.created_at,
        )
        self.session.add(grade)
        return grade

    async def _merge_health_fields(self, student_id: str, source: StudentProfile) -> None:
        """Fill health fields from the snapshot; empty values never overwrite."""
        student = await self.session.get(Student, student_id)
        if student is None:
            raise TransferNotFoundError("Student not found")

        for field_name in HEALTH_FIELDS:
            value = getattr(source, field_name)
            if value:
                setattr(student, field_name, value)

    async def _deactivate_enrollment(self, enrollment_id: str) -> None:
        enrollment = await self.session.get(Enrollment, enrollment_id)
        if enrollment is not None:
            enrollment.is_active = False
