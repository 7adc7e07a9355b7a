# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read path from a destination school into the origin school's records.

This is the only place where one school reads another school's enrollments
and grades. The origin school and the student are always taken from the
transfer record the access code resolves to, never from the caller, so the
read is scoped to one student at one school.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edutransfer.domains.transfer.errors import (
    TransferBadRequestError,
    TransferNotFoundError,
)
from edutransfer.infrastructure.database.models import Enrollment, Grade, School, Student
from edutransfer.infrastructure.database.repository import TransferRepository
from edutransfer.models.common import SchoolSummary
from edutransfer.models.transfer import (
    EnrollmentRecord,
    GradeRecord,
    StudentProfile,
    StudentTransferSnapshot,
)
from edutransfer.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


def to_grade_record(grade: Grade) -> GradeRecord:
    """Map a stored grade to its snapshot form."""
    return GradeRecord(
        subject=grade.subject or "N/A",
        grade_type=grade.grade_type,
        assessment_name=grade.assessment_name,
        sequence=grade.sequence,
        assessment_date=grade.assessment_date,
        score=grade.score,
        max_score=grade.max_score,
        grade=grade.grade,
        term=grade.term,
        academic_year=grade.academic_year,
        remarks=grade.remarks,
        signed_at=grade.signed_at,
        created_at=grade.created_at,
    )


def sort_grades(grades: list[Grade]) -> list[Grade]:
    """Order grades most recent first: academic year, term, then creation."""
    return sorted(
        grades,
        key=lambda g: (g.academic_year, g.term, ensure_utc(g.created_at)),
        reverse=True,
    )


def to_enrollment_record(enrollment: Enrollment) -> EnrollmentRecord:
    """Map a stored enrollment (grades loaded) to its snapshot form."""
    return EnrollmentRecord(
        id=enrollment.id,
        class_level=enrollment.class_level,
        academic_year=enrollment.academic_year,
        enrollment_date=enrollment.enrollment_date,
        is_active=enrollment.is_active,
        grades=[to_grade_record(g) for g in sort_grades(list(enrollment.grades))],
    )


class CrossTenantAccessor:
    """Loads a student's origin-school history for a transfer."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = TransferRepository(session)

    async def load_origin_history(self, student_id: str, school_id: str) -> list[Enrollment]:
        """Load every enrollment the student had at a school, grades included.

        Args:
            student_id: Student whose history is read.
            school_id: School the enrollments belong to.

        Returns:
            Enrollments newest first by enrollment date.
        """
        result = await self.session.execute(
            select(Enrollment)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.school_id == school_id,
            )
            .options(selectinload(Enrollment.grades))
            .order_by(Enrollment.enrollment_date.desc())
        )
        return list(result.scalars().all())

    async def get_student(self, student_id: str) -> Student:
        """Load a student or raise NotFound."""
        student = await self.session.get(Student, student_id)
        if student is None:
            raise TransferNotFoundError("Student not found")
        return student

    async def get_school_summary(self, school_id: str) -> SchoolSummary:
        """Load a school reference or raise NotFound."""
        school = await self.session.get(School, school_id)
        if school is None:
            raise TransferNotFoundError("School not found")
        return SchoolSummary(id=school.id, name=school.name)

    async def fetch_by_tac(self, tac: str, student_id: str) -> StudentTransferSnapshot:
        """Build the review snapshot for the student an access code covers.

        Args:
            tac: Access code presented by the destination school.
            student_id: Student the destination expects the code to cover.

        Returns:
            Profile, current enrollment with grades, full enrollment history
            and origin school reference.

        Raises:
            TransferNotFoundError: Unknown code, missing student, or no
                enrollment at the origin school.
            TransferBadRequestError: The code belongs to another student.
        """
        transfer = await self.repo.get_by_tac(tac)
        if transfer is None:
            raise TransferNotFoundError("Invalid TAC")

        if transfer.student_id != student_id:
            raise TransferBadRequestError("This TAC was not issued for this student")

        student = await self.get_student(transfer.student_id)
        enrollments = await self.load_origin_history(transfer.student_id, transfer.from_school_id)
        if not enrollments:
            raise TransferNotFoundError("No enrollment found for this student at the current school")

        current = next((e for e in enrollments if e.is_active), enrollments[0])
        records = [to_enrollment_record(e) for e in enrollments]
        current_record = next(r for r in records if r.id == current.id)

        logger.debug(
            "Fetched transfer snapshot: transfer=%s, enrollments=%d, grades=%d",
            transfer.id,
            len(records),
            sum(len(r.grades) for r in records),
        )

        return StudentTransferSnapshot(
            student=StudentProfile.model_validate(student),
            enrollment=current_record,
            grades=current_record.grades,
            enrollments=records,
            from_school=await self.get_school_summary(transfer.from_school_id),
        )
