# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for the transfer domain.

The snapshot models describe exactly what a destination school may see
about a student before accepting the transfer: profile, health fields and
every enrollment at the origin school with its grades.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from edutransfer.infrastructure.database.models import TransferStatus
from edutransfer.models.common import PaginationMeta, SchoolSummary

# =============================================================================
# Requests
# =============================================================================


class GenerateTacRequest(BaseModel):
    """Issue an access code for a student leaving the school."""

    student_id: str = Field(min_length=1, description="Student to transfer out")
    reason: str | None = Field(None, max_length=1000, description="Reason for transfer")


class InitiateTransferRequest(BaseModel):
    """Claim an access code on behalf of the receiving school."""

    tac: str = Field(min_length=1, description="Transfer Access Code shared by the origin school")
    student_id: str = Field(min_length=1, description="Student the code was issued for")


class CompleteTransferRequest(BaseModel):
    """Placement details for accepting the student."""

    target_class_level: str = Field(min_length=1, examples=["JSS2"])
    academic_year: str = Field(min_length=1, examples=["2024/2025"])
    class_id: str | None = None
    class_arm_id: str | None = None


class RejectTransferRequest(BaseModel):
    """Decline an initiated transfer."""

    reason: str = Field(min_length=1, max_length=1000)


# =============================================================================
# Snapshot
# =============================================================================


class StudentProfile(BaseModel):
    """Student profile as visible to the receiving school."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    uid: str | None = None
    first_name: str
    middle_name: str | None = None
    last_name: str
    date_of_birth: date | None = None
    gender: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    blood_group: str | None = None
    allergies: str | None = None
    medications: str | None = None
    emergency_contact: str | None = None
    emergency_contact_phone: str | None = None
    medical_notes: str | None = None


class StudentSummary(BaseModel):
    """Short student reference used in listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    uid: str | None = None
    first_name: str
    last_name: str


class GradeRecord(BaseModel):
    """One historical assessment result."""

    subject: str = "N/A"
    grade_type: str
    assessment_name: str | None = None
    sequence: int | None = None
    assessment_date: datetime | None = None
    score: float
    max_score: float
    grade: str | None = None
    term: str
    academic_year: str
    remarks: str | None = None
    signed_at: datetime | None = None
    created_at: datetime


class EnrollmentRecord(BaseModel):
    """One enrollment at the origin school and its grades."""

    id: str
    class_level: str
    academic_year: str
    enrollment_date: datetime
    is_active: bool
    grades: list[GradeRecord] = Field(default_factory=list)


class StudentTransferSnapshot(BaseModel):
    """Everything the destination school reviews before completing.

    ``enrollment`` and ``grades`` describe the current (or most recent)
    enrollment; ``enrollments`` holds the full per-enrollment history.
    """

    student: StudentProfile
    enrollment: EnrollmentRecord
    grades: list[GradeRecord]
    enrollments: list[EnrollmentRecord]
    from_school: SchoolSummary


# =============================================================================
# Responses
# =============================================================================


class GenerateTacResponse(BaseModel):
    """Issued access code."""

    transfer_id: str
    tac: str
    student_id: str
    student_name: str
    expires_at: datetime
    message: str = "Share this TAC with the receiving school"


class InitiateTransferResponse(BaseModel):
    """Result of claiming an access code."""

    transfer_id: str
    student_data: StudentTransferSnapshot
    message: str = "Transfer initiated. Review student data and complete the transfer."


class CompleteTransferResponse(BaseModel):
    """Result of a completed migration."""

    transfer_id: str
    new_enrollment_id: str
    message: str = "Transfer completed successfully"


class TransferActionResponse(BaseModel):
    """Result of reject / revoke."""

    transfer_id: str
    status: TransferStatus
    message: str


class TransferSummary(BaseModel):
    """A transfer as shown in outgoing/incoming listings."""

    id: str
    status: TransferStatus
    student: StudentSummary
    from_school: SchoolSummary
    to_school: SchoolSummary | None = None
    tac: str | None = None
    tac_expires_at: datetime | None = None
    tac_used_at: datetime | None = None
    reason: str | None = None
    rejection_reason: str | None = None
    created_at: datetime
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    completed_at: datetime | None = None


class TransferListResponse(BaseModel):
    """Paginated transfer listing."""

    transfers: list[TransferSummary]
    meta: PaginationMeta


class TransferReference(BaseModel):
    """Status block attached to historical grade responses."""

    id: str
    status: TransferStatus
    completed_at: datetime | None = None


class HistoricalGradesResponse(BaseModel):
    """Grades the origin school still holds for a completed transfer."""

    transfer: TransferReference
    student: StudentSummary
    from_school: SchoolSummary
    enrollments: list[EnrollmentRecord]
