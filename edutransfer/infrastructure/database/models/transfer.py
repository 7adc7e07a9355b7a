# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer record model.

The ``tac`` column carries a store-level unique index; concurrent issuance
relies on it rather than on the pre-insert availability check.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edutransfer.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from edutransfer.infrastructure.database.models.school import School
from edutransfer.infrastructure.database.models.student import Student


class TransferStatus(str, Enum):
    """Lifecycle states of a transfer."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class Transfer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A request to move one student's record from one school to another."""

    __tablename__ = "transfers"
    __table_args__ = (
        Index("ix_transfers_tac", "tac", unique=True),
        Index("ix_transfers_student_from_school", "student_id", "from_school_id"),
        Index("ix_transfers_to_school_id", "to_school_id"),
        Index("ix_transfers_tac_expires_at", "tac_expires_at"),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("students.id"), nullable=False)
    from_school_id: Mapped[str] = mapped_column(ForeignKey("schools.id"), nullable=False)
    to_school_id: Mapped[str | None] = mapped_column(ForeignKey("schools.id"), nullable=True)

    tac: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tac_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    tac_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    tac_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    tac_used_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    status: Mapped[TransferStatus] = mapped_column(
        SAEnum(
            TransferStatus,
            name="transfer_status",
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=TransferStatus.PENDING,
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped[Student] = relationship()
    from_school: Mapped[School] = relationship(foreign_keys=[from_school_id])
    to_school: Mapped[School | None] = relationship(foreign_keys=[to_school_id])
