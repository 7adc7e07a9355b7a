# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial transfer schema.

Revision ID: 001_transfer_schema
Revises: None
Create Date: 2025-03-10

Creates the school, student, enrollment, grade and transfer tables. The
unique index on transfers.tac is what makes concurrent code issuance safe.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_transfer_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create transfer tables."""
    # ==========================================================================
    # 1. Schools and staff
    # ==========================================================================
    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), unique=True, nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "teachers",
        _id(),
        sa.Column("school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_teachers_school_id", "teachers", ["school_id"])

    # ==========================================================================
    # 2. Classes, levels and arms
    # ==========================================================================
    op.create_table(
        "classes",
        _id(),
        sa.Column("school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(50), nullable=True),
        sa.Column("class_level", sa.String(50), nullable=True),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("academic_year", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_classes_school_id", "classes", ["school_id"])

    op.create_table(
        "class_levels",
        _id(),
        sa.Column("school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(50), nullable=True),
        sa.Column("level", sa.Integer, nullable=False, server_default="0"),
        sa.Column("type", sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_class_levels_school_id", "class_levels", ["school_id"])

    op.create_table(
        "class_arms",
        _id(),
        sa.Column(
            "class_level_id",
            sa.String(36),
            sa.ForeignKey("class_levels.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_class_arms_class_level_id", "class_arms", ["class_level_id"])

    # ==========================================================================
    # 3. Academic calendar
    # ==========================================================================
    op.create_table(
        "academic_sessions",
        _id(),
        sa.Column("school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("name", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
    )
    op.create_index("ix_academic_sessions_school_id", "academic_sessions", ["school_id"])

    op.create_table(
        "terms",
        _id(),
        sa.Column(
            "academic_session_id",
            sa.String(36),
            sa.ForeignKey("academic_sessions.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("number", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
    )
    op.create_index("ix_terms_academic_session_id", "terms", ["academic_session_id"])

    # ==========================================================================
    # 4. Students, enrollments and grades
    # ==========================================================================
    op.create_table(
        "students",
        _id(),
        sa.Column("uid", sa.String(50), unique=True, nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("blood_group", sa.String(10), nullable=True),
        sa.Column("allergies", sa.Text, nullable=True),
        sa.Column("medications", sa.Text, nullable=True),
        sa.Column("emergency_contact", sa.String(255), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(50), nullable=True),
        sa.Column("medical_notes", sa.Text, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "enrollments",
        _id(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("class_id", sa.String(36), sa.ForeignKey("classes.id"), nullable=True),
        sa.Column(
            "class_arm_id", sa.String(36), sa.ForeignKey("class_arms.id"), nullable=True
        ),
        sa.Column("term_id", sa.String(36), sa.ForeignKey("terms.id"), nullable=True),
        sa.Column("class_level", sa.String(50), nullable=False),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column(
            "enrollment_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(
        "ix_enrollments_student_school", "enrollments", ["student_id", "school_id"]
    )
    op.create_index(
        "ix_enrollments_class_arm_year", "enrollments", ["class_arm_id", "academic_year"]
    )

    op.create_table(
        "grades",
        _id(),
        sa.Column(
            "enrollment_id", sa.String(36), sa.ForeignKey("enrollments.id"), nullable=False
        ),
        sa.Column("teacher_id", sa.String(36), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("subject", sa.String(100), nullable=True),
        sa.Column("grade_type", sa.String(20), nullable=False, server_default="CA"),
        sa.Column("assessment_name", sa.String(255), nullable=True),
        sa.Column("sequence", sa.Integer, nullable=True),
        sa.Column("assessment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Float, nullable=False),
        sa.Column("max_score", sa.Float, nullable=False, server_default="100"),
        sa.Column("grade", sa.String(5), nullable=True),
        sa.Column("term", sa.String(20), nullable=False),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_grades_enrollment_id", "grades", ["enrollment_id"])

    # ==========================================================================
    # 5. Transfers
    # ==========================================================================
    op.create_table(
        "transfers",
        _id(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("students.id"), nullable=False),
        sa.Column(
            "from_school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=False
        ),
        sa.Column("to_school_id", sa.String(36), sa.ForeignKey("schools.id"), nullable=True),
        sa.Column("tac", sa.String(32), nullable=True),
        sa.Column("tac_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tac_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tac_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tac_used_by", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("requested_by", sa.String(36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'COMPLETED', 'REJECTED', 'CANCELLED')",
            name="valid_transfer_status",
        ),
    )
    op.create_index("ix_transfers_tac", "transfers", ["tac"], unique=True)
    op.create_index(
        "ix_transfers_student_from_school", "transfers", ["student_id", "from_school_id"]
    )
    op.create_index("ix_transfers_to_school_id", "transfers", ["to_school_id"])
    op.create_index("ix_transfers_tac_expires_at", "transfers", ["tac_expires_at"])


def downgrade() -> None:
    """Drop transfer tables."""
    op.drop_table("transfers")
    op.drop_table("grades")
    op.drop_table("enrollments")
    op.drop_table("students")
    op.drop_table("terms")
    op.drop_table("academic_sessions")
    op.drop_table("class_arms")
    op.drop_table("class_levels")
    op.drop_table("classes")
    op.drop_table("teachers")
    op.drop_table("schools")
