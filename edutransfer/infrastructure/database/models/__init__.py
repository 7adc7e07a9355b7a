# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the platform database.

Importing this package registers every table on ``Base.metadata``.
"""

from edutransfer.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    new_id,
)
from edutransfer.infrastructure.database.models.school import (
    AcademicSession,
    ClassArm,
    ClassLevel,
    School,
    SchoolClass,
    Teacher,
    Term,
)
from edutransfer.infrastructure.database.models.student import (
    HEALTH_FIELDS,
    Enrollment,
    Grade,
    Student,
)
from edutransfer.infrastructure.database.models.transfer import Transfer, TransferStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "new_id",
    "School",
    "Teacher",
    "SchoolClass",
    "ClassLevel",
    "ClassArm",
    "AcademicSession",
    "Term",
    "Student",
    "Enrollment",
    "Grade",
    "HEALTH_FIELDS",
    "Transfer",
    "TransferStatus",
]
