# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Runs against a file-backed SQLite database through aiosqlite. pysqlite's
own transaction handling is switched off so SAVEPOINTs behave as they do
on PostgreSQL, and WAL mode lets a request that only read keep its
snapshot open without blocking other writers.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from edutransfer.core.config import TransferSettings
from edutransfer.domains.transfer.service import TransferService
from edutransfer.infrastructure.database.connection import build_sessionmaker
from edutransfer.infrastructure.database.models import (
    AcademicSession,
    Base,
    ClassArm,
    ClassLevel,
    Enrollment,
    Grade,
    School,
    SchoolClass,
    Student,
    Teacher,
    Term,
)

SUBJECTS = ("Mathematics", "English", "Biology", "Chemistry", "Physics")


@dataclass
class SeedData:
    """Ids of the rows every transfer test starts from."""

    origin_id: str
    destination_id: str
    third_id: str
    student_id: str
    other_student_id: str
    current_enrollment_id: str
    previous_enrollment_id: str
    arm_id: str
    full_arm_id: str
    foreign_arm_id: str
    destination_class_id: str
    foreign_class_id: str
    destination_term_id: str
    destination_teacher_id: str


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'transfers.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_sqlite(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Create the application sessionmaker over the test engine."""
    return build_sessionmaker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def make_service(session_factory):
    """Build a TransferService on its own session, like one request would."""
    sessions: list[AsyncSession] = []

    def _make(notifier=None, settings: TransferSettings | None = None) -> TransferService:
        session = session_factory()
        sessions.append(session)
        return TransferService(session, notifier=notifier, settings=settings or TransferSettings())

    yield _make

    for session in sessions:
        await session.close()


@pytest_asyncio.fixture(scope="function")
async def seed(session_factory) -> SeedData:
    """Insert three schools, a student with history and destination structure."""
    base_time = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)

    async with session_factory() as session:
        origin = School(name="Greenfield Academy", code="GFA", email="office@greenfield.example")
        destination = School(name="Riverside College", code="RVC")
        third = School(name="Hilltop School", code="HTS")
        session.add_all([origin, destination, third])
        await session.flush()

        origin_teacher = Teacher(school_id=origin.id, first_name="Grace", last_name="Eze")
        destination_teacher = Teacher(
            school_id=destination.id, first_name="Tunde", last_name="Bello"
        )
        session.add_all([origin_teacher, destination_teacher])

        student = Student(
            first_name="Ada",
            last_name="Obi",
            email="ada@example.com",
            blood_group="O+",
            allergies="Peanuts",
        )
        other_student = Student(first_name="Chidi", last_name="Okafor")
        session.add_all([student, other_student])
        await session.flush()

        previous = Enrollment(
            student_id=student.id,
            school_id=origin.id,
            class_level="JSS1",
            academic_year="2022/2023",
            enrollment_date=base_time - timedelta(days=365),
            is_active=False,
        )
        current = Enrollment(
            student_id=student.id,
            school_id=origin.id,
            class_level="JSS1",
            academic_year="2023/2024",
            enrollment_date=base_time,
            is_active=True,
        )
        session.add_all([previous, current])
        await session.flush()

        for i in range(10):
            session.add(
                Grade(
                    enrollment_id=current.id,
                    teacher_id=origin_teacher.id,
                    subject=SUBJECTS[i % len(SUBJECTS)],
                    grade_type="CA" if i < 5 else "EXAM",
                    assessment_name=f"Assessment {i + 1}",
                    sequence=i + 1,
                    score=50.0 + i * 4,
                    max_score=100.0,
                    grade="B",
                    term="FIRST" if i < 5 else "SECOND",
                    academic_year="2023/2024",
                    created_at=base_time + timedelta(days=i),
                )
            )
        for i in range(2):
            session.add(
                Grade(
                    enrollment_id=previous.id,
                    teacher_id=origin_teacher.id,
                    subject="Mathematics",
                    score=60.0 + i,
                    term="THIRD",
                    academic_year="2022/2023",
                    created_at=base_time - timedelta(days=200 + i),
                )
            )

        level = ClassLevel(school_id=destination.id, name="JSS2", level=8, type="SECONDARY")
        foreign_level = ClassLevel(school_id=third.id, name="JSS2", level=8, type="SECONDARY")
        session.add_all([level, foreign_level])
        await session.flush()

        arm = ClassArm(class_level_id=level.id, name="Gold", capacity=30)
        full_arm = ClassArm(class_level_id=level.id, name="Silver", capacity=1)
        foreign_arm = ClassArm(class_level_id=foreign_level.id, name="Gold", capacity=30)
        destination_class = SchoolClass(
            school_id=destination.id,
            name="JSS2",
            class_level="JSS2",
            type="SECONDARY",
            academic_year="2024/2025",
        )
        foreign_class = SchoolClass(
            school_id=third.id,
            name="JSS2",
            class_level="JSS2",
            type="SECONDARY",
            academic_year="2024/2025",
        )
        academic_session = AcademicSession(school_id=destination.id, name="2024/2025")
        session.add_all(
            [arm, full_arm, foreign_arm, destination_class, foreign_class, academic_session]
        )
        await session.flush()

        term = Term(academic_session_id=academic_session.id, name="First Term", number=1)
        session.add(term)
        session.add(
            Enrollment(
                student_id=other_student.id,
                school_id=destination.id,
                class_arm_id=full_arm.id,
                class_level="JSS2",
                academic_year="2024/2025",
                is_active=True,
            )
        )
        await session.flush()

        data = SeedData(
            origin_id=origin.id,
            destination_id=destination.id,
            third_id=third.id,
            student_id=student.id,
            other_student_id=other_student.id,
            current_enrollment_id=current.id,
            previous_enrollment_id=previous.id,
            arm_id=arm.id,
            full_arm_id=full_arm.id,
            foreign_arm_id=foreign_arm.id,
            destination_class_id=destination_class.id,
            foreign_class_id=foreign_class.id,
            destination_term_id=term.id,
            destination_teacher_id=destination_teacher.id,
        )
        await session.commit()

    return data
