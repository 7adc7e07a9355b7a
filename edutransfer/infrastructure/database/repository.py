# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer record store.

Query and conditional-update helpers over the ``transfers`` table. The
compare-and-set methods return whether a row was actually changed so the
caller can turn a lost race into a Conflict instead of overwriting.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from sqlalchemy import and_, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edutransfer.infrastructure.database.models import (
    ClassLevel,
    Enrollment,
    SchoolClass,
    Transfer,
    TransferStatus,
)

LIVE_STATUSES = (TransferStatus.PENDING, TransferStatus.APPROVED)

Direction = Literal["outgoing", "incoming"]


class TransferRepository:
    """Data access for Transfer rows bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, transfer_id: str) -> Transfer | None:
        """Load a transfer by id."""
        result = await self.session.execute(
            select(Transfer).where(Transfer.id == transfer_id)
        )
        return result.scalar_one_or_none()

    async def get_with_parties(self, transfer_id: str) -> Transfer | None:
        """Load a transfer with its student and both schools."""
        result = await self.session.execute(
            select(Transfer)
            .where(Transfer.id == transfer_id)
            .options(
                selectinload(Transfer.student),
                selectinload(Transfer.from_school),
                selectinload(Transfer.to_school),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, transfer_id: str) -> Transfer | None:
        """Load a transfer by id and lock its row until the transaction ends.

        ``populate_existing`` refreshes an instance already in the identity
        map so the guards always see the locked, current row.
        """
        result = await self.session.execute(
            select(Transfer)
            .where(Transfer.id == transfer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_tac(self, tac: str) -> Transfer | None:
        """Load the transfer holding the given access code."""
        result = await self.session.execute(
            select(Transfer)
            .where(Transfer.tac == tac)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def tac_exists(self, tac: str) -> bool:
        """Check whether an access code is already stored on any transfer."""
        result = await self.session.execute(
            select(exists().where(Transfer.tac == tac))
        )
        return bool(result.scalar())

    async def find_live_tac(
        self,
        student_id: str,
        from_school_id: str,
        now: datetime,
    ) -> Transfer | None:
        """Find the unexpired, unused, open access code for a student.

        Args:
            student_id: Student the code was issued for.
            from_school_id: Origin school.
            now: Reference instant for expiry.

        Returns:
            The most recent live transfer, or None.
        """
        result = await self.session.execute(
            select(Transfer)
            .where(
                Transfer.student_id == student_id,
                Transfer.from_school_id == from_school_id,
                Transfer.tac.is_not(None),
                Transfer.tac_used_at.is_(None),
                Transfer.tac_expires_at > now,
                Transfer.status.in_(LIVE_STATUSES),
            )
            .order_by(Transfer.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def bind_destination(
        self,
        transfer_id: str,
        to_school_id: str,
        now: datetime,
    ) -> bool:
        """Bind the destination school if still unbound or bound to it.

        Single conditional UPDATE; two schools racing on the same code
        cannot both succeed.

        Returns:
            True if this call bound (or re-bound) the transfer.
        """
        result = await self.session.execute(
            update(Transfer)
            .where(
                Transfer.id == transfer_id,
                Transfer.tac_used_at.is_(None),
                Transfer.status.in_(LIVE_STATUSES),
                or_(Transfer.to_school_id.is_(None), Transfer.to_school_id == to_school_id),
            )
            .values(
                to_school_id=to_school_id,
                status=TransferStatus.APPROVED,
                approved_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def mark_completed(
        self,
        transfer_id: str,
        to_school_id: str,
        used_by: str,
        now: datetime,
    ) -> bool:
        """Consume the access code and mark the transfer COMPLETED.

        Returns:
            True if the row was still APPROVED, unused and bound to
            ``to_school_id``.
        """
        result = await self.session.execute(
            update(Transfer)
            .where(
                Transfer.id == transfer_id,
                Transfer.to_school_id == to_school_id,
                Transfer.status == TransferStatus.APPROVED,
                Transfer.tac_used_at.is_(None),
            )
            .values(
                status=TransferStatus.COMPLETED,
                completed_at=now,
                tac_used_at=now,
                tac_used_by=used_by,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def cancel(self, transfer_id: str, from_school_id: str, now: datetime) -> bool:
        """Clear the access code and mark the transfer CANCELLED.

        Returns:
            True if the code was still unused when the update ran.
        """
        result = await self.session.execute(
            update(Transfer)
            .where(
                Transfer.id == transfer_id,
                Transfer.from_school_id == from_school_id,
                Transfer.tac_used_at.is_(None),
                Transfer.status != TransferStatus.COMPLETED,
            )
            .values(
                tac=None,
                tac_generated_at=None,
                tac_expires_at=None,
                status=TransferStatus.CANCELLED,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_for_school(
        self,
        school_id: str,
        direction: Direction,
        status: TransferStatus | None = None,
        school_type: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Transfer], int]:
        """List transfers leaving from or arriving at a school.

        Args:
            school_id: The listing school.
            direction: "outgoing" (origin side) or "incoming" (destination side).
            status: Optional status filter.
            school_type: Optional class type filter (e.g. "SECONDARY").
            offset: Rows to skip.
            limit: Page size.

        Returns:
            Tuple of (page of transfers newest first, total matching rows).
        """
        if direction == "outgoing":
            stmt = select(Transfer).where(Transfer.from_school_id == school_id)
        else:
            stmt = select(Transfer).where(Transfer.to_school_id == school_id)

        if status is not None:
            stmt = stmt.where(Transfer.status == status)

        if school_type:
            stmt = stmt.where(self._school_type_clause(school_id, school_type))

        total = (
            await self.session.execute(
                select(func.count()).select_from(stmt.subquery())
            )
        ).scalar_one()

        result = await self.session.execute(
            stmt.options(
                selectinload(Transfer.student),
                selectinload(Transfer.from_school),
                selectinload(Transfer.to_school),
            )
            .order_by(Transfer.created_at.desc(), Transfer.id)
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    @staticmethod
    def _school_type_clause(school_id: str, school_type: str):
        """Match transfers whose student sits in a class of the given type.

        The student's enrollment at either party school counts when its
        class is one of the listing school's classes of that type, or when
        its class level names one of those classes or class levels.
        """
        class_ids = select(SchoolClass.id).where(
            SchoolClass.school_id == school_id,
            SchoolClass.type == school_type,
        )
        class_names = select(SchoolClass.name).where(
            SchoolClass.school_id == school_id,
            SchoolClass.type == school_type,
        )
        level_names = select(ClassLevel.name).where(
            ClassLevel.school_id == school_id,
            ClassLevel.type == school_type,
        )
        return exists().where(
            and_(
                Enrollment.student_id == Transfer.student_id,
                or_(
                    Enrollment.school_id == Transfer.from_school_id,
                    Enrollment.school_id == Transfer.to_school_id,
                ),
                or_(
                    Enrollment.class_id.in_(class_ids),
                    Enrollment.class_level.in_(class_names),
                    Enrollment.class_level.in_(level_names),
                ),
            )
        )
