# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer service for moving students between schools.

This module provides the TransferService class for:
- Issuing and revoking Transfer Access Codes (origin school)
- Initiating, completing and rejecting transfers (destination school)
- Listing outgoing/incoming transfers
- Reading the grades an origin school still holds after a transfer

Every state-changing operation runs inside one UnitOfWork. Emails are sent
only after the transaction committed and are never awaited.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edutransfer.core.config.settings import TransferSettings, get_settings
from edutransfer.domains.transfer.accessor import CrossTenantAccessor, to_enrollment_record
from edutransfer.domains.transfer.errors import (
    TransferBadRequestError,
    TransferForbiddenError,
    TransferNotFoundError,
)
from edutransfer.domains.transfer.migration import MigrationExecutor
from edutransfer.domains.transfer.state_machine import TransferStateMachine
from edutransfer.infrastructure.database.models import (
    Enrollment,
    School,
    Student,
    Transfer,
    TransferStatus,
)
from edutransfer.infrastructure.database.repository import TransferRepository
from edutransfer.infrastructure.database.unit_of_work import UnitOfWork
from edutransfer.infrastructure.notifications import (
    NotificationPayload,
    TransferNotifier,
    build_tac_issued_payload,
    build_tac_revoked_payload,
)
from edutransfer.models.common import PaginationMeta, SchoolSummary
from edutransfer.models.transfer import (
    CompleteTransferResponse,
    GenerateTacResponse,
    HistoricalGradesResponse,
    InitiateTransferResponse,
    StudentSummary,
    TransferActionResponse,
    TransferListResponse,
    TransferReference,
    TransferSummary,
)
from edutransfer.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class TransferService:
    """Service for the inter-school student transfer workflow.

    Args:
        db: Session for the platform database.
        notifier: Optional notifier; without one no emails are sent.
        settings: Transfer settings (defaults to application settings).
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: TransferNotifier | None = None,
        settings: TransferSettings | None = None,
    ) -> None:
        self.db = db
        self.notifier = notifier
        self.settings = settings or get_settings().transfer
        self.repo = TransferRepository(db)
        self.state = TransferStateMachine(db, self.settings)
        self.accessor = CrossTenantAccessor(db)
        self.migration = MigrationExecutor(db)

    # =========================================================================
    # Origin school
    # =========================================================================

    async def generate_tac(
        self,
        school_id: str,
        requesting_user_id: str | None,
        student_id: str,
        reason: str | None = None,
    ) -> GenerateTacResponse:
        """Issue (or return the live) access code for a departing student.

        Args:
            school_id: Origin school.
            requesting_user_id: User issuing the code.
            student_id: Student to transfer out.
            reason: Optional reason for the transfer.

        Returns:
            The access code and its expiry.

        Raises:
            TransferNotFoundError: Student not actively enrolled at the school.
            TokenGenerationExhausted: No unique code could be produced.
        """
        async with UnitOfWork(self.db):
            await self._require_active_enrollment(student_id, school_id)
            student = await self.accessor.get_student(student_id)
            school = await self.accessor.get_school_summary(school_id)

            transfer, created = await self.state.request_tac(
                from_school_id=school_id,
                student_id=student_id,
                requested_by=requesting_user_id,
                reason=reason,
            )

        if created:
            logger.info(
                "Issued TAC: transfer=%s, student=%s, school=%s, by=%s",
                transfer.id,
                student_id,
                school_id,
                requesting_user_id,
            )

        self._notify(
            build_tac_issued_payload(
                school_name=school.name,
                student_name=student.full_name,
                student_email=student.email,
                student_id=student.id,
                tac=transfer.tac or "",
                expires_at=transfer.tac_expires_at,
            )
        )

        return GenerateTacResponse(
            transfer_id=transfer.id,
            tac=transfer.tac or "",
            student_id=student.id,
            student_name=student.full_name,
            expires_at=transfer.tac_expires_at,
        )

    async def revoke_tac(self, school_id: str, transfer_id: str) -> TransferActionResponse:
        """Revoke an unused access code and cancel its transfer.

        Raises:
            TransferNotFoundError: Unknown transfer.
            TransferForbiddenError: Not the origin school.
            TransferConflictError: Code already used or revoked.
        """
        async with UnitOfWork(self.db):
            transfer, revoked_tac = await self.state.revoke(school_id, transfer_id)
            student = await self.db.get(Student, transfer.student_id)
            school = await self.db.get(School, school_id)

        if revoked_tac and student is not None and school is not None:
            self._notify(
                build_tac_revoked_payload(
                    school_name=school.name,
                    student_name=student.full_name,
                    student_email=student.email,
                    tac=revoked_tac,
                )
            )

        return TransferActionResponse(
            transfer_id=transfer.id,
            status=transfer.status,
            message="TAC revoked successfully",
        )

    async def get_outgoing_transfer(self, school_id: str, transfer_id: str) -> TransferSummary:
        """Get one transfer issued by this school.

        Raises:
            TransferNotFoundError: Unknown transfer or not outgoing from the school.
        """
        transfer = await self.repo.get_with_parties(transfer_id)
        if transfer is None or transfer.from_school_id != school_id:
            raise TransferNotFoundError("Transfer not found")
        return self._to_summary(transfer)

    async def get_historical_grades(
        self,
        school_id: str,
        transfer_id: str,
    ) -> HistoricalGradesResponse:
        """Get the grades the origin school holds for a completed transfer.

        Raises:
            TransferNotFoundError: Unknown transfer.
            TransferForbiddenError: Not the origin school.
            TransferBadRequestError: Transfer not completed.
        """
        transfer = await self.repo.get_with_parties(transfer_id)
        if transfer is None:
            raise TransferNotFoundError("Transfer not found")

        if transfer.from_school_id != school_id:
            raise TransferForbiddenError(
                "You can only view historical grades for transfers from your school"
            )

        if transfer.status != TransferStatus.COMPLETED:
            raise TransferBadRequestError(
                "Historical grades are only available for completed transfers"
            )

        enrollments = await self.accessor.load_origin_history(transfer.student_id, school_id)

        return HistoricalGradesResponse(
            transfer=TransferReference(
                id=transfer.id,
                status=transfer.status,
                completed_at=transfer.completed_at,
            ),
            student=StudentSummary.model_validate(transfer.student),
            from_school=SchoolSummary(id=transfer.from_school.id, name=transfer.from_school.name),
            enrollments=[to_enrollment_record(e) for e in enrollments],
        )

    # =========================================================================
    # Destination school
    # =========================================================================

    async def initiate_transfer(
        self,
        school_id: str,
        tac: str,
        student_id: str,
    ) -> InitiateTransferResponse:
        """Claim an access code and return the student's record for review.

        Raises:
            TransferNotFoundError: Unknown code or no origin enrollment.
            TransferConflictError: Code used or claimed by another school.
            TransferBadRequestError: Code expired, wrong student, same school.
        """
        tac = tac.strip().upper()

        async with UnitOfWork(self.db):
            transfer = await self.state.initiate(school_id, tac, student_id)
            snapshot = await self.accessor.fetch_by_tac(tac, student_id)

        return InitiateTransferResponse(transfer_id=transfer.id, student_data=snapshot)

    async def complete_transfer(
        self,
        school_id: str,
        transfer_id: str,
        target_class_level: str,
        academic_year: str,
        class_id: str | None = None,
        class_arm_id: str | None = None,
    ) -> CompleteTransferResponse:
        """Enroll the student at the destination and consume the access code.

        Runs as a single transaction: on any error nothing is written and
        the transfer stays APPROVED.

        Raises:
            TransferNotFoundError: Unknown transfer.
            TransferForbiddenError: Transfer not bound to this school.
            TransferConflictError: Already completed or cancelled.
            TransferBadRequestError: Rejected, class arm full or foreign,
                no teacher at the destination.
        """
        now = utc_now()

        async with UnitOfWork(self.db):
            transfer = await self.state.lock_for_completion(school_id, transfer_id)
            new_enrollment_id = await self.migration.migrate(
                to_school_id=school_id,
                transfer=transfer,
                target_class_level=target_class_level,
                academic_year=academic_year,
                class_id=class_id,
                class_arm_id=class_arm_id,
                now=now,
            )
            await self.state.finalize_completion(transfer, school_id, now)

        logger.info(
            "Completed transfer: transfer=%s, student=%s, from=%s, to=%s",
            transfer.id,
            transfer.student_id,
            transfer.from_school_id,
            school_id,
        )
        return CompleteTransferResponse(transfer_id=transfer.id, new_enrollment_id=new_enrollment_id)

    async def reject_transfer(
        self,
        school_id: str,
        transfer_id: str,
        reason: str,
    ) -> TransferActionResponse:
        """Decline a transfer bound to this school.

        Raises:
            TransferNotFoundError: Unknown transfer.
            TransferForbiddenError: Transfer not bound to this school.
            TransferConflictError: Already completed, rejected or cancelled.
        """
        async with UnitOfWork(self.db):
            transfer = await self.state.reject(school_id, transfer_id, reason)

        return TransferActionResponse(
            transfer_id=transfer.id,
            status=transfer.status,
            message="Transfer rejected",
        )

    # =========================================================================
    # Listings
    # =========================================================================

    async def list_outgoing(
        self,
        school_id: str,
        status: TransferStatus | None = None,
        page: int = 1,
        limit: int | None = None,
        school_type: str | None = None,
    ) -> TransferListResponse:
        """List transfers issued by a school, newest first."""
        return await self._list(school_id, "outgoing", status, page, limit, school_type)

    async def list_incoming(
        self,
        school_id: str,
        status: TransferStatus | None = None,
        page: int = 1,
        limit: int | None = None,
        school_type: str | None = None,
    ) -> TransferListResponse:
        """List transfers claimed by a school, newest first."""
        return await self._list(school_id, "incoming", status, page, limit, school_type)

    async def _list(
        self,
        school_id: str,
        direction: str,
        status: TransferStatus | None,
        page: int,
        limit: int | None,
        school_type: str | None,
    ) -> TransferListResponse:
        page = max(page, 1)
        limit = min(max(limit or self.settings.default_page_size, 1), self.settings.max_page_size)

        transfers, total = await self.repo.list_for_school(
            school_id,
            direction,  # type: ignore[arg-type]
            status=status,
            school_type=school_type,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return TransferListResponse(
            transfers=[self._to_summary(t) for t in transfers],
            meta=PaginationMeta.build(total=total, page=page, limit=limit),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require_active_enrollment(self, student_id: str, school_id: str) -> Enrollment:
        result = await self.db.execute(
            select(Enrollment)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.school_id == school_id,
                Enrollment.is_active.is_(True),
            )
            .limit(1)
        )
        enrollment = result.scalar_one_or_none()
        if enrollment is None:
            raise TransferNotFoundError("Student not found or not actively enrolled in this school")
        return enrollment

    def _notify(self, payload: NotificationPayload) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.dispatch(payload)
        except RuntimeError:
            logger.warning("Could not schedule %s notification", payload.notification_type, exc_info=True)

    def _to_summary(self, transfer: Transfer) -> TransferSummary:
        return TransferSummary(
            id=transfer.id,
            status=transfer.status,
            student=StudentSummary.model_validate(transfer.student),
            from_school=SchoolSummary(id=transfer.from_school.id, name=transfer.from_school.name),
            to_school=(
                SchoolSummary(id=transfer.to_school.id, name=transfer.to_school.name)
                if transfer.to_school is not None
                else None
            ),
            tac=transfer.tac,
            tac_expires_at=transfer.tac_expires_at,
            tac_used_at=transfer.tac_used_at,
            reason=transfer.reason,
            rejection_reason=transfer.rejection_reason,
            created_at=transfer.created_at,
            approved_at=transfer.approved_at,
            rejected_at=transfer.rejected_at,
            completed_at=transfer.completed_at,
        )
