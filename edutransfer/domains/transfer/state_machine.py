# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer lifecycle transitions.

    PENDING --initiate--> APPROVED --complete--> COMPLETED
       |                     |  \\--reject--> REJECTED
       \\--------revoke------+----> CANCELLED

The ``ensure_*`` functions are the pure guards for each transition and
raise the typed domain errors in a fixed order. TransferStateMachine applies
the transitions to the store; every write that can race with another school
is a compare-and-set UPDATE whose loser gets a Conflict.

Only completion consumes the access code (sets tac_used_at/tac_used_by).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edutransfer.core.config.settings import TransferSettings, get_settings
from edutransfer.domains.transfer.errors import (
    TransferBadRequestError,
    TransferConflictError,
    TransferForbiddenError,
    TransferNotFoundError,
)
from edutransfer.domains.transfer.tokens import generate_unique_tac
from edutransfer.infrastructure.database.models import Student, Transfer, TransferStatus
from edutransfer.infrastructure.database.repository import TransferRepository
from edutransfer.utils.datetime import is_expired, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Guards
# =============================================================================


def ensure_initiable(
    transfer: Transfer,
    to_school_id: str,
    student_id: str,
    now: datetime,
) -> None:
    """Check that ``to_school_id`` may claim this transfer's access code.

    Raises:
        TransferConflictError: Code already used, claimed by another school,
            or the transfer is closed.
        TransferBadRequestError: Code expired, issued for another student,
            or the claimant is the origin school.
    """
    if transfer.tac_used_at is not None:
        raise TransferConflictError("This TAC has already been used")

    if transfer.to_school_id is not None and transfer.to_school_id != to_school_id:
        raise TransferConflictError("This TAC has already been claimed by another school")

    if transfer.status not in (TransferStatus.PENDING, TransferStatus.APPROVED):
        raise TransferConflictError(
            f"Transfer is {transfer.status.value.lower()} and can no longer be initiated"
        )

    if is_expired(transfer.tac_expires_at, at=now):
        raise TransferBadRequestError(
            "This TAC has expired. Ask the current school for a new one"
        )

    if transfer.student_id != student_id:
        raise TransferBadRequestError("This TAC was not issued for this student")

    if transfer.from_school_id == to_school_id:
        raise TransferBadRequestError("Cannot transfer a student to the same school")


def ensure_completable(transfer: Transfer, to_school_id: str) -> None:
    """Check that ``to_school_id`` may complete this transfer.

    Raises:
        TransferForbiddenError: The transfer is not bound to this school.
        TransferConflictError: Already completed or cancelled.
        TransferBadRequestError: The transfer was rejected or never initiated.
    """
    if transfer.to_school_id != to_school_id:
        raise TransferForbiddenError("You can only complete transfers to your school")

    if transfer.status == TransferStatus.COMPLETED:
        raise TransferConflictError("Transfer has already been completed")

    if transfer.status == TransferStatus.REJECTED:
        raise TransferBadRequestError("Cannot complete a rejected transfer")

    if transfer.status == TransferStatus.CANCELLED:
        raise TransferConflictError("Transfer has been cancelled by the current school")

    if transfer.status != TransferStatus.APPROVED:
        raise TransferBadRequestError("Transfer must be initiated before it can be completed")


def ensure_rejectable(transfer: Transfer, to_school_id: str) -> None:
    """Check that ``to_school_id`` may reject this transfer.

    Raises:
        TransferForbiddenError: The transfer is not bound to this school.
        TransferConflictError: Already completed, rejected or cancelled.
    """
    if transfer.to_school_id != to_school_id:
        raise TransferForbiddenError("You can only reject transfers to your school")

    if transfer.status == TransferStatus.COMPLETED:
        raise TransferConflictError("Cannot reject a completed transfer")

    if transfer.status in (TransferStatus.REJECTED, TransferStatus.CANCELLED):
        raise TransferConflictError(f"Transfer is already {transfer.status.value.lower()}")


def ensure_revocable(transfer: Transfer, from_school_id: str) -> None:
    """Check that ``from_school_id`` may revoke this transfer's code.

    Raises:
        TransferForbiddenError: The caller is not the origin school.
        TransferConflictError: The code was used or already revoked.
    """
    if transfer.from_school_id != from_school_id:
        raise TransferForbiddenError("You can only revoke TACs from your school")

    if transfer.tac_used_at is not None or transfer.status == TransferStatus.COMPLETED:
        raise TransferConflictError("Cannot revoke a TAC that has already been used")

    if transfer.status == TransferStatus.CANCELLED:
        raise TransferConflictError("This TAC has already been revoked")


# =============================================================================
# State machine
# =============================================================================


class TransferStateMachine:
    """Applies lifecycle transitions to stored transfers.

    Methods do not commit; the caller owns the transaction (see
    UnitOfWork) so a transition can be combined with other writes.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: TransferSettings | None = None,
    ) -> None:
        self.session = session
        self.repo = TransferRepository(session)
        self.settings = settings or get_settings().transfer

    async def request_tac(
        self,
        from_school_id: str,
        student_id: str,
        requested_by: str | None = None,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> tuple[Transfer, bool]:
        """Return the live access code for a student or issue a new one.

        The student row is locked first so two concurrent requests for the
        same student serialize on it and the second one sees the first
        one's code.

        Args:
            from_school_id: Origin school issuing the code.
            student_id: Student being transferred out.
            requested_by: User issuing the code.
            reason: Optional free-text reason.
            now: Reference instant (defaults to now).

        Returns:
            Tuple of (transfer, created) where created is False when an
            existing live code was returned.

        Raises:
            TokenGenerationExhausted: If no unique code could be stored.
        """
        now = now or utc_now()

        await self.session.execute(
            select(Student.id).where(Student.id == student_id).with_for_update()
        )

        existing = await self.repo.find_live_tac(student_id, from_school_id, now)
        if existing is not None:
            logger.info(
                "Returning existing TAC: transfer=%s, student=%s, school=%s",
                existing.id,
                student_id,
                from_school_id,
            )
            return existing, False

        expires_at = now + timedelta(days=self.settings.tac_ttl_days)
        issued: list[Transfer] = []

        async def claim(candidate: str) -> bool:
            if await self.repo.tac_exists(candidate):
                return False

            transfer = Transfer(
                student_id=student_id,
                from_school_id=from_school_id,
                tac=candidate,
                tac_generated_at=now,
                tac_expires_at=expires_at,
                status=TransferStatus.PENDING,
                reason=reason,
                requested_by=requested_by,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(transfer)
            except IntegrityError:
                logger.warning("TAC collided on insert, drawing another")
                return False

            issued.append(transfer)
            return True

        await generate_unique_tac(
            claim,
            max_attempts=self.settings.tac_max_attempts,
            prefix=self.settings.tac_prefix,
        )
        return issued[0], True

    async def initiate(
        self,
        to_school_id: str,
        tac: str,
        student_id: str,
        now: datetime | None = None,
    ) -> Transfer:
        """Bind the destination school to the transfer holding ``tac``.

        Does not consume the code; the bound school may initiate again.

        Raises:
            TransferNotFoundError: Unknown code.
            TransferConflictError: Used, claimed elsewhere, closed, or lost
                the binding race.
            TransferBadRequestError: Expired, wrong student, same school.
        """
        now = now or utc_now()

        transfer = await self.repo.get_by_tac(tac)
        if transfer is None:
            raise TransferNotFoundError("Invalid TAC")

        ensure_initiable(transfer, to_school_id, student_id, now)

        if not await self.repo.bind_destination(transfer.id, to_school_id, now):
            raise TransferConflictError("This TAC has already been claimed by another school")

        await self.session.refresh(transfer)
        logger.info(
            "Transfer initiated: transfer=%s, from=%s, to=%s",
            transfer.id,
            transfer.from_school_id,
            to_school_id,
        )
        return transfer

    async def lock_for_completion(self, to_school_id: str, transfer_id: str) -> Transfer:
        """Lock the transfer row and check it can be completed.

        Raises:
            TransferNotFoundError: Unknown transfer.
            TransferForbiddenError, TransferConflictError,
            TransferBadRequestError: See ensure_completable.
        """
        transfer = await self.repo.get_for_update(transfer_id)
        if transfer is None:
            raise TransferNotFoundError("Transfer not found")

        ensure_completable(transfer, to_school_id)
        return transfer

    async def finalize_completion(
        self,
        transfer: Transfer,
        to_school_id: str,
        now: datetime | None = None,
    ) -> Transfer:
        """Consume the access code and mark the transfer COMPLETED.

        Raises:
            TransferConflictError: The transfer changed state since it was
                locked (already completed or revoked concurrently).
        """
        now = now or utc_now()

        if not await self.repo.mark_completed(transfer.id, to_school_id, to_school_id, now):
            raise TransferConflictError("Transfer has already been completed")

        await self.session.refresh(transfer)
        return transfer

    async def reject(
        self,
        to_school_id: str,
        transfer_id: str,
        reason: str,
        now: datetime | None = None,
    ) -> Transfer:
        """Record the destination school's rejection. The code is left as is."""
        now = now or utc_now()

        transfer = await self.repo.get_for_update(transfer_id)
        if transfer is None:
            raise TransferNotFoundError("Transfer not found")

        ensure_rejectable(transfer, to_school_id)

        transfer.status = TransferStatus.REJECTED
        transfer.rejected_at = now
        transfer.rejection_reason = reason
        await self.session.flush()

        logger.info("Transfer rejected: transfer=%s, by=%s", transfer.id, to_school_id)
        return transfer

    async def revoke(
        self,
        from_school_id: str,
        transfer_id: str,
        now: datetime | None = None,
    ) -> tuple[Transfer, str | None]:
        """Invalidate an unused access code and cancel the transfer.

        Returns:
            Tuple of (transfer, revoked code) so the caller can notify.
        """
        transfer = await self.repo.get_for_update(transfer_id)
        if transfer is None:
            raise TransferNotFoundError("Transfer not found")

        ensure_revocable(transfer, from_school_id)

        revoked_tac = transfer.tac
        if not await self.repo.cancel(transfer.id, from_school_id, now or utc_now()):
            raise TransferConflictError("Cannot revoke a TAC that has already been used")

        await self.session.refresh(transfer)
        logger.info("TAC revoked: transfer=%s, by=%s", transfer.id, from_school_id)
        return transfer, revoked_tac
