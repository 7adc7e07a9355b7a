# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for transfer lifecycle guards."""

import pytest

from edutransfer.domains.transfer.errors import (
    TransferBadRequestError,
    TransferConflictError,
    TransferForbiddenError,
)
from edutransfer.domains.transfer.state_machine import (
    ensure_completable,
    ensure_initiable,
    ensure_rejectable,
    ensure_revocable,
)
from edutransfer.infrastructure.database.models import TransferStatus
from edutransfer.utils.datetime import days_ago, utc_now


class TestEnsureInitiable:
    """Tests for claiming an access code."""

    def test_pending_code_accepted(
        self, make_transfer, destination_school_id, sample_student_id
    ) -> None:
        """Test that an open code can be claimed."""
        ensure_initiable(make_transfer(), destination_school_id, sample_student_id, utc_now())

    def test_rebind_by_same_school_accepted(
        self, make_transfer, destination_school_id, sample_student_id
    ) -> None:
        """Test that the bound school may initiate again."""
        transfer = make_transfer(
            to_school_id=destination_school_id, status=TransferStatus.APPROVED
        )

        ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())

    def test_used_code(self, make_transfer, destination_school_id, sample_student_id) -> None:
        """Test that a consumed code is a conflict."""
        transfer = make_transfer(tac_used_at=utc_now(), status=TransferStatus.COMPLETED)

        with pytest.raises(TransferConflictError, match="already been used"):
            ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())

    def test_claimed_by_other_school(
        self, make_transfer, destination_school_id, sample_student_id
    ) -> None:
        """Test that a code bound to another school is a conflict."""
        transfer = make_transfer(to_school_id="other-school", status=TransferStatus.APPROVED)

        with pytest.raises(TransferConflictError, match="claimed by another school"):
            ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())

    @pytest.mark.parametrize("status", [TransferStatus.REJECTED, TransferStatus.CANCELLED])
    def test_closed_transfer(
        self, make_transfer, destination_school_id, sample_student_id, status
    ) -> None:
        """Test that rejected and cancelled transfers cannot be initiated."""
        transfer = make_transfer(status=status)

        with pytest.raises(TransferConflictError):
            ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())

    def test_expired_code(self, make_transfer, destination_school_id, sample_student_id) -> None:
        """Test that an expired code is a bad request."""
        transfer = make_transfer(tac_expires_at=days_ago(1))

        with pytest.raises(TransferBadRequestError, match="expired"):
            ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())

    def test_expiry_accepts_naive_stored_value(
        self, make_transfer, destination_school_id, sample_student_id
    ) -> None:
        """Test that a naive stored expiry is read as UTC."""
        transfer = make_transfer(tac_expires_at=days_ago(1).replace(tzinfo=None))

        with pytest.raises(TransferBadRequestError, match="expired"):
            ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())

    def test_wrong_student(self, make_transfer, destination_school_id) -> None:
        """Test that the code must match the student."""
        with pytest.raises(TransferBadRequestError, match="not issued for this student"):
            ensure_initiable(make_transfer(), destination_school_id, "someone-else", utc_now())

    def test_same_school(self, make_transfer, origin_school_id, sample_student_id) -> None:
        """Test that the origin school cannot claim its own code."""
        with pytest.raises(TransferBadRequestError, match="same school"):
            ensure_initiable(make_transfer(), origin_school_id, sample_student_id, utc_now())

    def test_used_checked_before_expiry(
        self, make_transfer, destination_school_id, sample_student_id
    ) -> None:
        """Test that a used and expired code reports the use."""
        transfer = make_transfer(
            tac_used_at=utc_now(),
            tac_expires_at=days_ago(3),
            status=TransferStatus.COMPLETED,
        )

        with pytest.raises(TransferConflictError):
            ensure_initiable(transfer, destination_school_id, sample_student_id, utc_now())


class TestEnsureCompletable:
    """Tests for completing a transfer."""

    def test_approved_transfer(self, make_transfer, destination_school_id) -> None:
        """Test that a bound, approved transfer can be completed."""
        transfer = make_transfer(
            to_school_id=destination_school_id, status=TransferStatus.APPROVED
        )

        ensure_completable(transfer, destination_school_id)

    def test_other_school(self, make_transfer, destination_school_id) -> None:
        """Test that only the bound school may complete."""
        transfer = make_transfer(to_school_id="other-school", status=TransferStatus.APPROVED)

        with pytest.raises(TransferForbiddenError):
            ensure_completable(transfer, destination_school_id)

    @pytest.mark.parametrize(
        ("status", "error"),
        [
            (TransferStatus.COMPLETED, TransferConflictError),
            (TransferStatus.CANCELLED, TransferConflictError),
            (TransferStatus.REJECTED, TransferBadRequestError),
            (TransferStatus.PENDING, TransferBadRequestError),
        ],
    )
    def test_status_errors(self, make_transfer, destination_school_id, status, error) -> None:
        """Test the error raised for each non-completable status."""
        transfer = make_transfer(to_school_id=destination_school_id, status=status)

        with pytest.raises(error):
            ensure_completable(transfer, destination_school_id)


class TestEnsureRejectable:
    """Tests for rejecting a transfer."""

    def test_approved_transfer(self, make_transfer, destination_school_id) -> None:
        """Test that a bound transfer can be rejected."""
        transfer = make_transfer(
            to_school_id=destination_school_id, status=TransferStatus.APPROVED
        )

        ensure_rejectable(transfer, destination_school_id)

    def test_unbound_transfer(self, make_transfer, destination_school_id) -> None:
        """Test that a school that never claimed the code cannot reject it."""
        with pytest.raises(TransferForbiddenError):
            ensure_rejectable(make_transfer(), destination_school_id)

    @pytest.mark.parametrize(
        "status",
        [TransferStatus.COMPLETED, TransferStatus.REJECTED, TransferStatus.CANCELLED],
    )
    def test_closed_transfer(self, make_transfer, destination_school_id, status) -> None:
        """Test that closed transfers cannot be rejected."""
        transfer = make_transfer(to_school_id=destination_school_id, status=status)

        with pytest.raises(TransferConflictError):
            ensure_rejectable(transfer, destination_school_id)


class TestEnsureRevocable:
    """Tests for revoking an access code."""

    def test_pending_code(self, make_transfer, origin_school_id) -> None:
        """Test that an unused code can be revoked."""
        ensure_revocable(make_transfer(), origin_school_id)

    def test_claimed_but_unused_code(
        self, make_transfer, origin_school_id, destination_school_id
    ) -> None:
        """Test that a claimed code can still be revoked before completion."""
        transfer = make_transfer(
            to_school_id=destination_school_id, status=TransferStatus.APPROVED
        )

        ensure_revocable(transfer, origin_school_id)

    def test_other_school(self, make_transfer, destination_school_id) -> None:
        """Test that only the origin school may revoke."""
        with pytest.raises(TransferForbiddenError):
            ensure_revocable(make_transfer(), destination_school_id)

    def test_used_code(self, make_transfer, origin_school_id) -> None:
        """Test that a consumed code cannot be revoked."""
        transfer = make_transfer(tac_used_at=utc_now(), status=TransferStatus.COMPLETED)

        with pytest.raises(TransferConflictError, match="already been used"):
            ensure_revocable(transfer, origin_school_id)

    def test_already_revoked(self, make_transfer, origin_school_id) -> None:
        """Test that revoking twice is a conflict."""
        transfer = make_transfer(tac=None, status=TransferStatus.CANCELLED)

        with pytest.raises(TransferConflictError, match="already been revoked"):
            ensure_revocable(transfer, origin_school_id)
