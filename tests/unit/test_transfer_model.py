# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for the Transfer table definition."""

from sqlalchemy import UniqueConstraint

from edutransfer.infrastructure.database.models import Transfer


class TestTransferTable:
    """Tests for indexes declared on the transfers table."""

    def test_tac_unique_index(self) -> None:
        """Test the access code is unique through the named index."""
        indexes = {index.name: index for index in Transfer.__table__.indexes}

        assert "ix_transfers_tac" in indexes
        tac_index = indexes["ix_transfers_tac"]
        assert tac_index.unique
        assert [column.name for column in tac_index.columns] == ["tac"]

    def test_tac_has_no_separate_constraint(self) -> None:
        """Test the column itself carries no second unique constraint."""
        assert not Transfer.__table__.c.tac.unique
        unique_constraints = [
            constraint
            for constraint in Transfer.__table__.constraints
            if isinstance(constraint, UniqueConstraint)
        ]
        assert unique_constraints == []
