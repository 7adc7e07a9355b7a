# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Transfer Access Code generation."""

from unittest.mock import AsyncMock, patch

import pytest

from edutransfer.domains.transfer.errors import TokenGenerationExhausted
from edutransfer.domains.transfer.tokens import (
    TAC_ALPHABET,
    generate_unique_tac,
    is_well_formed,
    new_tac,
)


class TestNewTac:
    """Tests for single candidate generation."""

    def test_shape(self) -> None:
        """Test that codes are TAC-XXXXXXXX-XXXX."""
        tac = new_tac()

        prefix, first, second = tac.split("-")
        assert prefix == "TAC"
        assert len(first) == 8
        assert len(second) == 4
        assert all(ch in TAC_ALPHABET for ch in first + second)

    def test_custom_prefix(self) -> None:
        """Test that the constant tag is configurable."""
        assert new_tac("XFR").startswith("XFR-")

    def test_candidates_differ(self) -> None:
        """Test that repeated draws do not repeat."""
        assert len({new_tac() for _ in range(200)}) == 200

    def test_well_formed(self) -> None:
        """Test the shape check."""
        assert is_well_formed(new_tac())
        assert is_well_formed("TAC-7F3K9Q2M-X8RB")
        assert not is_well_formed("TAC-7f3k9q2m-x8rb")
        assert not is_well_formed("TAC-7F3K9Q2-X8RB")
        assert not is_well_formed("XFR-7F3K9Q2M-X8RB")


class TestGenerateUniqueTac:
    """Tests for collision-retrying generation."""

    @pytest.mark.asyncio
    async def test_first_candidate_accepted(self) -> None:
        """Test that an accepted candidate is returned immediately."""
        accept = AsyncMock(return_value=True)

        tac = await generate_unique_tac(accept)

        assert is_well_formed(tac)
        accept.assert_awaited_once_with(tac)

    @pytest.mark.asyncio
    async def test_retries_after_collision(self) -> None:
        """Test that a taken candidate costs one attempt and a new one is drawn."""
        accept = AsyncMock(side_effect=[False, False, True])

        with patch(
            "edutransfer.domains.transfer.tokens.new_tac",
            side_effect=["TAC-AAAAAAAA-0001", "TAC-AAAAAAAA-0002", "TAC-AAAAAAAA-0003"],
        ):
            tac = await generate_unique_tac(accept)

        assert tac == "TAC-AAAAAAAA-0003"
        assert accept.await_count == 3

    @pytest.mark.asyncio
    async def test_exhausted(self) -> None:
        """Test that the generator gives up after max_attempts collisions."""
        accept = AsyncMock(return_value=False)

        with pytest.raises(TokenGenerationExhausted) as exc_info:
            await generate_unique_tac(accept, max_attempts=4)

        assert accept.await_count == 4
        assert exc_info.value.attempts == 4
        assert exc_info.value.status_code == 400
        assert "after 4 attempts" in exc_info.value.message
