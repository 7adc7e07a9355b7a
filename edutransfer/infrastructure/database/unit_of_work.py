# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Explicit transaction boundary for multi-step writes.

A UnitOfWork wraps one AsyncSession. Everything done inside the ``async
with`` block commits together when the block exits normally, and is rolled
back together when any exception escapes it.

Example:
    async with UnitOfWork(session) as uow:
        transfer = await repo.get_for_update(transfer_id)
        ...
        uow.session.add(enrollment)
"""

import logging
from types import TracebackType
from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edutransfer.infrastructure.database.connection import DatabaseError

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Commit-or-rollback scope around a single session.

    Attributes:
        session: The session all work inside the scope must use.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._committed = False

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.session.rollback()
            logger.debug("Unit of work rolled back: %s", exc_type.__name__)
            return

        try:
            await self.session.commit()
            self._committed = True
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("Failed to commit unit of work", e) from e

    @property
    def committed(self) -> bool:
        """Whether the scope exited with a successful commit."""
        return self._committed
