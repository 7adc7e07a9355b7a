# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Example:
    @router.get("/outgoing")
    async def list_outgoing(
        service: TransferService = Depends(get_transfer_service),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from edutransfer.core.config import get_settings
from edutransfer.domains.transfer.service import TransferService
from edutransfer.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
)
from edutransfer.infrastructure.notifications import (
    TransferNotifier,
    get_transfer_notifier,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for one request.

    Yields:
        AsyncSession for the platform database.

    Raises:
        HTTPException: If the database is not initialized.
    """
    try:
        get_sessionmaker()
    except DatabaseError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        ) from e

    async with get_session() as session:
        yield session


def get_notifier() -> TransferNotifier:
    """Get the process-wide transfer notifier."""
    return get_transfer_notifier()


def get_transfer_service(
    db: AsyncSession = Depends(get_db),
    notifier: TransferNotifier = Depends(get_notifier),
) -> TransferService:
    """Build a TransferService for the request."""
    return TransferService(db=db, notifier=notifier)


def get_requesting_user_id(
    x_user_id: Annotated[str | None, Header(description="Acting user id")] = None,
) -> str | None:
    """Read the acting user's id set by the upstream auth layer."""
    return x_user_id
