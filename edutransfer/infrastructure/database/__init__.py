# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the platform PostgreSQL database.

Example:
    from edutransfer.infrastructure.database import get_session, UnitOfWork

    async with get_session() as session:
        async with UnitOfWork(session):
            ...
"""

from edutransfer.infrastructure.database.connection import (
    DatabaseError,
    build_sessionmaker,
    check_database_connection,
    close_database,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from edutransfer.infrastructure.database.repository import TransferRepository
from edutransfer.infrastructure.database.unit_of_work import UnitOfWork

__all__ = [
    "DatabaseError",
    "build_sessionmaker",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    "TransferRepository",
    "UnitOfWork",
]
