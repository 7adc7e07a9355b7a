# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    transfers: Student transfer endpoints (TAC issue, claim, complete).
"""

from fastapi import APIRouter

from edutransfer.api.v1 import transfers

router = APIRouter(prefix="/api/v1")

router.include_router(
    transfers.router,
    prefix="/schools/{school_id}/transfers",
    tags=["Transfers"],
)

__all__ = ["router"]
