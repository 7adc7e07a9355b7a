# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints."""

import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from edutransfer import __version__
from edutransfer.core.config import get_settings
from edutransfer.infrastructure.database.connection import check_database_connection
from edutransfer.utils.datetime import utc_now

router = APIRouter()

_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(description="Overall health status")
    version: str
    environment: str
    uptime_seconds: int
    checked_at: datetime


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the process is up."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=utc_now(),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Report whether the database is reachable."""
    database_ok = await check_database_connection()
    if not database_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(
        ready=database_ok,
        checks={"database": "healthy" if database_ok else "unhealthy"},
    )
