# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student transfer API endpoints.

Mounted under /schools/{school_id}/transfers.

Outgoing (origin school):
- POST /outgoing/generate-tac - Issue a Transfer Access Code
- GET /outgoing - List transfers issued by the school
- GET /outgoing/{transfer_id} - Get transfer details
- DELETE /outgoing/{transfer_id}/revoke - Revoke an unused code
- GET /outgoing/{transfer_id}/historical-grades - Grades kept after completion

Incoming (destination school):
- POST /incoming/initiate - Claim a code and review the student's record
- GET /incoming - List transfers claimed by the school
- POST /incoming/{transfer_id}/complete - Enroll the student and copy grades
- POST /incoming/{transfer_id}/reject - Decline the transfer

Callers are expected to be authenticated and authorized for school_id
upstream; the acting user is read from the X-User-Id header.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from edutransfer.api.dependencies import get_requesting_user_id, get_transfer_service
from edutransfer.domains.transfer.errors import TransferServiceError
from edutransfer.domains.transfer.service import TransferService
from edutransfer.infrastructure.database.models import TransferStatus
from edutransfer.models.transfer import (
    CompleteTransferRequest,
    CompleteTransferResponse,
    GenerateTacRequest,
    GenerateTacResponse,
    HistoricalGradesResponse,
    InitiateTransferRequest,
    InitiateTransferResponse,
    RejectTransferRequest,
    TransferActionResponse,
    TransferListResponse,
    TransferSummary,
)
from edutransfer.utils.logging import bind_context

logger = logging.getLogger(__name__)

router = APIRouter()

Service = Annotated[TransferService, Depends(get_transfer_service)]


def _to_http(error: TransferServiceError) -> HTTPException:
    """Translate a domain error to its HTTP response."""
    return HTTPException(status_code=error.status_code, detail=error.message)


# =============================================================================
# Outgoing
# =============================================================================


@router.post(
    "/outgoing/generate-tac",
    response_model=GenerateTacResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate TAC",
    description="Issue a Transfer Access Code for a student leaving this school.",
)
async def generate_tac(
    school_id: str,
    data: GenerateTacRequest,
    service: Service,
    user_id: Annotated[str | None, Depends(get_requesting_user_id)],
) -> GenerateTacResponse:
    """Issue or return the live access code for a student."""
    bind_context(school_id=school_id, user_id=user_id)
    try:
        return await service.generate_tac(
            school_id=school_id,
            requesting_user_id=user_id,
            student_id=data.student_id,
            reason=data.reason,
        )
    except TransferServiceError as e:
        raise _to_http(e) from e


@router.get(
    "/outgoing",
    response_model=TransferListResponse,
    summary="List outgoing transfers",
)
async def list_outgoing(
    school_id: str,
    service: Service,
    transfer_status: Annotated[
        TransferStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    school_type: Annotated[
        str | None, Query(description="Filter by class type, e.g. SECONDARY")
    ] = None,
) -> TransferListResponse:
    """List transfers issued by the school."""
    return await service.list_outgoing(
        school_id, status=transfer_status, page=page, limit=limit, school_type=school_type
    )


@router.get(
    "/outgoing/{transfer_id}",
    response_model=TransferSummary,
    summary="Get outgoing transfer",
)
async def get_outgoing_transfer(
    school_id: str,
    transfer_id: str,
    service: Service,
) -> TransferSummary:
    """Get one transfer issued by the school."""
    try:
        return await service.get_outgoing_transfer(school_id, transfer_id)
    except TransferServiceError as e:
        raise _to_http(e) from e


@router.delete(
    "/outgoing/{transfer_id}/revoke",
    response_model=TransferActionResponse,
    summary="Revoke TAC",
)
async def revoke_tac(
    school_id: str,
    transfer_id: str,
    service: Service,
) -> TransferActionResponse:
    """Invalidate an unused access code."""
    bind_context(school_id=school_id, transfer_id=transfer_id)
    try:
        return await service.revoke_tac(school_id, transfer_id)
    except TransferServiceError as e:
        raise _to_http(e) from e


@router.get(
    "/outgoing/{transfer_id}/historical-grades",
    response_model=HistoricalGradesResponse,
    summary="Get historical grades",
)
async def get_historical_grades(
    school_id: str,
    transfer_id: str,
    service: Service,
) -> HistoricalGradesResponse:
    """Get the grades this school holds for a completed transfer."""
    try:
        return await service.get_historical_grades(school_id, transfer_id)
    except TransferServiceError as e:
        raise _to_http(e) from e


# =============================================================================
# Incoming
# =============================================================================


@router.post(
    "/incoming/initiate",
    response_model=InitiateTransferResponse,
    summary="Initiate transfer",
    description="Claim a TAC and receive the student's record for review.",
)
async def initiate_transfer(
    school_id: str,
    data: InitiateTransferRequest,
    service: Service,
) -> InitiateTransferResponse:
    """Claim an access code for this school."""
    bind_context(school_id=school_id)
    try:
        return await service.initiate_transfer(school_id, data.tac, data.student_id)
    except TransferServiceError as e:
        raise _to_http(e) from e


@router.get(
    "/incoming",
    response_model=TransferListResponse,
    summary="List incoming transfers",
)
async def list_incoming(
    school_id: str,
    service: Service,
    transfer_status: Annotated[
        TransferStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    school_type: Annotated[
        str | None, Query(description="Filter by class type, e.g. SECONDARY")
    ] = None,
) -> TransferListResponse:
    """List transfers claimed by the school."""
    return await service.list_incoming(
        school_id, status=transfer_status, page=page, limit=limit, school_type=school_type
    )


@router.post(
    "/incoming/{transfer_id}/complete",
    response_model=CompleteTransferResponse,
    summary="Complete transfer",
)
async def complete_transfer(
    school_id: str,
    transfer_id: str,
    data: CompleteTransferRequest,
    service: Service,
) -> CompleteTransferResponse:
    """Enroll the student and copy their grades."""
    bind_context(school_id=school_id, transfer_id=transfer_id)
    try:
        return await service.complete_transfer(
            school_id=school_id,
            transfer_id=transfer_id,
            target_class_level=data.target_class_level,
            academic_year=data.academic_year,
            class_id=data.class_id,
            class_arm_id=data.class_arm_id,
        )
    except TransferServiceError as e:
        raise _to_http(e) from e


@router.post(
    "/incoming/{transfer_id}/reject",
    response_model=TransferActionResponse,
    summary="Reject transfer",
)
async def reject_transfer(
    school_id: str,
    transfer_id: str,
    data: RejectTransferRequest,
    service: Service,
) -> TransferActionResponse:
    """Decline the transfer."""
    bind_context(school_id=school_id, transfer_id=transfer_id)
    try:
        return await service.reject_transfer(school_id, transfer_id, data.reason)
    except TransferServiceError as e:
        raise _to_http(e) from e
