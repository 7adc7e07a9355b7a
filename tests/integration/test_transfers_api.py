# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Transfers API endpoints."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from edutransfer.api.app import create_app
from edutransfer.api.dependencies import get_transfer_service
from edutransfer.api.routes import health
from edutransfer.api.v1 import router as v1_router
from edutransfer.domains.transfer.errors import (
    TokenGenerationExhausted,
    TransferConflictError,
    TransferForbiddenError,
    TransferNotFoundError,
)
from edutransfer.infrastructure.database.models import TransferStatus
from edutransfer.models.common import PaginationMeta
from edutransfer.models.transfer import (
    CompleteTransferResponse,
    GenerateTacResponse,
    TransferActionResponse,
    TransferListResponse,
)
from edutransfer.utils.datetime import days_from_now

SCHOOL_ID = "school-a"
BASE = f"/api/v1/schools/{SCHOOL_ID}/transfers"


@pytest.fixture
def mock_service():
    """Create a mock transfer service."""
    return AsyncMock()


@pytest.fixture
def app(mock_service):
    """Create test FastAPI app."""
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(v1_router)
    app.dependency_overrides[get_transfer_service] = lambda: mock_service
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


class TestTransfersAPIRouting:
    """Tests for transfers API routing."""

    def test_routes_registered(self, app):
        """Test that transfer routes are registered."""
        routes = app.openapi()["paths"]
        prefix = "/api/v1/schools/{school_id}/transfers"

        assert f"{prefix}/outgoing/generate-tac" in routes
        assert f"{prefix}/outgoing" in routes
        assert f"{prefix}/outgoing/{{transfer_id}}" in routes
        assert f"{prefix}/outgoing/{{transfer_id}}/revoke" in routes
        assert f"{prefix}/outgoing/{{transfer_id}}/historical-grades" in routes
        assert f"{prefix}/incoming/initiate" in routes
        assert f"{prefix}/incoming" in routes
        assert f"{prefix}/incoming/{{transfer_id}}/complete" in routes
        assert f"{prefix}/incoming/{{transfer_id}}/reject" in routes
        assert "/health" in routes


class TestTransfersAPIEndpoints:
    """Tests for transfers API endpoints."""

    def test_generate_tac(self, client, mock_service):
        """Test issuing a code returns 201 with the code."""
        transfer_id = str(uuid4())
        mock_service.generate_tac.return_value = GenerateTacResponse(
            transfer_id=transfer_id,
            tac="TAC-7F3K9Q2M-X8RB",
            student_id="student-1",
            student_name="Ada Obi",
            expires_at=days_from_now(30),
        )

        response = client.post(
            f"{BASE}/outgoing/generate-tac",
            json={"student_id": "student-1", "reason": "Relocation"},
            headers={"X-User-Id": "user-9"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["tac"] == "TAC-7F3K9Q2M-X8RB"
        assert body["message"] == "Share this TAC with the receiving school"
        mock_service.generate_tac.assert_awaited_once_with(
            school_id=SCHOOL_ID,
            requesting_user_id="user-9",
            student_id="student-1",
            reason="Relocation",
        )

    def test_generate_tac_validation(self, client, mock_service):
        """Test a missing student id is rejected before the service runs."""
        response = client.post(f"{BASE}/outgoing/generate-tac", json={})

        assert response.status_code == 422
        mock_service.generate_tac.assert_not_awaited()

    def test_generate_tac_exhausted(self, client, mock_service):
        """Test exhausted generation maps to 400."""
        mock_service.generate_tac.side_effect = TokenGenerationExhausted(10)

        response = client.post(f"{BASE}/outgoing/generate-tac", json={"student_id": "s"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to generate unique TAC after 10 attempts"

    def test_initiate_unknown_tac(self, client, mock_service):
        """Test an unknown code maps to 404."""
        mock_service.initiate_transfer.side_effect = TransferNotFoundError("Invalid TAC")

        response = client.post(
            f"{BASE}/incoming/initiate",
            json={"tac": "TAC-NOPE0000-0000", "student_id": "student-1"},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Invalid TAC"

    def test_initiate_claimed_elsewhere(self, client, mock_service):
        """Test a code bound to another school maps to 409."""
        mock_service.initiate_transfer.side_effect = TransferConflictError(
            "This TAC has already been claimed by another school"
        )

        response = client.post(
            f"{BASE}/incoming/initiate",
            json={"tac": "TAC-7F3K9Q2M-X8RB", "student_id": "student-1"},
        )

        assert response.status_code == 409

    def test_complete(self, client, mock_service):
        """Test completing a transfer."""
        mock_service.complete_transfer.return_value = CompleteTransferResponse(
            transfer_id="t-1", new_enrollment_id="e-1"
        )

        response = client.post(
            f"{BASE}/incoming/t-1/complete",
            json={"target_class_level": "JSS2", "academic_year": "2024/2025", "class_arm_id": "arm-1"},
        )

        assert response.status_code == 200
        assert response.json()["new_enrollment_id"] == "e-1"
        mock_service.complete_transfer.assert_awaited_once_with(
            school_id=SCHOOL_ID,
            transfer_id="t-1",
            target_class_level="JSS2",
            academic_year="2024/2025",
            class_id=None,
            class_arm_id="arm-1",
        )

    def test_complete_forbidden(self, client, mock_service):
        """Test completing another school's transfer maps to 403."""
        mock_service.complete_transfer.side_effect = TransferForbiddenError(
            "You can only complete transfers to your school"
        )

        response = client.post(
            f"{BASE}/incoming/t-1/complete",
            json={"target_class_level": "JSS2", "academic_year": "2024/2025"},
        )

        assert response.status_code == 403

    def test_reject(self, client, mock_service):
        """Test rejecting a transfer."""
        mock_service.reject_transfer.return_value = TransferActionResponse(
            transfer_id="t-1", status=TransferStatus.REJECTED, message="Transfer rejected"
        )

        response = client.post(f"{BASE}/incoming/t-1/reject", json={"reason": "No space"})

        assert response.status_code == 200
        assert response.json()["status"] == "REJECTED"
        mock_service.reject_transfer.assert_awaited_once_with(SCHOOL_ID, "t-1", "No space")

    def test_revoke(self, client, mock_service):
        """Test revoking a code."""
        mock_service.revoke_tac.return_value = TransferActionResponse(
            transfer_id="t-1", status=TransferStatus.CANCELLED, message="TAC revoked successfully"
        )

        response = client.delete(f"{BASE}/outgoing/t-1/revoke")

        assert response.status_code == 200
        assert response.json()["message"] == "TAC revoked successfully"

    def test_list_outgoing_filters(self, client, mock_service):
        """Test listing passes status, paging and school type through."""
        mock_service.list_outgoing.return_value = TransferListResponse(
            transfers=[], meta=PaginationMeta.build(total=0, page=2, limit=5)
        )

        response = client.get(
            f"{BASE}/outgoing",
            params={"status": "PENDING", "page": 2, "limit": 5, "school_type": "SECONDARY"},
        )

        assert response.status_code == 200
        assert response.json()["meta"]["page"] == 2
        mock_service.list_outgoing.assert_awaited_once_with(
            SCHOOL_ID,
            status=TransferStatus.PENDING,
            page=2,
            limit=5,
            school_type="SECONDARY",
        )

    def test_list_rejects_oversized_page(self, client, mock_service):
        """Test limit above the maximum is rejected."""
        response = client.get(f"{BASE}/incoming", params={"limit": 500})

        assert response.status_code == 422
        mock_service.list_incoming.assert_not_awaited()


class TestApplication:
    """Tests for the application factory and health routes."""

    def test_create_app(self):
        """Test the factory mounts health and versioned routes."""
        app = create_app()
        routes = app.openapi()["paths"]

        assert "/health" in routes
        assert "/health/ready" in routes
        assert "/api/v1/schools/{school_id}/transfers/incoming/initiate" in routes

    def test_health(self, client):
        """Test liveness does not touch the database."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness_without_database(self, client):
        """Test readiness reports 503 before the pool is initialized."""
        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {"ready": False, "checks": {"database": "unhealthy"}}
