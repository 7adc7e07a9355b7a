# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer domain exceptions.

Each error carries the HTTP status it maps to so the API layer can
translate without a per-endpoint lookup table.
"""


class TransferServiceError(Exception):
    """Base exception for transfer service errors.

    Attributes:
        message: Human-readable description returned to the caller.
        status_code: HTTP status the error maps to.
    """

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransferNotFoundError(TransferServiceError):
    """Raised when a TAC, transfer, student or enrollment does not exist."""

    status_code = 404


class TransferConflictError(TransferServiceError):
    """Raised when the transfer's state no longer allows the operation."""

    status_code = 409


class TransferBadRequestError(TransferServiceError):
    """Raised when the request is invalid for this transfer."""

    status_code = 400


class TransferForbiddenError(TransferServiceError):
    """Raised when the acting school is not the party allowed to act."""

    status_code = 403


class TokenGenerationExhausted(TransferBadRequestError):
    """Raised when no unique access code could be produced."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Failed to generate unique TAC after {attempts} attempts")
        self.attempts = attempts
