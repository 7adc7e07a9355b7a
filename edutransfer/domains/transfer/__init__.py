# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer domain.

Moves a student's record between schools using single-use Transfer
Access Codes:
- TransferService: public operations for origin and destination schools
- TransferStateMachine: lifecycle transitions and their guards
- CrossTenantAccessor: the scoped read into the origin school
- MigrationExecutor: destination-side writes on completion
"""

from edutransfer.domains.transfer.accessor import CrossTenantAccessor
from edutransfer.domains.transfer.errors import (
    TokenGenerationExhausted,
    TransferBadRequestError,
    TransferConflictError,
    TransferForbiddenError,
    TransferNotFoundError,
    TransferServiceError,
)
from edutransfer.domains.transfer.migration import MigrationExecutor
from edutransfer.domains.transfer.service import TransferService
from edutransfer.domains.transfer.state_machine import TransferStateMachine
from edutransfer.domains.transfer.tokens import generate_unique_tac, is_well_formed, new_tac

__all__ = [
    "TransferService",
    "TransferStateMachine",
    "CrossTenantAccessor",
    "MigrationExecutor",
    "TransferServiceError",
    "TransferNotFoundError",
    "TransferConflictError",
    "TransferBadRequestError",
    "TransferForbiddenError",
    "TokenGenerationExhausted",
    "generate_unique_tac",
    "is_well_formed",
    "new_tac",
]
