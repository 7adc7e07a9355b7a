# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outbound notifications for the transfer workflow.

Usage:
    from edutransfer.infrastructure.notifications import get_transfer_notifier

    notifier = get_transfer_notifier()
    notifier.dispatch(build_tac_issued_payload(...))
"""

from edutransfer.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    EmailChannel,
    NotificationPayload,
)
from edutransfer.infrastructure.notifications.service import (
    TransferNotifier,
    build_tac_issued_payload,
    build_tac_revoked_payload,
    get_transfer_notifier,
    reset_transfer_notifier,
)

__all__ = [
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "EmailChannel",
    "NotificationPayload",
    "TransferNotifier",
    "build_tac_issued_payload",
    "build_tac_revoked_payload",
    "get_transfer_notifier",
    "reset_transfer_notifier",
]
