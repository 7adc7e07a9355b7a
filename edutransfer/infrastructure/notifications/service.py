# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer notifications.

TransferNotifier renders the transfer emails and hands them to a channel
in a background task. Sending is fire-and-forget: the caller never awaits
delivery and a failed or crashed send is logged, never raised, so it
cannot undo a committed transfer.
"""

import asyncio
import logging
from datetime import datetime

from edutransfer.core.config.settings import SMTPSettings, get_settings
from edutransfer.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    EmailChannel,
    NotificationPayload,
)

logger = logging.getLogger(__name__)


def build_tac_issued_payload(
    *,
    school_name: str,
    student_name: str,
    student_email: str | None,
    student_id: str,
    tac: str,
    expires_at: datetime,
) -> NotificationPayload:
    """Render the "access code issued" email."""
    message = (
        f"{school_name} has generated a Transfer Access Code (TAC) for your transfer.\n"
        "Share this code with the school you are moving to. It can be used only once.\n\n"
        f"Student ID: {student_id}\n"
        f"Expires: {expires_at.strftime('%Y-%m-%d %H:%M UTC')}\n\n"
        "Do not share this code with anyone other than the receiving school."
    )
    return NotificationPayload(
        notification_type="tac_issued",
        title=f"Transfer Access Code (TAC) Generated - {school_name}",
        message=message,
        recipient_email=student_email,
        recipient_name=student_name,
        school_name=school_name,
        highlight=tac,
        data={"student_id": student_id, "expires_at": expires_at.isoformat()},
    )


def build_tac_revoked_payload(
    *,
    school_name: str,
    student_name: str,
    student_email: str | None,
    tac: str,
) -> NotificationPayload:
    """Render the "access code revoked" email."""
    message = (
        f"The Transfer Access Code below has been revoked by {school_name} "
        "and can no longer be used.\n"
        "If you still need to transfer, ask the school to generate a new code."
    )
    return NotificationPayload(
        notification_type="tac_revoked",
        title=f"Transfer Access Code Revoked - {school_name}",
        message=message,
        recipient_email=student_email,
        recipient_name=student_name,
        school_name=school_name,
        highlight=tac,
    )


class TransferNotifier:
    """Fire-and-forget delivery of transfer notifications.

    Attributes:
        channel: Channel every message goes through.
    """

    def __init__(self, channel: BaseChannel) -> None:
        self.channel = channel
        self._tasks: set[asyncio.Task[ChannelResult | None]] = set()

    def dispatch(self, payload: NotificationPayload) -> asyncio.Task[ChannelResult | None]:
        """Schedule a send and return immediately.

        Args:
            payload: Message to deliver.

        Returns:
            The background task (callers normally ignore it).
        """
        task = asyncio.create_task(self._deliver(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, payload: NotificationPayload) -> ChannelResult | None:
        try:
            result = await self.channel.send(payload)
        except Exception:
            logger.exception(
                "Notification %s to %s crashed",
                payload.notification_type,
                payload.recipient_email,
            )
            return None

        if not result.ok:
            logger.warning(
                "Notification %s to %s not delivered: %s (%s)",
                payload.notification_type,
                payload.recipient_email,
                result.status.value,
                result.error_message,
            )
        return result

    @property
    def pending(self) -> int:
        """Number of sends still in flight."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight send (used at shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


_notifier: TransferNotifier | None = None


def get_transfer_notifier(settings: SMTPSettings | None = None) -> TransferNotifier:
    """Get or create the process-wide notifier backed by the email channel."""
    global _notifier
    if _notifier is None:
        _notifier = TransferNotifier(EmailChannel(settings or get_settings().smtp))
    return _notifier


def reset_transfer_notifier() -> None:
    """Forget the process-wide notifier (tests, reconfiguration)."""
    global _notifier
    _notifier = None
