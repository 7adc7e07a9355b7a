# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer Access Code generation.

Codes look like ``TAC-7F3K9Q2M-X8RB``: a constant tag followed by two
groups of uppercase alphanumerics drawn from ``secrets``. The generator is
a pure function of its inputs; uniqueness is checked through a callback
and ultimately enforced by the store's unique index.
"""

import re
import secrets
import string
from collections.abc import Awaitable, Callable

from edutransfer.domains.transfer.errors import TokenGenerationExhausted

TAC_ALPHABET = string.ascii_uppercase + string.digits
TAC_GROUP_LENGTHS = (8, 4)
DEFAULT_PREFIX = "TAC"
DEFAULT_MAX_ATTEMPTS = 10

CandidateCheck = Callable[[str], Awaitable[bool]]


def new_tac(prefix: str = DEFAULT_PREFIX) -> str:
    """Draw one candidate access code.

    Args:
        prefix: Constant tag placed before the random groups.

    Returns:
        Candidate code, not yet checked for uniqueness.
    """
    groups = [
        "".join(secrets.choice(TAC_ALPHABET) for _ in range(length))
        for length in TAC_GROUP_LENGTHS
    ]
    return "-".join([prefix, *groups])


def is_well_formed(tac: str, prefix: str = DEFAULT_PREFIX) -> bool:
    """Check that a string has the access code shape."""
    groups = r"-".join(f"[A-Z0-9]{{{length}}}" for length in TAC_GROUP_LENGTHS)
    return re.fullmatch(rf"{re.escape(prefix)}-{groups}", tac) is not None


async def generate_unique_tac(
    accept: CandidateCheck,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    prefix: str = DEFAULT_PREFIX,
) -> str:
    """Generate an access code that the callback accepts.

    The callback may simply test for availability or may also reserve the
    candidate (e.g. insert it under a unique index) and report whether
    that succeeded; either way every rejected candidate costs one attempt.

    Args:
        accept: Async callback returning True when the candidate is taken up.
        max_attempts: Candidates to try before giving up.
        prefix: Constant tag placed before the random groups.

    Returns:
        The accepted code.

    Raises:
        TokenGenerationExhausted: If every candidate collided.
    """
    for _ in range(max_attempts):
        candidate = new_tac(prefix)
        if await accept(candidate):
            return candidate
    raise TokenGenerationExhausted(max_attempts)
