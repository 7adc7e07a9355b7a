# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""EduTransfer - inter-school student transfer service.

Moves a student's academic record between independently-tenanted
schools using a single-use Transfer Access Code (TAC).
"""

__version__ = "1.0.0"
