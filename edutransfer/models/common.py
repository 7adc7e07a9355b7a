# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common response models."""

import math
from typing import Self

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """Page metadata returned alongside list results."""

    total: int = Field(description="Total matching items")
    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Page size")
    total_pages: int = Field(description="Number of pages")
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> Self:
        """Compute page metadata from a total count."""
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class SchoolSummary(BaseModel):
    """Minimal school reference."""

    id: str
    name: str
