"""
Time-window and author filtering of listed components.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import ChangeMode, ChangeRecord, ItemDescriptor
from .time_utils import age_in_days, parse_timestamp


class ChangeFilter:
    """Decide whether a component changed inside the look-back window."""

    def __init__(
        self,
        days: int,
        mode: ChangeMode = ChangeMode.MODIFIED,
        author: Optional[str] = None,
    ) -> None:
        """Initialize the filter.

        Args:
            days: Look-back window in days, inclusive
            mode: Whether creation or last modification is checked
            author: Exact display name the effective author must match
        """
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            raise ValueError(f"days must be a non-negative integer, got {days!r}")
        self.days = days
        self.mode = mode
        self.author = author

    def evaluate(self, descriptor: ItemDescriptor, now: datetime) -> Optional[ChangeRecord]:
        """Return the change record for an accepted component, else None."""
        modified_at = parse_timestamp(descriptor.last_modified_date)
        created_at = parse_timestamp(descriptor.created_date)

        effective_at = created_at if self.mode is ChangeMode.CREATED else modified_at
        if effective_at is None:
            return None

        # None when the timestamp is unreadable.
        modification_age = age_in_days(now, modified_at) if modified_at else None
        creation_age = age_in_days(now, created_at) if created_at else None

        record = ChangeRecord(
            type=descriptor.type,
            name=descriptor.full_name,
            modification_age=modification_age,
            creation_age=creation_age,
            last_modified_date=descriptor.last_modified_date,
            created_date=descriptor.created_date,
            last_modified_by_name=descriptor.last_modified_by_name,
            created_by_name=descriptor.created_by_name,
        )
        if not self.accepts(record):
            return None
        return record

    def accepts(self, record: ChangeRecord) -> bool:
        effective_age = record.effective_age(self.mode)
        if effective_age is None or effective_age > self.days:
            return False
        if self.author and record.effective_author(self.mode) != self.author:
            return False
        return True
