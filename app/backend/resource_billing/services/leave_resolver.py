"""Resolve recorded leaves into business-day deductions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from resource_billing.services.calendar_utils import date_key

FULL_DAY = Decimal("1")
HALF_DAY = Decimal("0.5")


@dataclass(frozen=True, slots=True)
class LeaveDay:
    leave_date: date
    is_half_day: bool = False

    @property
    def weight(self) -> Decimal:
        return HALF_DAY if self.is_half_day else FULL_DAY


class LeaveStore(Protocol):
    def list_leaves_in_range(self, resource_id: UUID, start_date: date, end_date: date) -> list[LeaveDay]: ...


def matched_leave_days(leaves: Iterable[LeaveDay], business_day_keys: frozenset[str] | set[str]) -> Decimal:
    """Sum leave weights for leaves that fall on one of the given business days.

    Weekend and out-of-range leaves contribute nothing.
    """

    total = Decimal("0")
    for leave in leaves:
        if date_key(leave.leave_date) in business_day_keys:
            total += leave.weight
    return total


class LeaveResolver:
    """Fetch leaves for a resource and date window from the injected store."""

    def __init__(self, store: LeaveStore) -> None:
        self.store = store

    def leaves_in_range(self, resource_id: UUID, start_date: date, end_date: date) -> list[LeaveDay]:
        if end_date < start_date:
            return []
        return list(self.store.list_leaves_in_range(resource_id, start_date, end_date))
