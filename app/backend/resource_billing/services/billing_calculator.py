"""Billable-days and cost calculation for one resource."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from resource_billing.models.entities import RateType
from resource_billing.services.calendar_utils import business_days, month_bounds, month_sequence
from resource_billing.services.leave_resolver import LeaveResolver, matched_leave_days

ZERO = Decimal("0")
DEFAULT_HOURS_PER_DAY = 8


@dataclass(frozen=True, slots=True)
class BillableDays:
    year: int
    month_index: int
    total_business_days: int
    leave_days_count: Decimal
    actual_billable_days: Decimal


def net_billable_days(total_business_days: int, leave_days_count: Decimal) -> Decimal:
    return max(ZERO, Decimal(total_business_days) - leave_days_count)


def compute_cost(
    billable_days: Decimal | int,
    rate: Decimal,
    rate_type: RateType,
    *,
    hours_per_day: int = DEFAULT_HOURS_PER_DAY,
) -> Decimal:
    """Money amount for billable days at the given rate, without rounding."""

    days = Decimal(billable_days)
    if rate_type is RateType.DAILY:
        return days * rate
    if rate_type is RateType.HOURLY:
        return days * Decimal(hours_per_day) * rate
    raise ValueError(f"Unsupported rate type: {rate_type!r}")


class BillableDaysCalculator:
    """Combine the business-day calendar with a resource's leaves."""

    def __init__(self, resolver: LeaveResolver) -> None:
        self.resolver = resolver

    def billable_days(self, resource_id: UUID, year: int, month_index: int) -> BillableDays:
        calendar_days = business_days(year, month_index)
        first, last = month_bounds(year, month_index)
        leaves = self.resolver.leaves_in_range(resource_id, first, last)
        leave_count = matched_leave_days(leaves, calendar_days.keys)
        return BillableDays(
            year=year,
            month_index=month_index,
            total_business_days=calendar_days.count,
            leave_days_count=leave_count,
            actual_billable_days=net_billable_days(calendar_days.count, leave_count),
        )

    def billable_days_for_range(
        self,
        resource_id: UUID,
        year: int,
        first_month_index: int,
        last_month_index: int,
    ) -> list[BillableDays]:
        return [
            self.billable_days(resource_id, year, month_index)
            for month_index in month_sequence(first_month_index, last_month_index)
        ]

    def annual_totals(self, resource_id: UUID, year: int) -> tuple[int, Decimal]:
        """Business days and matched leave days across a whole calendar year."""

        total_business_days = 0
        year_keys: set[str] = set()
        for month_index in range(12):
            calendar_days = business_days(year, month_index)
            total_business_days += calendar_days.count
            year_keys.update(calendar_days.keys)

        first, _ = month_bounds(year, 0)
        _, last = month_bounds(year, 11)
        leaves = self.resolver.leaves_in_range(resource_id, first, last)
        leave_count = matched_leave_days(leaves, year_keys)
        return total_business_days, leave_count
