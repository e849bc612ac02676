from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from resource_billing.models.entities import RateType
from resource_billing.services.billing_calculator import BillableDaysCalculator, compute_cost, net_billable_days
from resource_billing.services.calendar_utils import business_days
from resource_billing.services.leave_resolver import LeaveDay, LeaveResolver, matched_leave_days


class InMemoryLeaveStore:
    def __init__(self, leaves: dict[UUID, list[LeaveDay]]) -> None:
        self.leaves = leaves
        self.calls: list[tuple[UUID, date, date]] = []

    def list_leaves_in_range(self, resource_id: UUID, start_date: date, end_date: date) -> list[LeaveDay]:
        self.calls.append((resource_id, start_date, end_date))
        return [
            leave
            for leave in self.leaves.get(resource_id, [])
            if start_date <= leave.leave_date <= end_date
        ]


def _calculator(leaves: dict[UUID, list[LeaveDay]]) -> BillableDaysCalculator:
    return BillableDaysCalculator(LeaveResolver(InMemoryLeaveStore(leaves)))


def test_november_2024_full_and_half_day_leave() -> None:
    resource_id = uuid4()
    calculator = _calculator(
        {
            resource_id: [
                LeaveDay(leave_date=date(2024, 11, 4)),
                LeaveDay(leave_date=date(2024, 11, 5), is_half_day=True),
            ]
        }
    )

    result = calculator.billable_days(resource_id, 2024, 10)

    assert result.total_business_days == 21
    assert result.leave_days_count == Decimal("1.5")
    assert result.actual_billable_days == Decimal("19.5")
    assert compute_cost(result.actual_billable_days, Decimal("50"), RateType.DAILY) == Decimal("975")


def test_weekend_leaves_do_not_reduce_billable_days() -> None:
    resource_id = uuid4()
    calculator = _calculator(
        {
            resource_id: [
                LeaveDay(leave_date=date(2024, 11, 2)),
                LeaveDay(leave_date=date(2024, 11, 3), is_half_day=True),
            ]
        }
    )

    result = calculator.billable_days(resource_id, 2024, 10)

    assert result.leave_days_count == Decimal("0")
    assert result.actual_billable_days == Decimal("21")


def test_two_half_days_sum_to_one_day() -> None:
    keys = business_days(2024, 10).keys
    leaves = [
        LeaveDay(leave_date=date(2024, 11, 12), is_half_day=True),
        LeaveDay(leave_date=date(2024, 11, 13), is_half_day=True),
    ]

    assert matched_leave_days(leaves, keys) == Decimal("1")


def test_leaves_outside_month_are_not_counted() -> None:
    keys = business_days(2024, 10).keys
    leaves = [LeaveDay(leave_date=date(2024, 12, 2)), LeaveDay(leave_date=date(2024, 10, 31))]

    assert matched_leave_days(leaves, keys) == Decimal("0")


def test_billable_days_never_negative() -> None:
    assert net_billable_days(2, Decimal("5")) == Decimal("0")
    assert net_billable_days(21, Decimal("21")) == Decimal("0")
    assert net_billable_days(21, Decimal("0.5")) == Decimal("20.5")


def test_every_business_day_on_leave_yields_zero() -> None:
    resource_id = uuid4()
    days = business_days(2024, 1).days
    calculator = _calculator({resource_id: [LeaveDay(leave_date=day) for day in days]})

    result = calculator.billable_days(resource_id, 2024, 1)

    assert result.leave_days_count == Decimal("21")
    assert result.actual_billable_days == Decimal("0")


def test_resolver_queries_exact_month_window() -> None:
    resource_id = uuid4()
    store = InMemoryLeaveStore({})
    calculator = BillableDaysCalculator(LeaveResolver(store))

    calculator.billable_days(resource_id, 2024, 1)

    assert store.calls == [(resource_id, date(2024, 2, 1), date(2024, 2, 29))]


def test_range_returns_one_result_per_month() -> None:
    resource_id = uuid4()
    calculator = _calculator({resource_id: [LeaveDay(leave_date=date(2024, 2, 1))]})

    results = calculator.billable_days_for_range(resource_id, 2024, 0, 2)

    assert [row.month_index for row in results] == [0, 1, 2]
    assert [row.actual_billable_days for row in results] == [Decimal("23"), Decimal("20"), Decimal("21")]


def test_annual_totals_weight_half_days() -> None:
    resource_id = uuid4()
    calculator = _calculator(
        {
            resource_id: [
                LeaveDay(leave_date=date(2024, 1, 2)),
                LeaveDay(leave_date=date(2024, 7, 3), is_half_day=True),
                LeaveDay(leave_date=date(2024, 7, 6)),
            ]
        }
    )

    total, leaves = calculator.annual_totals(resource_id, 2024)

    assert total == 262
    assert leaves == Decimal("1.5")


@pytest.mark.parametrize(
    ("rate_type", "expected"),
    [
        (RateType.DAILY, Decimal("975")),
        (RateType.HOURLY, Decimal("7800")),
    ],
)
def test_compute_cost_by_rate_type(rate_type: RateType, expected: Decimal) -> None:
    assert compute_cost(Decimal("19.5"), Decimal("50"), rate_type) == expected


def test_compute_cost_honours_hours_per_day() -> None:
    assert compute_cost(Decimal("10"), Decimal("20"), RateType.HOURLY, hours_per_day=6) == Decimal("1200")


def test_compute_cost_is_exact() -> None:
    assert compute_cost(Decimal("0.5"), Decimal("10.05"), RateType.DAILY) == Decimal("5.025")
