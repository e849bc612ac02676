"""Billing aggregation: project, overview, annual trend and resource dashboards."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status

from resource_billing.core.config import Settings, get_settings
from resource_billing.services.billing_calculator import BillableDays, BillableDaysCalculator, compute_cost
from resource_billing.services.billing_records import AssignmentRecord, BillingStore, ProjectBillingRecord
from resource_billing.services.calendar_utils import (
    cumulative_business_days,
    month_bounds,
    month_name,
    month_sequence,
    utc_today,
    validate_month_index,
)
from resource_billing.services.leave_resolver import LeaveResolver

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
Q2 = Decimal("0.01")
ALL_PROJECTS = "ALL"


class ReportPeriod(str, enum.Enum):
    MONTH = "MONTH"
    YTD = "YTD"


class ReportComputationError(RuntimeError):
    """A store lookup failed while a report was being assembled."""

    def __init__(self, message: str, *, resource_id: UUID, year: int, month_index: int) -> None:
        super().__init__(message)
        self.resource_id = resource_id
        self.year = year
        self.month_index = month_index


def format_decimal(value: Decimal | None) -> str | None:
    if value is None:
        return None
    if value == ZERO:
        return "0"
    return format(value.normalize(), "f")


def add_to_currency(totals: dict[str, Decimal], currency: str, amount: Decimal) -> None:
    totals[currency] = totals.get(currency, ZERO) + amount


def collapse_currency_totals(
    totals: dict[str, Decimal],
    *,
    combine: bool,
    fallback_currency: str,
) -> tuple[Decimal | None, str]:
    """Reduce per-currency totals to one amount when that is meaningful.

    Returns ``(None, first_currency)`` for mixed currencies unless ``combine`` is
    set, in which case raw magnitudes are summed under the first currency seen.
    """

    if not totals:
        return ZERO, fallback_currency
    first_currency = next(iter(totals))
    if len(totals) == 1 or combine:
        return sum(totals.values(), ZERO), first_currency
    return None, first_currency


def _serialize_totals(totals: dict[str, Decimal]) -> dict[str, str | None]:
    return {currency: format_decimal(amount) for currency, amount in totals.items()}


def is_all_projects(project_id: UUID | str | None) -> bool:
    return isinstance(project_id, str) and project_id.strip().upper() == ALL_PROJECTS


def is_billable_month(assignment: AssignmentRecord, year: int, month_index: int) -> bool:
    """Assignments are not billed for months that end before they started."""

    _, month_end = month_bounds(year, month_index)
    return assignment.start_date <= month_end


class BillingReportService:
    """Aggregate billable days and cost across resources and projects."""

    def __init__(
        self,
        store: BillingStore,
        *,
        settings: Settings | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.today = today
        self.calculator = BillableDaysCalculator(LeaveResolver(store))

    # ---------- Period resolution ----------
    def _resolve_period(self, *, month_index: int | None, year: int | None) -> tuple[int, int]:
        today = self.today()
        resolved_month = today.month - 1 if month_index is None else month_index
        resolved_year = today.year if year is None else year
        try:
            validate_month_index(resolved_month)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        return resolved_month, resolved_year

    # ---------- Per-resource primitives ----------
    def billable_days(self, resource_id: UUID, year: int, month_index: int) -> BillableDays:
        try:
            return self.calculator.billable_days(resource_id, year, month_index)
        except Exception as exc:
            logger.exception(
                "Billable days lookup failed resource_id=%s year=%s month_index=%s",
                resource_id,
                year,
                month_index,
            )
            raise ReportComputationError(
                f"Could not compute billable days for resource {resource_id}.",
                resource_id=resource_id,
                year=year,
                month_index=month_index,
            ) from exc

    def _cost(self, days: Decimal | int, assignment: AssignmentRecord) -> Decimal:
        return compute_cost(
            days,
            assignment.rate,
            assignment.rate_type,
            hours_per_day=self.settings.billing_hours_per_day,
        )

    def _assignment_period_figures(
        self,
        assignment: AssignmentRecord,
        *,
        year: int,
        months: list[int],
    ) -> dict[str, Decimal | int]:
        expected_days = 0
        leaves_taken = ZERO
        actual_days = ZERO
        cost = ZERO
        for month_index in months:
            if not is_billable_month(assignment, year, month_index):
                continue
            figures = self.billable_days(assignment.resource_id, year, month_index)
            expected_days += figures.total_business_days
            leaves_taken += figures.leave_days_count
            actual_days += figures.actual_billable_days
            cost += self._cost(figures.actual_billable_days, assignment)
        return {
            "expected_working_days": expected_days,
            "leaves_taken": leaves_taken,
            "actual_working_days": actual_days,
            "cost": cost,
        }

    # ---------- Project / month and project / YTD ----------
    def _projects_for_scope(self, project_id: UUID | str) -> list[ProjectBillingRecord]:
        if is_all_projects(project_id):
            return self.store.list_billing_projects(active_only=True)

        try:
            resolved_id = project_id if isinstance(project_id, UUID) else UUID(str(project_id))
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.") from exc

        project = self.store.get_billing_project(resolved_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
        return [project]

    def project_billing_stats(
        self,
        *,
        project_id: UUID | str,
        month_index: int | None = None,
        year: int | None = None,
        period: ReportPeriod = ReportPeriod.MONTH,
        combine_currencies: bool = False,
    ) -> dict[str, object]:
        month_index, year = self._resolve_period(month_index=month_index, year=year)
        projects = self._projects_for_scope(project_id)
        first_month = 0 if period is ReportPeriod.YTD else month_index
        months = month_sequence(first_month, month_index)
        is_all = is_all_projects(project_id)
        logger.info(
            "Project billing stats scope=%s period=%s year=%s month_index=%s",
            ALL_PROJECTS if is_all else project_id,
            period.value,
            year,
            month_index,
        )

        today = self.today()
        totals: dict[str, Decimal] = {}
        rows: list[dict[str, object]] = []
        for project in projects:
            for assignment in project.assignments:
                figures = self._assignment_period_figures(assignment, year=year, months=months)
                add_to_currency(totals, assignment.currency, figures["cost"])
                rows.append(
                    {
                        "resource_id": str(assignment.resource_id),
                        "resource_name": assignment.resource_name,
                        "project_id": str(project.id),
                        "project_name": project.name,
                        "po": project.po or "-",
                        "line_item": project.line_item or "-",
                        "rate": format_decimal(assignment.rate),
                        "rate_type": assignment.rate_type.value,
                        "currency": assignment.currency,
                        "annual_working_days": assignment.assigned_days,
                        "expected_working_days": figures["expected_working_days"],
                        "leaves_taken": format_decimal(figures["leaves_taken"]),
                        "actual_working_days": format_decimal(figures["actual_working_days"]),
                        "cumulative_working_days": cumulative_business_days(assignment.start_date, today),
                        "cost": format_decimal(figures["cost"]),
                        "total_billed": format_decimal(figures["cost"]),
                    }
                )

        total_amount, currency = collapse_currency_totals(
            totals,
            combine=combine_currencies,
            fallback_currency=self.settings.default_currency,
        )
        return {
            "project_id": ALL_PROJECTS if is_all else str(projects[0].id),
            "project_name": "All Projects" if is_all else projects[0].name,
            "period": period.value,
            "month": month_index,
            "year": year,
            "currency": currency,
            "mixed_currencies": len(totals) > 1,
            "total_project_amount": format_decimal(total_amount),
            "totals_by_currency": _serialize_totals(totals),
            "resources": rows,
        }

    # ---------- All-projects overview ----------
    def overview(
        self,
        *,
        month_index: int | None = None,
        year: int | None = None,
        combine_currencies: bool = False,
    ) -> dict[str, object]:
        month_index, year = self._resolve_period(month_index=month_index, year=year)
        logger.info("Billing overview year=%s month_index=%s", year, month_index)

        grand_totals: dict[str, Decimal] = {}
        project_rows: list[dict[str, object]] = []
        for project in self.store.list_billing_projects(active_only=True):
            project_totals: dict[str, Decimal] = {}
            active_resources = 0
            for assignment in project.assignments:
                cost = ZERO
                if is_billable_month(assignment, year, month_index):
                    figures = self.billable_days(assignment.resource_id, year, month_index)
                    cost = self._cost(figures.actual_billable_days, assignment)
                add_to_currency(project_totals, assignment.currency, cost)
                add_to_currency(grand_totals, assignment.currency, cost)
                if cost > ZERO:
                    active_resources += 1

            project_cost, project_currency = collapse_currency_totals(
                project_totals,
                combine=combine_currencies,
                fallback_currency=self.settings.default_currency,
            )
            project_rows.append(
                {
                    "id": str(project.id),
                    "name": project.name,
                    "code": project.code,
                    "currency": project_currency,
                    "cost": format_decimal(project_cost),
                    "totals_by_currency": _serialize_totals(project_totals),
                    "resource_count": len(project.assignments),
                    "active_resources": active_resources,
                }
            )

        grand_total, currency = collapse_currency_totals(
            grand_totals,
            combine=combine_currencies,
            fallback_currency=self.settings.default_currency,
        )
        return {
            "month": month_index,
            "year": year,
            "currency": currency,
            "mixed_currencies": len(grand_totals) > 1,
            "grand_total": format_decimal(grand_total),
            "grand_totals_by_currency": _serialize_totals(grand_totals),
            "projects": project_rows,
        }

    # ---------- Annual trend ----------
    def annual_trend(
        self,
        *,
        year: int | None = None,
        project_id: UUID | str | None = None,
        combine_currencies: bool = False,
    ) -> dict[str, object]:
        """Twelve monthly cost points; no project or ``ALL`` spans every project, active or not."""

        _, year = self._resolve_period(month_index=None, year=year)
        if project_id is None or is_all_projects(project_id):
            projects = self.store.list_billing_projects(active_only=False)
            scope = ALL_PROJECTS
        else:
            projects = self._projects_for_scope(project_id)
            scope = str(projects[0].id)
        logger.info("Annual billing trend year=%s project_id=%s", year, scope)

        assignments = [assignment for project in projects for assignment in project.assignments]
        data: list[dict[str, object]] = []
        for month_index in range(12):
            month_totals: dict[str, Decimal] = {}
            expected_totals: dict[str, Decimal] = {}
            for assignment in assignments:
                if not is_billable_month(assignment, year, month_index):
                    continue
                figures = self.billable_days(assignment.resource_id, year, month_index)
                add_to_currency(month_totals, assignment.currency, self._cost(figures.actual_billable_days, assignment))
                add_to_currency(
                    expected_totals,
                    assignment.currency,
                    self._cost(figures.total_business_days, assignment),
                )

            cost, currency = collapse_currency_totals(
                month_totals,
                combine=combine_currencies,
                fallback_currency=self.settings.default_currency,
            )
            expected_cost, _ = collapse_currency_totals(
                expected_totals,
                combine=combine_currencies,
                fallback_currency=self.settings.default_currency,
            )
            data.append(
                {
                    "month_index": month_index,
                    "month_name": month_name(month_index),
                    "currency": currency,
                    "cost": format_decimal(cost),
                    "expected_cost": format_decimal(expected_cost),
                    "totals_by_currency": _serialize_totals(month_totals),
                }
            )

        return {
            "year": year,
            "project_id": scope,
            "data": data,
        }

    # ---------- Resource views ----------
    def _ensure_resource(self, resource_id: UUID) -> None:
        if self.store.get_resource_record(resource_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found.")

    def resource_dashboard(
        self,
        *,
        resource_id: UUID,
        month_index: int | None = None,
        year: int | None = None,
    ) -> dict[str, object]:
        month_index, year = self._resolve_period(month_index=month_index, year=year)
        self._ensure_resource(resource_id)

        month_figures = self.billable_days(resource_id, year, month_index)
        try:
            annual_business_days, annual_leaves = self.calculator.annual_totals(resource_id, year)
        except Exception as exc:
            logger.exception("Annual leave lookup failed resource_id=%s year=%s", resource_id, year)
            raise ReportComputationError(
                f"Could not compute annual figures for resource {resource_id}.",
                resource_id=resource_id,
                year=year,
                month_index=month_index,
            ) from exc

        return {
            "month": month_index,
            "year": year,
            "month_stats": {
                "working_days": format_decimal(month_figures.actual_billable_days),
                "leaves_taken": format_decimal(month_figures.leave_days_count),
            },
            "annual_stats": {
                "working_days": format_decimal(max(ZERO, Decimal(annual_business_days) - annual_leaves)),
                "leaves_taken": format_decimal(annual_leaves),
            },
        }

    def resource_working_days(
        self,
        *,
        resource_id: UUID,
        month_index: int,
        year: int,
    ) -> dict[str, object]:
        month_index, year = self._resolve_period(month_index=month_index, year=year)
        self._ensure_resource(resource_id)

        figures = self.billable_days(resource_id, year, month_index)
        total_assigned_days = sum(
            assignment.assigned_days for assignment in self.store.list_resource_assignments(resource_id)
        )
        ratio = ZERO
        if figures.total_business_days:
            ratio = (figures.actual_billable_days / Decimal(figures.total_business_days) * 100).quantize(Q2)

        return {
            "month": month_index,
            "year": year,
            "total_business_days": figures.total_business_days,
            "leave_days": format_decimal(figures.leave_days_count),
            "actual_working_days": format_decimal(figures.actual_billable_days),
            "total_assigned_days": total_assigned_days,
            "working_ratio": format_decimal(ratio),
        }
