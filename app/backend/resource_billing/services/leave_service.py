"""Leave recording: explicit create/update/delete plus the legacy toggle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resource_billing.models.entities import Leave
from resource_billing.repositories.billing_repository import BillingRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LeaveCreateData:
    leave_date: date
    is_half_day: bool = False
    reason: str | None = None


@dataclass(slots=True)
class LeaveUpdateData:
    is_half_day: bool | None = None
    reason: str | None = None


@dataclass(slots=True)
class LeaveToggleResult:
    created: bool
    leave: Leave | None


class LeaveService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = BillingRepository(db)

    @staticmethod
    def serialize_leave(leave: Leave) -> dict[str, object]:
        return {
            "id": str(leave.id),
            "resource_id": str(leave.resource_id),
            "date": leave.leave_date.isoformat(),
            "is_half_day": leave.is_half_day,
            "reason": leave.reason,
        }

    def _ensure_resource(self, resource_id: UUID) -> None:
        if self.repo.get_resource(resource_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found.")

    def _ensure_leave(self, resource_id: UUID, leave_date: date) -> Leave:
        leave = self.repo.get_leave(resource_id, leave_date)
        if leave is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave not found.")
        return leave

    def list_leaves(self, resource_id: UUID) -> list[Leave]:
        self._ensure_resource(resource_id)
        return self.repo.list_leaves_for_resource(resource_id)

    def create_leave(self, resource_id: UUID, data: LeaveCreateData) -> Leave:
        """Record a leave day; a second record for the same day is a conflict."""

        self._ensure_resource(resource_id)
        if self.repo.get_leave(resource_id, data.leave_date) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Leave already exists for this date.")

        leave = Leave(
            resource_id=resource_id,
            leave_date=data.leave_date,
            is_half_day=data.is_half_day,
            reason=data.reason.strip() if data.reason else None,
            created_at=datetime.utcnow(),
        )
        self.repo.add_leave(leave)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Concurrent insert for the same (resource, date) won the unique constraint.
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Leave already exists for this date.",
            ) from exc

        self.db.refresh(leave)
        logger.info("Created leave resource_id=%s date=%s half_day=%s", resource_id, data.leave_date, data.is_half_day)
        return leave

    def update_leave(self, resource_id: UUID, leave_date: date, data: LeaveUpdateData) -> Leave:
        leave = self._ensure_leave(resource_id, leave_date)
        if data.is_half_day is not None:
            leave.is_half_day = data.is_half_day
        if data.reason is not None:
            leave.reason = data.reason.strip() or None
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def delete_leave(self, resource_id: UUID, leave_date: date) -> None:
        leave = self._ensure_leave(resource_id, leave_date)
        self.repo.delete_leave(leave)
        self.db.commit()
        logger.info("Deleted leave resource_id=%s date=%s", resource_id, leave_date)

    def apply_leave(self, resource_id: UUID, data: LeaveCreateData) -> LeaveToggleResult:
        """Toggle a leave day: remove it when recorded, otherwise create it."""

        self._ensure_resource(resource_id)
        existing = self.repo.get_leave(resource_id, data.leave_date)
        if existing is not None:
            self.repo.delete_leave(existing)
            self.db.commit()
            logger.info("Toggled off leave resource_id=%s date=%s", resource_id, data.leave_date)
            return LeaveToggleResult(created=False, leave=None)

        try:
            leave = self.create_leave(resource_id, data)
        except HTTPException as exc:
            if exc.status_code != status.HTTP_409_CONFLICT:
                raise
            # Another request created it in the meantime: report the existing record.
            return LeaveToggleResult(created=False, leave=self.repo.get_leave(resource_id, data.leave_date))
        return LeaveToggleResult(created=True, leave=leave)
