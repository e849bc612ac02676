"""Self-service leave endpoints for the logged-in resource."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from resource_billing.core.auth import RequestUserContext, require_resource_identity
from resource_billing.db.dependencies import get_db_session
from resource_billing.services.leave_service import LeaveCreateData, LeaveService, LeaveUpdateData

router = APIRouter(prefix="/leaves", tags=["leaves"])


class LeaveCreatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    leave_date: date = Field(alias="date")
    is_half_day: bool = False
    reason: str | None = Field(default=None, max_length=1000)


class LeaveUpdatePayload(BaseModel):
    is_half_day: bool | None = None
    reason: str | None = Field(default=None, max_length=1000)


def _leave_service(db: Session) -> LeaveService:
    return LeaveService(db)


@router.get("/my")
def list_my_leaves(
    context: RequestUserContext = Depends(require_resource_identity),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _leave_service(db)
    return {"items": [service.serialize_leave(row) for row in service.list_leaves(context.resource_id)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_leave(
    payload: LeaveCreatePayload,
    context: RequestUserContext = Depends(require_resource_identity),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _leave_service(db)
    leave = service.create_leave(
        context.resource_id,
        LeaveCreateData(leave_date=payload.leave_date, is_half_day=payload.is_half_day, reason=payload.reason),
    )
    return service.serialize_leave(leave)


@router.post("/apply")
def apply_leave(
    payload: LeaveCreatePayload,
    response: Response,
    context: RequestUserContext = Depends(require_resource_identity),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Toggle a leave day: removes an existing record, otherwise creates one."""

    service = _leave_service(db)
    result = service.apply_leave(
        context.resource_id,
        LeaveCreateData(leave_date=payload.leave_date, is_half_day=payload.is_half_day, reason=payload.reason),
    )
    if result.created:
        response.status_code = status.HTTP_201_CREATED
        return {"action": "created", "leave": service.serialize_leave(result.leave)}
    if result.leave is not None:
        return {"action": "exists", "leave": service.serialize_leave(result.leave)}
    return {"action": "removed", "leave": None}


@router.patch("/{leave_date}")
def update_leave(
    leave_date: date,
    payload: LeaveUpdatePayload,
    context: RequestUserContext = Depends(require_resource_identity),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _leave_service(db)
    leave = service.update_leave(
        context.resource_id,
        leave_date,
        LeaveUpdateData(is_half_day=payload.is_half_day, reason=payload.reason),
    )
    return service.serialize_leave(leave)


@router.delete("/{leave_date}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave(
    leave_date: date,
    context: RequestUserContext = Depends(require_resource_identity),
    db: Session = Depends(get_db_session),
) -> Response:
    _leave_service(db).delete_leave(context.resource_id, leave_date)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
