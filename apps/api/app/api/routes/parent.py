from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import select, update

from app.api.deps import CurrentParent, DBSession
from app.models import Kid, Parent
from app.schemas.common import MessageResponse
from app.schemas.parent import ParentKidOut, ParentSettingsUpdateRequest

router = APIRouter(prefix="/api/parent", tags=["parent"])


@router.patch("/settings", response_model=MessageResponse)
def update_settings(
    payload: ParentSettingsUpdateRequest,
    db: DBSession,
    claims: CurrentParent,
) -> MessageResponse:
    db.execute(
        update(Parent)
        .where(Parent.id == claims.parent_id)
        .values(response_mode=payload.responseMode.value),
    )
    db.commit()
    return MessageResponse(message="Settings updated")


@router.get("/kids", response_model=list[ParentKidOut])
def list_kids(db: DBSession, claims: CurrentParent) -> list[ParentKidOut]:
    kids = db.scalars(
        select(Kid).where(Kid.parent_id == claims.parent_id).order_by(Kid.id.asc()),
    ).all()
    return [ParentKidOut.model_validate(kid) for kid in kids]
