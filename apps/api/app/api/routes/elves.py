from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import select

from app.api.deps import CurrentKid, DBSession
from app.core.exceptions import api_error
from app.models import Elf, Kid
from app.schemas.elves import ElfOut, ElfSelectRequest, ElfSelectResponse

router = APIRouter(prefix="/api/elves", tags=["elves"])


@router.get("", response_model=list[ElfOut])
def list_elves(db: DBSession) -> list[ElfOut]:
    elves = db.scalars(select(Elf).order_by(Elf.id.asc())).all()
    return [ElfOut.model_validate(elf) for elf in elves]


@router.post("/select", response_model=ElfSelectResponse)
def select_elf(payload: ElfSelectRequest, db: DBSession, claims: CurrentKid) -> ElfSelectResponse:
    kid = db.get(Kid, claims.kid_id)
    if kid is None:
        raise api_error(status.HTTP_401_UNAUTHORIZED, "Account not found")

    # The catalog is not consulted: any id is stored as the selection.
    kid.elf_id = payload.elfId
    db.commit()

    elf = db.get(Elf, payload.elfId)
    return ElfSelectResponse(
        message="Elf selected!",
        elf=ElfOut.model_validate(elf) if elf is not None else None,
    )
