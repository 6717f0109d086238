from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from sqlalchemy import select

from app.api.deps import CurrentKid, CurrentParent, DBSession, ReplyGenerator
from app.core.exceptions import api_error
from app.models import Elf, Kid, Letter, Parent, Responder, ResponseMode
from app.schemas.common import MessageResponse
from app.schemas.letters import (
    KidLetterOut,
    LetterCreateRequest,
    LetterOut,
    LetterRespondRequest,
    LetterSentResponse,
    ParentLetterOut,
)

logger = logging.getLogger("penpals.api.letters")

router = APIRouter(prefix="/api", tags=["letters"])


def _letter_fields(letter: Letter) -> dict[str, object]:
    return LetterOut.model_validate(letter).model_dump()


@router.post("/letters", response_model=LetterSentResponse)
def send_letter(
    payload: LetterCreateRequest,
    db: DBSession,
    replies: ReplyGenerator,
    claims: CurrentKid,
) -> LetterSentResponse:
    kid = db.get(Kid, claims.kid_id)
    if kid is None:
        raise api_error(status.HTTP_401_UNAUTHORIZED, "Account not found")
    if kid.elf_id is None:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Please select an elf friend first")

    letter = Letter(
        kid_id=kid.id,
        elf_id=kid.elf_id,
        content=payload.content,
        sent_at=datetime.now(UTC),
    )
    db.add(letter)
    db.commit()
    logger.info("letter.sent", extra={"letter_id": letter.id, "kid_id": kid.id, "elf_id": kid.elf_id})

    response_mode = db.scalar(select(Parent.response_mode).where(Parent.id == kid.parent_id))
    if response_mode == ResponseMode.AI.value:
        elf = db.get(Elf, kid.elf_id)
        if elf is None:
            logger.warning("letter.elf_missing", extra={"letter_id": letter.id, "elf_id": kid.elf_id})
        else:
            letter.response = replies.generate(payload.content, elf)
            letter.response_at = datetime.now(UTC)
            letter.responded_by = Responder.AI.value
            db.commit()

    return LetterSentResponse(
        message="Letter sent to the North Pole!",
        letter=LetterOut.model_validate(letter),
    )


@router.get("/letters", response_model=list[KidLetterOut])
def list_kid_letters(db: DBSession, claims: CurrentKid) -> list[KidLetterOut]:
    rows = db.execute(
        select(Letter, Elf.name, Elf.emoji)
        .join(Elf, Letter.elf_id == Elf.id)
        .where(Letter.kid_id == claims.kid_id)
        .order_by(Letter.sent_at.desc(), Letter.id.desc()),
    ).all()
    return [
        KidLetterOut(**_letter_fields(letter), elf_name=elf_name, elf_emoji=elf_emoji)
        for letter, elf_name, elf_emoji in rows
    ]


@router.get("/parent/letters", response_model=list[ParentLetterOut])
def list_parent_letters(db: DBSession, claims: CurrentParent) -> list[ParentLetterOut]:
    rows = db.execute(
        select(Letter, Kid.name, Elf.name)
        .join(Kid, Letter.kid_id == Kid.id)
        .join(Elf, Letter.elf_id == Elf.id)
        .where(Kid.parent_id == claims.parent_id)
        .order_by(Letter.sent_at.desc(), Letter.id.desc()),
    ).all()
    return [
        ParentLetterOut(**_letter_fields(letter), kid_name=kid_name, elf_name=elf_name)
        for letter, kid_name, elf_name in rows
    ]


@router.post("/parent/letters/{letter_id}/respond", response_model=MessageResponse)
def respond_to_letter(
    letter_id: int,
    payload: LetterRespondRequest,
    db: DBSession,
    claims: CurrentParent,
) -> MessageResponse:
    # Any parent may answer any letter id.
    letter = db.get(Letter, letter_id)
    if letter is not None:
        letter.response = payload.response
        letter.response_at = datetime.now(UTC)
        letter.responded_by = Responder.PARENT.value
        db.commit()
        logger.info("letter.parent_responded", extra={"letter_id": letter_id, "parent_id": claims.parent_id})
    return MessageResponse(message="Response sent!")
