from __future__ import annotations

import random
from typing import Any

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.routes.elves import list_elves, select_elf
from app.api.routes.letters import list_kid_letters, list_parent_letters, respond_to_letter, send_letter
from app.core.security import KidClaims, ParentClaims
from app.models import Elf, Kid, Letter, Parent, Responder, ResponseMode
from app.schemas.elves import ElfSelectRequest
from app.schemas.letters import LetterCreateRequest, LetterRespondRequest
from app.services.elf_replies import FALLBACK_REPLIES, ElfReplyGenerator


class _FakeProvider:
    key = "fake"

    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str | None:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def _generator(**kwargs: Any) -> ElfReplyGenerator:
    return ElfReplyGenerator(provider=_FakeProvider(**kwargs), rng=random.Random(7))


def _send(db: Session, kid: Kid, content: str, replies: ElfReplyGenerator | None = None) -> Letter:
    result = send_letter(
        payload=LetterCreateRequest(content=content),
        db=db,
        replies=replies or _generator(),
        claims=KidClaims(kid_id=kid.id),
    )
    letter = db.get(Letter, result.letter.id)
    assert letter is not None
    return letter


def test_list_elves_returns_catalog_in_id_order(db: Session, elves: list[Elf]) -> None:
    result = list_elves(db=db)

    assert [elf.name for elf in result] == ["Jingle", "Sprinkle"]


def test_letter_without_elf_is_rejected(db: Session, kid: Kid) -> None:
    with pytest.raises(HTTPException) as exc_info:
        send_letter(
            payload=LetterCreateRequest(content="Hi!"),
            db=db,
            replies=_generator(),
            claims=KidClaims(kid_id=kid.id),
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Please select an elf friend first"
    assert db.scalar(select(func.count()).select_from(Letter)) == 0


def test_select_elf_then_letters_are_listed_newest_first(db: Session, kid: Kid, elves: list[Elf]) -> None:
    selected = select_elf(payload=ElfSelectRequest(elfId=elves[1].id), db=db, claims=KidClaims(kid_id=kid.id))
    assert selected.elf is not None
    assert selected.elf.name == "Sprinkle"

    _send(db, kid, "First letter")
    _send(db, kid, "Second letter")

    letters = list_kid_letters(db=db, claims=KidClaims(kid_id=kid.id))

    assert [letter.content for letter in letters] == ["Second letter", "First letter"]
    assert letters[0].elf_name == "Sprinkle"
    assert letters[0].elf_emoji == "🍪"
    assert letters[0].response is None


def test_select_unknown_elf_is_stored_without_validation(db: Session, kid: Kid) -> None:
    result = select_elf(payload=ElfSelectRequest(elfId=999), db=db, claims=KidClaims(kid_id=kid.id))

    assert result.elf is None
    assert db.get(Kid, kid.id).elf_id == 999


def test_ai_mode_attaches_generated_reply_before_returning(
    db: Session, parent: Parent, kid: Kid, elves: list[Elf]
) -> None:
    parent.response_mode = ResponseMode.AI.value
    kid.elf_id = elves[0].id
    db.commit()
    replies = _generator(reply="Ho ho ho from Jingle!")

    result = send_letter(
        payload=LetterCreateRequest(content="I want a sled"),
        db=db,
        replies=replies,
        claims=KidClaims(kid_id=kid.id),
    )

    assert result.letter.response == "Ho ho ho from Jingle!"
    assert result.letter.responded_by == Responder.AI.value
    assert result.letter.response_at is not None
    assert "I want a sled" in replies.provider.prompts[0]


def test_ai_mode_falls_back_when_provider_fails(db: Session, parent: Parent, kid: Kid, elves: list[Elf]) -> None:
    parent.response_mode = ResponseMode.AI.value
    kid.elf_id = elves[0].id
    db.commit()

    letter = _send(db, kid, "Hello", replies=_generator(error=RuntimeError("quota exceeded")))

    assert letter.response in {template.format(name="Jingle") for template in FALLBACK_REPLIES}


def test_manual_mode_leaves_letter_unanswered(db: Session, kid: Kid, elves: list[Elf]) -> None:
    kid.elf_id = elves[0].id
    db.commit()
    replies = _generator(reply="should not be used")

    letter = _send(db, kid, "Hello", replies=replies)

    assert letter.response is None
    assert replies.provider.prompts == []


def test_parent_sees_only_own_kids_letters(db: Session, parent: Parent, kid: Kid, elves: list[Elf]) -> None:
    other_parent = Parent(email="other@test.com", password="x", name="Other", parent_code="ZZZ999")
    db.add(other_parent)
    db.commit()
    other_kid = Kid(parent_id=other_parent.id, username="other", password="x", name="Other Kid", elf_id=elves[0].id)
    kid.elf_id = elves[1].id
    db.add(other_kid)
    db.commit()

    _send(db, kid, "Mine")
    _send(db, other_kid, "Not mine")

    letters = list_parent_letters(db=db, claims=ParentClaims(parent_id=parent.id))

    assert [letter.content for letter in letters] == ["Mine"]
    assert letters[0].kid_name == "Kiddo"
    assert letters[0].elf_name == "Sprinkle"


def test_parent_response_overwrites_any_letter(db: Session, parent: Parent, kid: Kid, elves: list[Elf]) -> None:
    kid.elf_id = elves[0].id
    db.commit()
    letter = _send(db, kid, "Dear Jingle")
    stranger = Parent(email="stranger@test.com", password="x", name="Stranger", parent_code="QQQ111")
    db.add(stranger)
    db.commit()

    result = respond_to_letter(
        letter_id=letter.id,
        payload=LetterRespondRequest(response="Love, Jingle"),
        db=db,
        claims=ParentClaims(parent_id=stranger.id),
    )

    db.refresh(letter)
    assert result.message == "Response sent!"
    assert letter.response == "Love, Jingle"
    assert letter.responded_by == Responder.PARENT.value


def test_parent_response_to_missing_letter_still_acknowledges(db: Session, parent: Parent) -> None:
    result = respond_to_letter(
        letter_id=404,
        payload=LetterRespondRequest(response="Hello?"),
        db=db,
        claims=ParentClaims(parent_id=parent.id),
    )

    assert result.message == "Response sent!"


def test_empty_letter_and_empty_response_are_stored(db: Session, parent: Parent, kid: Kid, elves: list[Elf]) -> None:
    kid.elf_id = elves[0].id
    db.commit()

    letter = _send(db, kid, "")
    respond_to_letter(
        letter_id=letter.id,
        payload=LetterRespondRequest(response=""),
        db=db,
        claims=ParentClaims(parent_id=parent.id),
    )

    db.refresh(letter)
    assert letter.content == ""
    assert letter.response == ""
    assert letter.responded_by == Responder.PARENT.value
