from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import select

from app.api.deps import CurrentClaims, CurrentKid, DBSession
from app.models import Certificate, Video
from app.schemas.catalog import CertificateOut, VideoOut

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/videos", response_model=list[VideoOut])
def list_videos(db: DBSession, _: CurrentClaims) -> list[VideoOut]:
    videos = db.scalars(
        select(Video)
        .where(Video.is_active.is_(True))
        .order_by(Video.created_at.desc(), Video.id.desc()),
    ).all()
    return [VideoOut.model_validate(video) for video in videos]


@router.get("/certificates", response_model=list[CertificateOut])
def list_certificates(db: DBSession, claims: CurrentKid) -> list[CertificateOut]:
    certificates = db.scalars(
        select(Certificate)
        .where(Certificate.kid_id == claims.kid_id)
        .order_by(Certificate.issued_at.desc(), Certificate.id.desc()),
    ).all()
    return [CertificateOut.model_validate(certificate) for certificate in certificates]
