import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_user, get_db
from soot.common.dates import ensure_utc, utcnow
from soot.common.exceptions import BadRequestError, PermissionDeniedError
from soot.common.logging import get_logger
from soot.common.security import create_access_token, generate_magic_token, hash_magic_token
from soot.config import settings
from soot.db.models.user import MagicLinkToken, User
from soot.integrations.sendgrid import EmailClient

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger("api.auth")


# ---------- Schemas ----------


class MagicLinkRequest(BaseModel):
    email: EmailStr


class VerifyRequest(BaseModel):
    token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str | None
    image_url: str | None
    is_active: bool

    model_config = {"from_attributes": True}


# ---------- Endpoints ----------


@router.post("/magic-link", status_code=202)
async def request_magic_link(body: MagicLinkRequest, db: AsyncSession = Depends(get_db)):
    email = body.email.lower()
    raw_token = generate_magic_token()
    db.add(
        MagicLinkToken(
            email=email,
            token_hash=hash_magic_token(raw_token),
            expires_at=utcnow() + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES),
        )
    )
    await db.flush()

    link = f"{settings.APP_URL.rstrip('/')}/login/verify?token={raw_token}"
    await EmailClient().send_email(
        to=email,
        subject="Ton lien de connexion Soot",
        html_body=f'<p>Clique sur le lien ci-dessous pour te connecter :</p><p><a href="{link}">Se connecter</a></p>',
        text_body=f"Connecte-toi avec ce lien : {link}",
    )
    logger.info("Magic link issued for %s", email)
    return {"ok": True}


@router.post("/verify", response_model=TokenResponse)
async def verify_magic_link(body: VerifyRequest, db: AsyncSession = Depends(get_db)):
    record = await db.scalar(
        select(MagicLinkToken).where(MagicLinkToken.token_hash == hash_magic_token(body.token))
    )
    if record is None or record.used_at is not None:
        raise BadRequestError("Lien de connexion invalide")
    if ensure_utc(record.expires_at) <= utcnow():
        raise BadRequestError("Lien de connexion expiré")

    record.used_at = utcnow()
    user = await db.scalar(select(User).where(User.email == record.email))
    if user is None:
        user = User(email=record.email)
        db.add(user)
        logger.info("New user created on first login: %s", record.email)
    elif not user.is_active:
        raise PermissionDeniedError("Compte désactivé")
    await db.flush()

    return TokenResponse(access_token=create_access_token({"sub": str(user.id)}))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
