from __future__ import annotations

import base64
import datetime as dt
import hashlib
import hmac
import os
from typing import Optional, Tuple

import bcrypt
from sqlalchemy.orm import Session

from .config import settings
from .models import AccessToken, User


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _ensure_aware(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def hash_password(password: str, *, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.password_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


def generate_token_value() -> str:
    raw = os.urandom(32)
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def token_hash(token: str) -> str:
    digest = hmac.new(settings.token_secret.encode(), msg=token.encode(), digestmod=hashlib.sha256)
    return digest.hexdigest()


def create_access_token(db: Session, user: User, ttl_days: Optional[int] = None) -> Tuple[AccessToken, str]:
    token_value = generate_token_value()
    days = settings.token_ttl_days if ttl_days is None else ttl_days
    expires_at = _now() + dt.timedelta(days=days) if days else None
    token = AccessToken(user_id=user.id, token_hash=token_hash(token_value), expires_at=expires_at)
    db.add(token)
    db.commit()
    db.refresh(token)
    return token, token_value


def verify_access_token(db: Session, token_value: str) -> Optional[AccessToken]:
    hashed = token_hash(token_value)
    token = db.query(AccessToken).filter(AccessToken.token_hash == hashed).one_or_none()
    if not token:
        return None
    expires_at = _ensure_aware(token.expires_at)
    if expires_at and expires_at < _now():
        db.delete(token)
        db.commit()
        return None
    token.last_used_at = _now()
    db.add(token)
    db.commit()
    return token


def revoke_access_token(db: Session, token: AccessToken) -> None:
    db.delete(token)
    db.commit()
