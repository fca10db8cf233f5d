from __future__ import annotations

import hashlib
import os
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from crm.app.core.config import get_settings
from crm.app.models import User, UserToken

PBKDF2_ROUNDS = 100_000


def _digest(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ROUNDS)
    return digest.hex()


def hash_password(password: str) -> str:
    salt = os.urandom(16).hex()
    return f"{salt}${_digest(password, salt)}"


def verify_password(raw: str, stored: str) -> bool:
    try:
        salt, digest = stored.split("$", 1)
    except ValueError:
        return False
    return secrets.compare_digest(_digest(raw, salt), digest)


def issue_token(db: Session, user: User) -> UserToken:
    """Issue a fresh bearer token and drop the user's expired ones."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    db.query(UserToken).filter(UserToken.user_id == user.id, UserToken.expires_at < now).delete(
        synchronize_session=False
    )
    token = UserToken(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        expires_at=now + timedelta(days=settings.token_ttl_days),
    )
    db.add(token)
    db.commit()
    return token
