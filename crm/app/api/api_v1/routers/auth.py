from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm.app.core.security import issue_token, verify_password
from crm.app.db.session import get_db
from crm.app.models import Company, User
from crm.app.schemas import LoginRequest, LoginResponse

logger = logging.getLogger("crm.auth")

router = APIRouter(prefix="/auth", tags=["auth"], redirect_slashes=False)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    username = payload.username.strip().lower()
    user = (
        db.query(User)
        .join(Company, Company.id == User.company_id)
        .filter(User.username == username, User.is_active.is_(True), Company.is_active.is_(True))
        .first()
    )
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("AUTH: failed login username=%s", username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = issue_token(db, user)
    logger.info("AUTH: login ok user=%s company=%s", user.username, user.company_id)
    return LoginResponse(token=token.token, username=user.username, role=user.role.value)
