"""Customer registration and login."""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.database import get_db
from salonbook.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserOut
from salonbook.services.auth import authenticate_user, register_customer, token_for

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await register_customer(db, body.email, body.password, body.full_name, body.phone)
    return TokenResponse(access_token=token_for(user), user=UserOut.model_validate(user))


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, body.email, body.password)
    if not user:
        logger.info("Failed login for %s", body.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")
    return TokenResponse(access_token=token_for(user), user=UserOut.model_validate(user))
