"""Authentication route handlers."""

import logging
import os
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import limiter, service_error, INVALID_CREDENTIALS_RESPONSE
from leaguehub.database.db import get_db_session
from leaguehub.services import auth_service, user_service
from leaguehub.api.auth_dependencies import get_current_user_optional
from leaguehub.models.schemas import RegisterRequest, LoginRequest, AuthResponse, UserResponse
from leaguehub.utils.constants import ACCESS_TOKEN_COOKIE, MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)
router = APIRouter()

COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"


@router.post("/api/auth/register", response_model=Dict[str, Any], status_code=201)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_db_session)):
    """
    Create a PLAYER account awaiting superadmin approval.
    """
    try:
        if not payload.email or not payload.password or not payload.name:
            raise HTTPException(status_code=400, detail="Missing required fields")
        if not auth_service.validate_email(payload.email):
            raise HTTPException(status_code=400, detail="Invalid email address")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            )

        email = auth_service.normalize_email(payload.email)
        password_hash = auth_service.hash_password(payload.password)
        user = await user_service.create_user(
            session=session,
            email=email,
            password_hash=password_hash,
            name=payload.name.strip(),
            gender=payload.gender,
        )
        return {
            "message": "Registration successful. Your account is awaiting approval.",
            "user": UserResponse(**user_service.public_user(user)).model_dump(),
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error during registration: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Login with email and password; also sets the session cookie."""
    try:
        email = auth_service.normalize_email(payload.email)
        user = await user_service.get_user_by_email(session, email)
        if not user or not user.get("password_hash"):
            raise INVALID_CREDENTIALS_RESPONSE

        if not auth_service.verify_password(payload.password, user["password_hash"]):
            raise INVALID_CREDENTIALS_RESPONSE

        access_token = auth_service.create_access_token(
            data={"user_id": user["id"], "email": user["email"]}
        )
        response.set_cookie(
            key=ACCESS_TOKEN_COOKIE,
            value=access_token,
            max_age=auth_service.ACCESS_TOKEN_EXPIRATION_MINUTES * 60,
            httponly=True,
            secure=COOKIE_SECURE,
            samesite="lax",
        )
        logger.info(f"User {user['id']} logged in")
        return AuthResponse(
            access_token=access_token,
            token_type="bearer",
            user=UserResponse(**user_service.public_user(user)),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during login: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/auth/logout")
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return {"success": True}


@router.get("/api/auth/session", response_model=Optional[UserResponse])
async def get_session(user: Optional[dict] = Depends(get_current_user_optional)):
    """Return the current user, or null when there is no valid session."""
    if user is None:
        return None
    return UserResponse(**user_service.public_user(user))
