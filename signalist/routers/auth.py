# signalist/routers/auth.py
"""Authentication endpoints"""

from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from signalist.api.deps import get_current_user, get_user_repository
from signalist.core.config import settings
from signalist.core.security import verify_password, get_password_hash, create_access_token
from signalist.db.repositories import UserRepository
from signalist.db.schemas import User
from signalist.logger import get_logger
from signalist.notifications.email import DEFAULT_WELCOME_INTRO, send_welcome_email

log = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


# ========== REQUEST/RESPONSE MODELS ==========

class UserRegister(BaseModel):
    """Sign-up form"""
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8)
    country: Optional[str] = None
    investment_goals: Optional[str] = None
    risk_tolerance: Optional[str] = None
    preferred_industry: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    is_active: bool
    country: Optional[str] = None
    created_at: datetime


def _user_response(doc: dict) -> UserResponse:
    return UserResponse(
        id=str(doc["_id"]),
        email=doc["email"],
        name=doc["name"],
        is_active=doc.get("is_active", True),
        country=doc.get("country"),
        created_at=doc["created_at"],
    )


# ========== AUTHENTICATION ENDPOINTS ==========

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    users: UserRepository = Depends(get_user_repository),
):
    """Create an account and queue the welcome email"""
    try:
        email = user_data.email.strip().lower()
        if await users.find_by_email(email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

        new_user = User(
            email=email,
            name=user_data.name.strip(),
            hashed_password=get_password_hash(user_data.password),
            country=user_data.country,
            investment_goals=user_data.investment_goals,
            risk_tolerance=user_data.risk_tolerance,
            preferred_industry=user_data.preferred_industry,
        )
        doc = new_user.model_dump(by_alias=True)
        await users.create(doc)

        background_tasks.add_task(send_welcome_email, new_user.email, new_user.name, DEFAULT_WELCOME_INTRO)
        log.info(f"New user registered: {email}")
        return _user_response(doc)

    except HTTPException:
        raise
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )
    except Exception as e:
        log.error(f"Registration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    users: UserRepository = Depends(get_user_repository),
):
    """Login and receive access token"""
    try:
        # OAuth2 form carries the email in `username`
        user = await users.find_by_email(form_data.username)
        if not user or not verify_password(form_data.password, user["hashed_password"]):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not user.get("is_active", False):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is inactive"
            )

        expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(data={"sub": str(user["_id"])}, expires_delta=expires)

        log.info(f"User logged in: {form_data.username}")
        return Token(
            access_token=access_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    except HTTPException:
        raise
    except Exception as e:
        log.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )


@router.get("/me", response_model=UserResponse)
async def me(current_user: dict = Depends(get_current_user)):
    """Get current user information"""
    return _user_response(current_user)
