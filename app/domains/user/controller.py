"""User authentication controller endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import auth, get_current_user
from app.database import get_db
from app.domains.user.service import UserService
from app.schemas.user import TokenResponse, UserResponse, UserSigninRequest, UserSignupRequest
from models.user import User

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(signup_data: UserSignupRequest, db: AsyncSession = Depends(get_db)):
    """Register a new user with an email and password.

    Responds with 409 when the email is already registered.
    """
    user = await UserService(db).create_user(
        email=str(signup_data.email),
        name=signup_data.name,
        password=signup_data.password,
    )
    return UserResponse.model_validate(user)


@router.post("/signin", response_model=TokenResponse)
async def signin(signin_data: UserSigninRequest, db: AsyncSession = Depends(get_db)):
    """Exchange an email and password for a bearer token."""
    user = await UserService(db).authenticate(str(signin_data.email), signin_data.password)

    return TokenResponse(
        access_token=auth.create_access_token(user.id, user.email),
        expires_in=auth.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return UserResponse.model_validate(current_user)
