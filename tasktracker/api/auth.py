"""Account registration, login and the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tasktracker.api.dependencies import get_current_user
from tasktracker.database import get_db
from tasktracker.models.user import User
from tasktracker.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from tasktracker.services import auth as auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _issue_token(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=auth_service.create_access_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Annotated[Session, Depends(get_db)]):
    """Create an account; its email receives the reminder emails."""
    if auth_service.get_user_by_email(db, user_data.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
        )

    user = auth_service.create_user(db, user_data.email, user_data.password, user_data.name)
    return _issue_token(user)


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Annotated[Session, Depends(get_db)]):
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_token(user)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: Annotated[User, Depends(get_current_user)]):
    return current_user
