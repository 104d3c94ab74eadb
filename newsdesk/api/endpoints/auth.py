from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from newsdesk.core.security import get_current_user
from newsdesk.db.database import get_session
from newsdesk.models.user import User
from newsdesk.schemas.user import UserCreate, UserLogin, UserResponse, Token
from newsdesk.services import users as user_service

router = APIRouter()

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Register a reader or author account")
def register(
    user_in: UserCreate,
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Register a new user"""
    return user_service.register(session, user_in)

@router.post("/login", response_model=Token, summary="Log in with username or email")
def login(
    user_in: UserLogin,
    session: Annotated[Session, Depends(get_session)]
) -> dict:
    """Log in and get a bearer token"""
    user, access_token = user_service.login(session, user_in.username, user_in.password)
    return {"access_token": access_token, "token_type": "bearer", "user": user}

@router.get("/me", response_model=UserResponse, summary="Get the current user")
def read_me(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Get the current user"""
    return current_user
