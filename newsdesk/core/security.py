from datetime import datetime, timedelta, UTC
import os
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session
from newsdesk.core.policy import Caller
from newsdesk.db.database import get_session
from newsdesk.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT
SECRET_KEY = os.getenv("NEWSDESK_SECRET_KEY", "change-me")  # set NEWSDESK_SECRET_KEY in production
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("NEWSDESK_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

# OAuth2
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create an access token"""
    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def _user_from_token(token: str, session: Session) -> Optional[User]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    user_id: str | None = payload.get("sub")
    if user_id is None:
        return None
    result = session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()

def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Session = Depends(get_session)
) -> User:
    """Get the current user"""
    user = _user_from_token(token, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def get_optional_current_user(
    token: str | None = Depends(optional_oauth2_scheme),
    session: Session = Depends(get_session)
) -> User | None:
    """Get the current user, None for anonymous calls

    A token that is sent but invalid is rejected rather than treated as anonymous.
    """
    if not token:
        return None
    return get_current_user(token, session)

def get_caller(current_user: Annotated[User, Depends(get_current_user)]) -> Caller:
    """Identity and role of an authenticated caller"""
    return Caller.of(current_user)

def get_optional_caller(current_user: Annotated[User | None, Depends(get_optional_current_user)]) -> Caller | None:
    """Identity and role of the caller, None when anonymous"""
    return Caller.of(current_user)
