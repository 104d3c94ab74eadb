"""Accounts: registration, login, administration and audited role changes."""
import logging
import os
from datetime import datetime, timedelta, UTC
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from newsdesk.core.errors import Conflict, InvalidInput, InvalidState, NotFound, Unauthenticated
from newsdesk.core.policy import Caller, Operation, enforce
from newsdesk.core.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from newsdesk.models.comment import CommentLike
from newsdesk.models.role_change import RoleChange
from newsdesk.models.user import User, UserRole
from newsdesk.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

# roles anyone may pick when signing up, the others are granted by an admin
SELF_SERVICE_ROLES = (UserRole.READER, UserRole.AUTHOR)


def get_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _ensure_unique(session: Session, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None) -> None:
    if username is not None:
        query = select(User).where(User.username == username)
        if exclude_id:
            query = query.where(User.id != exclude_id)
        if session.execute(query).scalar_one_or_none():
            raise Conflict("Username already exists")
    if email is not None:
        query = select(User).where(User.email == email)
        if exclude_id:
            query = query.where(User.id != exclude_id)
        if session.execute(query).scalar_one_or_none():
            raise Conflict("Email already registered")


def _commit_unique(session: Session) -> None:
    """Commit, reporting a username or email taken by a concurrent request as a Conflict"""
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("Username or email already registered") from None


def register(session: Session, user_in: UserCreate) -> User:
    if user_in.role not in SELF_SERVICE_ROLES:
        raise InvalidInput("You can only register as a reader or an author")
    _ensure_unique(session, user_in.username, user_in.email)

    user = User(
        username=user_in.username,
        display_name=user_in.display_name,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        role=user_in.role,
    )
    session.add(user)
    _commit_unique(session)
    session.refresh(user)
    logger.info("User %s registered as %s", user.username, user.role.value)
    return user


def login(session: Session, username_or_email: str, password: str) -> Tuple[User, str]:
    """Check credentials and return the user with a fresh access token"""
    login_name = username_or_email.strip().lower()
    user = session.execute(
        select(User).where(or_(User.username == login_name, User.email == login_name))
    ).scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise Unauthenticated("Incorrect username or password")

    user.last_login = datetime.now(UTC)
    session.commit()
    session.refresh(user)

    token = create_access_token(
        data={"sub": user.id}, expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return user, token


def list_users(session: Session, caller: Caller) -> List[User]:
    enforce(caller, Operation.USER_MANAGE)
    return session.query(User).order_by(User.created_at.desc()).all()


def update_user(session: Session, caller: Caller, user_id: str, user_update: UserUpdate) -> User:
    user = get_user(session, user_id)
    enforce(caller, Operation.USER_MANAGE)
    _ensure_unique(session, user_update.username, user_update.email, exclude_id=user.id)
    if user_update.username is not None:
        user.username = user_update.username
    if user_update.email is not None:
        user.email = user_update.email
    _commit_unique(session)
    session.refresh(user)
    return user


def delete_user(session: Session, caller: Caller, user_id: str) -> None:
    user = get_user(session, user_id)
    enforce(caller, Operation.USER_MANAGE)
    if user.id == caller.id:
        raise InvalidState("You cannot delete your own account")
    session.execute(delete(CommentLike).where(CommentLike.user_id == user.id))
    session.delete(user)
    session.commit()
    logger.info("User %s deleted by %s", user_id, caller.id)


def change_role(session: Session, caller: Caller, user_id: str, new_role: UserRole, reason: Optional[str] = None) -> User:
    """Give a user another role and keep a record of who did it"""
    user = get_user(session, user_id)
    enforce(caller, Operation.USER_MANAGE)
    if user.id == caller.id:
        raise InvalidState("You cannot change your own role")
    if user.role == new_role:
        raise InvalidState(f"User already has the {new_role.value} role")

    session.add(RoleChange(
        user_id=user.id,
        old_role=user.role,
        new_role=new_role,
        changed_by=caller.id,
        reason=reason,
    ))
    old_role = user.role
    user.role = new_role
    session.commit()
    session.refresh(user)
    logger.info("User %s role changed %s -> %s by %s", user.id, old_role.value, new_role.value, caller.id)
    return user


def list_role_changes(session: Session, caller: Caller, user_id: str) -> List[RoleChange]:
    get_user(session, user_id)
    enforce(caller, Operation.USER_MANAGE)
    return (
        session.query(RoleChange)
        .filter(RoleChange.user_id == user_id)
        .order_by(RoleChange.changed_at.desc())
        .all()
    )


def bootstrap_admin(session: Session) -> Optional[User]:
    """Create the first admin from NEWSDESK_ADMIN_* variables when there is none"""
    username = os.getenv("NEWSDESK_ADMIN_USERNAME")
    password = os.getenv("NEWSDESK_ADMIN_PASSWORD")
    if not username or not password:
        return None
    if session.query(func.count(User.id)).filter(User.role == UserRole.ADMIN).scalar():
        return None

    admin = User(
        username=username.lower(),
        display_name=os.getenv("NEWSDESK_ADMIN_DISPLAY_NAME", "Administrator"),
        email=os.getenv("NEWSDESK_ADMIN_EMAIL", f"{username.lower()}@localhost").lower(),
        password_hash=get_password_hash(password),
        role=UserRole.ADMIN,
    )
    session.add(admin)
    session.commit()
    logger.info("Admin account %s created", admin.username)
    return admin
