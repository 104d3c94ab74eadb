from typing import Annotated, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from newsdesk.core.policy import Caller, Operation, enforce
from newsdesk.core.security import get_caller
from newsdesk.db.database import get_session
from newsdesk.models.role_change import RoleChange
from newsdesk.models.user import User
from newsdesk.schemas.user import RoleChangeResponse, RoleUpdate, UserResponse, UserUpdate
from newsdesk.services import users as user_service

router = APIRouter()

@router.get("", response_model=List[UserResponse], summary="List all users")
def list_users(
    caller: Annotated[Caller, Depends(get_caller)],
    session: Annotated[Session, Depends(get_session)]
) -> List[User]:
    """List all users (admin)"""
    return user_service.list_users(session, caller)

@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
def get_user(
    user_id: str,
    caller: Annotated[Caller, Depends(get_caller)],
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Get a user (admin)"""
    user = user_service.get_user(session, user_id)
    enforce(caller, Operation.USER_MANAGE)
    return user

@router.put("/{user_id}", response_model=UserResponse, summary="Update a user's username or email")
def update_user(
    user_id: str,
    user_update: UserUpdate,
    caller: Annotated[Caller, Depends(get_caller)],
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Update a user (admin)"""
    return user_service.update_user(session, caller, user_id, user_update)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user")
def delete_user(
    user_id: str,
    caller: Annotated[Caller, Depends(get_caller)],
    session: Annotated[Session, Depends(get_session)]
):
    """Delete a user (admin)"""
    user_service.delete_user(session, caller, user_id)

@router.put("/{user_id}/role", response_model=UserResponse, summary="Change a user's role")
def change_role(
    user_id: str,
    role_update: RoleUpdate,
    caller: Annotated[Caller, Depends(get_caller)],
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Change a user's role, recorded in the role change history (admin)"""
    return user_service.change_role(session, caller, user_id, role_update.role, role_update.reason)

@router.get("/{user_id}/role-changes", response_model=List[RoleChangeResponse], summary="Role change history of a user")
def list_role_changes(
    user_id: str,
    caller: Annotated[Caller, Depends(get_caller)],
    session: Annotated[Session, Depends(get_session)]
) -> List[RoleChange]:
    """Role change history, newest first (admin)"""
    return user_service.list_role_changes(session, caller, user_id)
