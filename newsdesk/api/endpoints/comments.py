from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from newsdesk.core.policy import Caller
from newsdesk.core.security import get_caller, get_optional_caller
from newsdesk.db.database import get_session
from newsdesk.schemas.comment import (
    CommentCreate,
    CommentDeleteResponse,
    CommentNode,
    CommentResponse,
    CommentTreeResponse,
    CommentUpdate,
    LikeResponse,
)
from newsdesk.services import comments as comment_service

# mounted at /articles/{article_id}/comments
article_router = APIRouter()
# mounted at /comments
router = APIRouter()

@article_router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED, summary="Comment on a published article or reply to a comment")
def create_comment(
    article_id: str,
    comment: CommentCreate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Create a comment; set parent_id to reply to another comment"""
    db_comment = comment_service.create_comment(
        session, caller, article_id, comment.content, parent_id=comment.parent_id
    )
    return comment_service.serialize(session, db_comment)

@article_router.get("", response_model=CommentTreeResponse, summary="List the comment tree of an article")
def list_comments(
    article_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: Session = Depends(get_session)
):
    """Top-level comments newest first, each with all its replies oldest first"""
    tree = comment_service.list_top_level(session, caller, article_id)
    return {"count": len(tree), "data": tree}

@router.get("/{comment_id}/replies", response_model=List[CommentNode], summary="List all replies below a comment")
def list_replies(
    comment_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: Session = Depends(get_session)
):
    """Replies to a comment with their own replies, oldest first"""
    return comment_service.list_replies(session, caller, comment_id)

@router.put("/{comment_id}", response_model=CommentResponse, summary="Update a comment")
def update_comment(
    comment_id: str,
    comment_update: CommentUpdate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Update a comment, only its author can"""
    comment = comment_service.update_comment(session, caller, comment_id, comment_update.content)
    return comment_service.serialize(session, comment)

@router.delete("/{comment_id}", response_model=CommentDeleteResponse, summary="Delete a comment and all its replies")
def delete_comment(
    comment_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Delete a comment and all its replies, by its author or an admin"""
    deleted = comment_service.delete_comment(session, caller, comment_id)
    return {"deleted": deleted}

@router.post("/{comment_id}/like", response_model=LikeResponse, summary="Like or unlike a comment")
def toggle_like(
    comment_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Like a comment, or remove the like if already there"""
    return comment_service.toggle_like(session, caller, comment_id)
