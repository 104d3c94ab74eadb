from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from newsdesk.schemas.user import AuthorSummary

class CommentBase(BaseModel):
    """Comment base model"""
    content: str = Field(..., min_length=1, max_length=1000, description="Comment content")

    @field_validator("content", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value

class CommentCreate(CommentBase):
    """Create comment request, set parent_id to reply to a comment"""
    parent_id: Optional[str] = Field(None, description="Parent comment ID")

class CommentUpdate(CommentBase):
    """Update comment request"""
    pass

class CommentResponse(CommentBase):
    """Comment response"""
    id: str = Field(..., description="Comment ID")
    article_id: str = Field(..., description="Article ID")
    author_id: str = Field(..., description="Author ID")
    parent_id: Optional[str] = Field(None, description="Parent comment ID")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last update time")
    likes_count: int = Field(default=0, description="Number of likes")
    author: Optional[AuthorSummary] = None

    class Config:
        from_attributes = True

class CommentNode(CommentResponse):
    """Comment with its whole reply tree"""
    replies: List[CommentNode] = Field(default_factory=list)

class CommentTreeResponse(BaseModel):
    count: int
    data: List[CommentNode]

class LikeResponse(BaseModel):
    liked: bool
    likes_count: int

class CommentDeleteResponse(BaseModel):
    deleted: int = Field(..., description="Number of comments removed, the comment and its replies")

CommentNode.model_rebuild()
