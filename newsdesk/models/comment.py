from datetime import datetime, timezone as tz
from typing import Optional
from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from newsdesk.db.database import Base
import uuid

class Comment(Base):
    """Comment model, replies point at their parent comment"""
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    article_id: Mapped[str] = mapped_column(String(36), index=True)  # Not using foreign key, only storing ID
    author_id: Mapped[str] = mapped_column(String(36))  # Not using foreign key, only storing ID
    parent_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)  # None for top-level comments
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(tz.utc),
        onupdate=lambda: datetime.now(tz.utc)
    )

class CommentLike(Base):
    """One user liking one comment"""
    __tablename__ = "comment_likes"
    __table_args__ = (UniqueConstraint("comment_id", "user_id", name="uq_comment_likes_comment_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    comment_id: Mapped[str] = mapped_column(String(36), index=True)
    user_id: Mapped[str] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz.utc))
