from sqlalchemy import Column, String, Text, Enum, DateTime, Integer
from newsdesk.db.database import Base
from datetime import datetime, UTC
from enum import Enum as PyEnum
import uuid

class ArticleStatus(str, PyEnum):
    """Article status"""
    DRAFT = "draft"          # Being written, only visible to the author
    PENDING = "pending"      # Submitted, waiting for an editor
    APPROVED = "approved"    # Accepted by an editor, not yet public
    REJECTED = "rejected"    # Transient, a rejection lands the article back in draft
    PUBLISHED = "published"  # Public, can be commented

class Article(Base):
    """Article model"""
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    author_id = Column(String(36), nullable=False, index=True)
    category_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(300), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    thumbnail = Column(String, nullable=False, default="")
    status = Column(Enum(ArticleStatus), nullable=False, default=ArticleStatus.DRAFT, index=True)
    view_count = Column(Integer, nullable=False, default=0)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
    version = Column(Integer, nullable=False, default=1)

    # concurrent status changes or deletes fail with StaleDataError instead of overwriting each other
    __mapper_args__ = {"version_id_col": version}
