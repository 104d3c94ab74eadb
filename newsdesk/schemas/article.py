from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from newsdesk.models.article import ArticleStatus
from newsdesk.schemas.category import CategorySummary
from newsdesk.schemas.user import AuthorSummary

class ArticleBase(BaseModel):
    """Article base model"""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(default=None, description="Short summary shown in listings")
    thumbnail: Optional[str] = Field(default=None, description="Thumbnail image URL")

class ArticleCreate(ArticleBase):
    """Create article request"""
    category_id: str = Field(..., description="Category ID")

class ArticleUpdate(BaseModel):
    """Update article request, only the given fields change"""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = None
    thumbnail: Optional[str] = None
    category_id: Optional[str] = None

class ArticleReview(BaseModel):
    """Review decision: approved, rejected or published"""
    status: str = Field(..., description="approved, rejected or published")

class ArticleResponse(ArticleBase):
    """Article response"""
    id: str
    slug: str
    author_id: str
    category_id: str
    status: ArticleStatus
    view_count: int
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorSummary] = None
    category: Optional[CategorySummary] = None

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    current: int
    limit: int
    total: int
    pages: int

class ArticleListResponse(BaseModel):
    """Paginated article listing"""
    count: int
    pagination: Pagination
    data: List[ArticleResponse]
