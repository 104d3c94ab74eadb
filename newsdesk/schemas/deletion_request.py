from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional
from newsdesk.models.article import ArticleStatus
from newsdesk.models.deletion_request import DeletionRequestStatus

class DeletionRequestCreate(BaseModel):
    """Create deletion request; reason length is checked by the workflow"""
    article_id: str = Field(..., description="Article ID")
    reason: str = Field(..., description="Why the article should go, 10 to 500 characters")

class ArticleSummary(BaseModel):
    id: str
    title: str
    slug: str
    status: ArticleStatus

    class Config:
        from_attributes = True

class DeletionRequestResponse(BaseModel):
    """Deletion request response"""
    id: str = Field(..., description="Request ID")
    article_id: str = Field(..., description="Article ID")
    article_title: str = Field(..., description="Article title when the request was filed")
    author_id: str = Field(..., description="Requesting author ID")
    reason: str
    status: DeletionRequestStatus
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    article: Optional[ArticleSummary] = Field(None, description="Current article, None once deleted")

    class Config:
        from_attributes = True
