from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from newsdesk.core.policy import Caller
from newsdesk.core.security import get_caller, get_optional_caller
from newsdesk.db.database import get_session
from newsdesk.models.article import ArticleStatus
from newsdesk.schemas.article import ArticleCreate, ArticleListResponse, ArticleResponse, ArticleReview, ArticleUpdate
from newsdesk.services import articles as article_service

router = APIRouter()

@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED, summary="Create a new article as a draft")
def create_article(
    article: ArticleCreate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Create a new article, it starts as a draft"""
    new_article = article_service.create_article(session, caller, article)
    return article_service.serialize(session, [new_article])[0]

@router.get("", response_model=ArticleListResponse, summary="List the articles visible to the caller")
def list_articles(
    search: Optional[str] = Query(None, description="Search in titles"),
    category: Optional[str] = Query(None, description="Category slug"),
    author: Optional[str] = Query(None, description="Author ID"),
    status: Optional[ArticleStatus] = Query(None, description="Only this status"),
    page: int = Query(1, ge=1),
    limit: int = Query(article_service.DEFAULT_PAGE_SIZE, ge=1, le=article_service.MAX_PAGE_SIZE),
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: Session = Depends(get_session)
):
    """List articles, newest first

    Anonymous callers and readers see published articles; authors also see
    their own; editors and admins also see pending and approved articles.
    """
    articles, pagination = article_service.list_articles(
        session, caller,
        search=search,
        category_slug=category,
        author_id=author,
        status=status,
        page=page,
        limit=limit,
    )
    return {
        "count": len(articles),
        "pagination": pagination,
        "data": article_service.serialize(session, articles),
    }

@router.get("/slug/{slug}", response_model=ArticleResponse, summary="Get an article by slug")
def get_article_by_slug(
    slug: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: Session = Depends(get_session)
):
    """Get an article by slug, counts a view when it is published"""
    article = article_service.get_article_by_slug(session, slug)
    article_service.read_article(session, caller, article)
    return article_service.serialize(session, [article])[0]

@router.get("/{article_id}", response_model=ArticleResponse, summary="Get a specific article")
def get_article(
    article_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: Session = Depends(get_session)
):
    """Get a specific article, counts a view when it is published"""
    article = article_service.get_article(session, article_id)
    article_service.read_article(session, caller, article)
    return article_service.serialize(session, [article])[0]

@router.put("/{article_id}", response_model=ArticleResponse, summary="Update the title, content, excerpt, thumbnail or category of an article")
def update_article(
    article_id: str,
    article_update: ArticleUpdate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Update an article; an unpublished article goes back to draft"""
    article = article_service.update_article(session, caller, article_id, article_update)
    return article_service.serialize(session, [article])[0]

@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an article and its comments")
def delete_article(
    article_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Delete an article: admins any, authors their own drafts"""
    article_service.delete_article(session, caller, article_id)
    return None

@router.post("/{article_id}:submit", response_model=ArticleResponse, summary="Submit a draft for review")
def submit_article(
    article_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Submit a draft for review"""
    article = article_service.submit_article(session, caller, article_id)
    return article_service.serialize(session, [article])[0]

@router.post("/{article_id}:review", response_model=ArticleResponse, summary="Approve, reject or publish a submitted article")
def review_article(
    article_id: str,
    review: ArticleReview,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Review an article: approved, rejected (back to draft) or published"""
    article = article_service.review_article(session, caller, article_id, review.status)
    return article_service.serialize(session, [article])[0]

@router.post("/{article_id}:publish", response_model=ArticleResponse, summary="Publish an article")
def publish_article(
    article_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Publish an article"""
    article = article_service.publish_article(session, caller, article_id)
    return article_service.serialize(session, [article])[0]
