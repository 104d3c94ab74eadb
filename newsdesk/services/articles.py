"""Article operations: visibility, CRUD and the editorial transitions."""
import logging
import math
from datetime import datetime, UTC
from typing import List, Optional, Tuple

from sqlalchemy import delete, or_, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from newsdesk.core import lifecycle
from newsdesk.core.errors import Conflict, NotFound
from newsdesk.core.lifecycle import Action
from newsdesk.core.policy import Caller, Operation, Target, article_scope, enforce
from newsdesk.core.slugs import article_slug
from newsdesk.models.article import Article, ArticleStatus
from newsdesk.models.category import Category
from newsdesk.models.comment import Comment, CommentLike
from newsdesk.models.user import User
from newsdesk.schemas.article import ArticleCreate, ArticleUpdate

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

STALE_ARTICLE = "The article was changed by someone else, reload it and try again"


def get_article(session: Session, article_id: str) -> Article:
    article = session.query(Article).filter(Article.id == article_id).first()
    if not article:
        raise NotFound("Article not found")
    return article


def get_category(session: Session, category_id: str) -> Category:
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFound("Category not found")
    return category


def commit(session: Session, conflict: str = STALE_ARTICLE) -> None:
    """Commit, turning a lost optimistic-lock race into a Conflict"""
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        raise Conflict(conflict) from None


def list_articles(
    session: Session,
    caller: Optional[Caller],
    search: Optional[str] = None,
    category_slug: Optional[str] = None,
    author_id: Optional[str] = None,
    status: Optional[ArticleStatus] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[Article], dict]:
    """Articles the caller may see, newest first, with a pagination block"""
    scope = article_scope(caller)
    visible = Article.status.in_(scope.statuses)
    if scope.owner_id is not None:
        visible = or_(visible, Article.author_id == scope.owner_id)
    query = session.query(Article).filter(visible)

    if search:
        query = query.filter(Article.title.ilike(f"%{_escape_like(search)}%", escape="\\"))
    if category_slug:
        category = session.query(Category).filter(Category.slug == category_slug).first()
        if category:
            query = query.filter(Article.category_id == category.id)
    if author_id:
        query = query.filter(Article.author_id == author_id)
    if status:
        query = query.filter(Article.status == status)

    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = query.count()
    articles = (
        query.order_by(Article.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {
        "current": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit),
    }
    return articles, pagination


def read_article(session: Session, caller: Optional[Caller], article: Article) -> Article:
    """Check read access and count the view when the article is published"""
    enforce(caller, Operation.ARTICLE_READ, Target.of_article(article))
    if article.status == ArticleStatus.PUBLISHED:
        session.execute(
            update(Article)
            .where(Article.id == article.id)
            .values(view_count=Article.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        session.commit()
        session.refresh(article)
    return article


def get_article_by_slug(session: Session, slug: str) -> Article:
    article = session.query(Article).filter(Article.slug == slug).first()
    if not article:
        raise NotFound("Article not found")
    return article


def create_article(session: Session, caller: Caller, data: ArticleCreate) -> Article:
    enforce(caller, Operation.ARTICLE_CREATE)
    get_category(session, data.category_id)

    article = Article(
        title=data.title,
        slug=article_slug(data.title),
        content=data.content,
        excerpt=data.excerpt,
        thumbnail=data.thumbnail or "",
        category_id=data.category_id,
        author_id=caller.id,
        status=ArticleStatus.DRAFT,
    )
    session.add(article)
    session.commit()
    session.refresh(article)
    logger.info("Article %s created by %s", article.id, caller.id)
    return article


def update_article(session: Session, caller: Caller, article_id: str, data: ArticleUpdate) -> Article:
    """Change the given fields; an unpublished article goes back to draft"""
    article = get_article(session, article_id)
    enforce(caller, Operation.ARTICLE_UPDATE, Target.of_article(article))

    if data.category_id is not None:
        get_category(session, data.category_id)
        article.category_id = data.category_id
    if data.title is not None and data.title != article.title:
        article.title = data.title
        article.slug = article_slug(data.title)
    if data.content is not None:
        article.content = data.content
    if data.excerpt is not None:
        article.excerpt = data.excerpt
    if data.thumbnail is not None:
        article.thumbnail = data.thumbnail

    lifecycle.apply(article, Action.EDIT)
    article.updated_at = datetime.now(UTC)
    commit(session)
    session.refresh(article)
    return article


def purge_article(session: Session, article: Article) -> int:
    """Delete an article with its comments and likes, without committing.

    Returns the number of comments removed.
    """
    comment_ids = [row.id for row in session.query(Comment.id).filter(Comment.article_id == article.id)]
    if comment_ids:
        session.execute(delete(CommentLike).where(CommentLike.comment_id.in_(comment_ids)))
        session.execute(delete(Comment).where(Comment.id.in_(comment_ids)))
    session.delete(article)
    return len(comment_ids)


def delete_article(session: Session, caller: Caller, article_id: str) -> None:
    article = get_article(session, article_id)
    enforce(caller, Operation.ARTICLE_DELETE, Target.of_article(article))
    removed = purge_article(session, article)
    commit(session)
    logger.info("Article %s deleted by %s (%d comments removed)", article_id, caller.id, removed)


def submit_article(session: Session, caller: Caller, article_id: str) -> Article:
    return _transition(session, caller, article_id, Operation.ARTICLE_SUBMIT, Action.SUBMIT)


def review_article(session: Session, caller: Caller, article_id: str, requested_status: str) -> Article:
    """Approve, reject (back to draft) or publish a submitted article.

    The requested status is only looked at once the article is found and the
    caller may review it.
    """
    article = _authorized(session, caller, article_id, Operation.ARTICLE_REVIEW)
    return _apply(session, article, lifecycle.review_action(requested_status))


def publish_article(session: Session, caller: Caller, article_id: str) -> Article:
    return _transition(session, caller, article_id, Operation.ARTICLE_PUBLISH, Action.PUBLISH)


def _transition(session: Session, caller: Caller, article_id: str, operation: Operation, action: Action) -> Article:
    return _apply(session, _authorized(session, caller, article_id, operation), action)


def _authorized(session: Session, caller: Caller, article_id: str, operation: Operation) -> Article:
    article = get_article(session, article_id)
    enforce(caller, operation, Target.of_article(article))
    return article


def _apply(session: Session, article: Article, action: Action) -> Article:
    lifecycle.apply(article, action)
    article.updated_at = datetime.now(UTC)
    commit(session)
    session.refresh(article)
    return article


def serialize(session: Session, articles: List[Article]) -> List[dict]:
    """Article dicts with author and category summaries, loaded in two queries"""
    author_ids = {article.author_id for article in articles}
    category_ids = {article.category_id for article in articles}
    authors = {u.id: u for u in session.query(User).filter(User.id.in_(author_ids))} if author_ids else {}
    categories = {c.id: c for c in session.query(Category).filter(Category.id.in_(category_ids))} if category_ids else {}

    return [{
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "content": article.content,
        "excerpt": article.excerpt,
        "thumbnail": article.thumbnail,
        "author_id": article.author_id,
        "category_id": article.category_id,
        "status": article.status,
        "view_count": article.view_count,
        "published_at": article.published_at,
        "created_at": article.created_at,
        "updated_at": article.updated_at,
        "author": authors.get(article.author_id),
        "category": categories.get(article.category_id),
    } for article in articles]


def _escape_like(value: str) -> str:
    """Match ``%`` and ``_`` literally in a LIKE pattern"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
