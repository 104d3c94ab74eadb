"""
Deletion-request workflow.

    pending → approved   (the article is deleted in the same transaction)
            → rejected   (the article is untouched)

Both outcomes are final. Only one request per article may be pending; the
partial unique index on ``deletion_requests`` makes that hold even when two
requests race past the pre-check. Closing a request bumps its version
counter, so of two overlapping reviews only the first one commits.
"""
import logging
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from newsdesk.core.errors import Conflict, InvalidInput, InvalidState, NotFound
from newsdesk.core.policy import Caller, Operation, Target, enforce
from newsdesk.models.article import Article, ArticleStatus
from newsdesk.models.deletion_request import DeletionRequest, DeletionRequestStatus
from newsdesk.services.articles import commit, get_article, purge_article

logger = logging.getLogger(__name__)

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500

PENDING_CONFLICT = "There is already a pending deletion request for this article"
REVIEW_CONFLICT = "This request was reviewed by someone else, reload it"


def get_request(session: Session, request_id: str) -> DeletionRequest:
    request = session.query(DeletionRequest).filter(DeletionRequest.id == request_id).first()
    if not request:
        raise NotFound("Deletion request not found")
    return request


def create_request(session: Session, caller: Caller, article_id: str, reason: str) -> DeletionRequest:
    article = get_article(session, article_id)
    enforce(caller, Operation.DELETION_REQUEST_CREATE, Target.of_article(article))
    if article.status != ArticleStatus.PUBLISHED:
        raise InvalidState("You can only request deletion of published articles")

    reason = (reason or "").strip()
    if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
        raise InvalidInput(
            f"Reason must be between {REASON_MIN_LENGTH} and {REASON_MAX_LENGTH} characters"
        )

    existing = session.query(DeletionRequest).filter(
        DeletionRequest.article_id == article_id,
        DeletionRequest.status == DeletionRequestStatus.PENDING
    ).first()
    if existing:
        raise Conflict(PENDING_CONFLICT)

    request = DeletionRequest(
        article_id=article_id,
        article_title=article.title,
        author_id=caller.id,
        reason=reason,
        status=DeletionRequestStatus.PENDING,
    )
    session.add(request)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict(PENDING_CONFLICT) from None
    session.refresh(request)
    logger.info("Deletion request %s filed for article %s by %s", request.id, article_id, caller.id)
    return request


def list_requests(session: Session, caller: Caller, status: Optional[DeletionRequestStatus] = None) -> List[DeletionRequest]:
    enforce(caller, Operation.DELETION_REQUEST_LIST)
    query = session.query(DeletionRequest)
    if status:
        query = query.filter(DeletionRequest.status == status)
    return query.order_by(DeletionRequest.created_at.desc()).all()


def list_my_requests(session: Session, caller: Caller) -> List[DeletionRequest]:
    enforce(caller, Operation.DELETION_REQUEST_LIST_OWN)
    return (
        session.query(DeletionRequest)
        .filter(DeletionRequest.author_id == caller.id)
        .order_by(DeletionRequest.created_at.desc())
        .all()
    )


def approve_request(session: Session, caller: Caller, request_id: str) -> DeletionRequest:
    """Approve the request and delete its article"""
    request = _pending_request(session, caller, request_id)
    article = session.query(Article).filter(Article.id == request.article_id).first()
    if article is not None:
        purge_article(session, article)
    # closed last so the version check runs in the commit below
    _close(request, caller, DeletionRequestStatus.APPROVED)
    commit(session, REVIEW_CONFLICT)
    session.refresh(request)
    logger.info("Deletion request %s approved by %s, article %s deleted", request_id, caller.id, request.article_id)
    return request


def reject_request(session: Session, caller: Caller, request_id: str) -> DeletionRequest:
    request = _pending_request(session, caller, request_id)
    _close(request, caller, DeletionRequestStatus.REJECTED)
    commit(session, REVIEW_CONFLICT)
    session.refresh(request)
    logger.info("Deletion request %s rejected by %s", request_id, caller.id)
    return request


def _pending_request(session: Session, caller: Caller, request_id: str) -> DeletionRequest:
    request = get_request(session, request_id)
    enforce(caller, Operation.DELETION_REQUEST_REVIEW)
    if request.status != DeletionRequestStatus.PENDING:
        raise InvalidState("This request has already been reviewed")
    return request


def _close(request: DeletionRequest, caller: Caller, status: DeletionRequestStatus) -> None:
    request.status = status
    request.reviewer_id = caller.id
    request.reviewed_at = datetime.now(UTC)


def serialize(session: Session, requests: List[DeletionRequest]) -> List[dict]:
    """Request dicts with the current article attached while it still exists"""
    article_ids = {r.article_id for r in requests}
    articles = {a.id: a for a in session.query(Article).filter(Article.id.in_(article_ids))} if article_ids else {}
    return [{
        "id": r.id,
        "article_id": r.article_id,
        "article_title": r.article_title,
        "author_id": r.author_id,
        "reason": r.reason,
        "status": r.status,
        "reviewer_id": r.reviewer_id,
        "reviewed_at": r.reviewed_at,
        "created_at": r.created_at,
        "article": articles.get(r.article_id),
    } for r in requests]
