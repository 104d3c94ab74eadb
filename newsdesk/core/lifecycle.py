"""
Article lifecycle state machine.

States:
    draft → pending → approved → published
              ↓
            (rejected) → draft

A rejection is recorded by sending the article straight back to draft, so
the author always revises and resubmits from the same state. Publishing is
accepted from every non-published state; it does not require a prior
approval. Editing an unpublished article returns it to draft; editing a
published article leaves it published.

Usage:
    previous = lifecycle.apply(article, Action.SUBMIT)
"""
import logging
from datetime import datetime, UTC
from enum import Enum
from typing import Dict, Optional

from newsdesk.core.errors import InvalidInput, InvalidTransition
from newsdesk.models.article import ArticleStatus

logger = logging.getLogger(__name__)


class Action(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    PUBLISH = "publish"
    EDIT = "edit"


_UNPUBLISHED = (ArticleStatus.DRAFT, ArticleStatus.PENDING, ArticleStatus.APPROVED, ArticleStatus.REJECTED)

TRANSITIONS: Dict[Action, Dict[ArticleStatus, ArticleStatus]] = {
    Action.SUBMIT: {ArticleStatus.DRAFT: ArticleStatus.PENDING},
    Action.APPROVE: {ArticleStatus.PENDING: ArticleStatus.APPROVED},
    Action.REJECT: {ArticleStatus.PENDING: ArticleStatus.DRAFT},
    Action.PUBLISH: {status: ArticleStatus.PUBLISHED for status in _UNPUBLISHED},
    Action.EDIT: {
        **{status: ArticleStatus.DRAFT for status in _UNPUBLISHED},
        ArticleStatus.PUBLISHED: ArticleStatus.PUBLISHED,
    },
}

# statuses an editor may ask for through the review operation
REVIEW_ACTIONS: Dict[ArticleStatus, Action] = {
    ArticleStatus.APPROVED: Action.APPROVE,
    ArticleStatus.REJECTED: Action.REJECT,
    ArticleStatus.PUBLISHED: Action.PUBLISH,
}


def next_status(current: ArticleStatus, action: Action) -> ArticleStatus:
    """Return the status ``action`` leads to from ``current``, or raise ``InvalidTransition``."""
    try:
        return TRANSITIONS[action][ArticleStatus(current)]
    except KeyError:
        raise InvalidTransition(action.value, ArticleStatus(current).value) from None


def review_action(requested: str) -> Action:
    """Map the status requested by a reviewer onto a lifecycle action."""
    try:
        return REVIEW_ACTIONS[ArticleStatus(requested)]
    except (KeyError, ValueError):
        raise InvalidInput("Invalid status. Allowed: approved, rejected, published") from None


def apply(article, action: Action, now: Optional[datetime] = None) -> ArticleStatus:
    """Move ``article`` along ``action`` and return its previous status.

    ``published_at`` is stamped the first time the article becomes published
    and never touched again.
    """
    previous = ArticleStatus(article.status)
    target = next_status(previous, action)
    article.status = target
    if target == ArticleStatus.PUBLISHED and article.published_at is None:
        article.published_at = now or datetime.now(UTC)
    if target != previous:
        logger.info("Article %s: %s -> %s (%s)", article.id, previous.value, target.value, action.value)
    return previous
