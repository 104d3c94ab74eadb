"""
Comment tree.

Comments and replies live in one table; a reply points at its parent with
``parent_id``. Trees are built in memory from a single query per article,
and deleting a comment first collects its whole subtree, then removes it in
one statement, so no reply outlives its deleted ancestor.
"""
import logging
from collections import defaultdict
from datetime import datetime, UTC
from typing import Dict, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from newsdesk.core.errors import InvalidInput, InvalidState, NotFound
from newsdesk.core.policy import Caller, Operation, Target, enforce
from newsdesk.models.article import ArticleStatus
from newsdesk.models.comment import Comment, CommentLike
from newsdesk.models.user import User
from newsdesk.services.articles import get_article

logger = logging.getLogger(__name__)


def get_comment(session: Session, comment_id: str) -> Comment:
    comment = session.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


def likes_count(session: Session, comment_id: str) -> int:
    return session.query(CommentLike).filter(CommentLike.comment_id == comment_id).count()


def list_top_level(session: Session, caller: Optional[Caller], article_id: str) -> List[dict]:
    """Top-level comments newest first, each with its replies oldest first"""
    article = get_article(session, article_id)
    enforce(caller, Operation.ARTICLE_READ, Target.of_article(article))

    comments = session.query(Comment).filter(Comment.article_id == article_id).all()
    children = _children_index(comments)
    nodes = _build_nodes(session, comments)
    present = {c.id for c in comments}
    orphans = [c.id for c in comments if c.parent_id is not None and c.parent_id not in present]
    if orphans:
        # replies that raced with the deletion of their parent, shown at the top level
        logger.warning("Article %s has orphaned replies: %s", article_id, orphans)
    roots = sorted(
        (c for c in comments if c.parent_id is None or c.id in orphans),
        key=lambda c: (c.created_at, c.id),
        reverse=True,
    )
    return [_attach(nodes, children, c.id) for c in roots]


def list_replies(session: Session, caller: Optional[Caller], comment_id: str) -> List[dict]:
    """The whole reply tree below a comment, oldest first at every level"""
    comment = get_comment(session, comment_id)
    article = get_article(session, comment.article_id)
    enforce(caller, Operation.ARTICLE_READ, Target.of_article(article))

    comments = session.query(Comment).filter(Comment.article_id == comment.article_id).all()
    children = _children_index(comments)
    subtree_ids = _descendant_ids(children, comment.id)
    nodes = _build_nodes(session, [c for c in comments if c.id in subtree_ids])
    return [_attach(nodes, children, child.id) for child in children.get(comment.id, [])]


def create_comment(
    session: Session,
    caller: Caller,
    article_id: str,
    content: str,
    parent_id: Optional[str] = None,
) -> Comment:
    article = get_article(session, article_id)
    enforce(caller, Operation.COMMENT_CREATE)
    if article.status != ArticleStatus.PUBLISHED:
        raise InvalidState("Cannot comment on unpublished articles")

    if parent_id is not None:
        parent = get_comment(session, parent_id)
        if parent.article_id != article_id:
            raise InvalidInput("Parent comment belongs to another article")

    comment = Comment(
        article_id=article_id,
        author_id=caller.id,
        parent_id=parent_id,
        content=content,
    )
    session.add(comment)
    session.commit()
    session.refresh(comment)
    return comment


def update_comment(session: Session, caller: Caller, comment_id: str, content: str) -> Comment:
    comment = get_comment(session, comment_id)
    enforce(caller, Operation.COMMENT_UPDATE, Target.of_comment(comment))
    comment.content = content
    comment.updated_at = datetime.now(UTC)
    session.commit()
    session.refresh(comment)
    return comment


def delete_comment(session: Session, caller: Caller, comment_id: str) -> int:
    """Delete a comment and every reply below it, return how many were removed"""
    comment = get_comment(session, comment_id)
    enforce(caller, Operation.COMMENT_DELETE, Target.of_comment(comment))

    ids = collect_subtree(session, comment.id)
    session.execute(delete(CommentLike).where(CommentLike.comment_id.in_(ids)))
    session.execute(delete(Comment).where(Comment.id.in_(ids)))
    session.commit()
    logger.info("Comment %s deleted by %s with %d replies", comment_id, caller.id, len(ids) - 1)
    return len(ids)


def collect_subtree(session: Session, comment_id: str) -> List[str]:
    """Ids of a comment and all its descendants, one query per tree level"""
    ids = [comment_id]
    frontier = [comment_id]
    while frontier:
        frontier = [
            row.id
            for row in session.query(Comment.id).filter(Comment.parent_id.in_(frontier))
        ]
        ids.extend(frontier)
    return ids


def toggle_like(session: Session, caller: Caller, comment_id: str) -> dict:
    """Like the comment if the caller has not yet, unlike it otherwise"""
    comment = get_comment(session, comment_id)
    enforce(caller, Operation.COMMENT_LIKE, Target.of_comment(comment))

    existing = session.query(CommentLike).filter(
        CommentLike.comment_id == comment_id,
        CommentLike.user_id == caller.id
    ).first()
    if existing:
        session.delete(existing)
        liked = False
    else:
        session.add(CommentLike(comment_id=comment_id, user_id=caller.id))
        liked = True
    try:
        session.commit()
    except IntegrityError:
        # a concurrent like from the same caller got there first
        session.rollback()
        liked = True

    return {"liked": liked, "likes_count": likes_count(session, comment_id)}


def serialize(session: Session, comment: Comment) -> dict:
    return _build_nodes(session, [comment])[comment.id]


def _children_index(comments: List[Comment]) -> Dict[str, List[Comment]]:
    children: Dict[str, List[Comment]] = defaultdict(list)
    for comment in comments:
        if comment.parent_id is not None:
            children[comment.parent_id].append(comment)
    for replies in children.values():
        replies.sort(key=lambda c: (c.created_at, c.id))
    return children


def _descendant_ids(children: Dict[str, List[Comment]], comment_id: str) -> set:
    found = set()
    stack = [comment_id]
    while stack:
        for child in children.get(stack.pop(), []):
            found.add(child.id)
            stack.append(child.id)
    return found


def _build_nodes(session: Session, comments: List[Comment]) -> Dict[str, dict]:
    """Flat comment dicts keyed by id, with like counts and author summaries"""
    ids = [c.id for c in comments]
    counts: Dict[str, int] = {}
    authors: Dict[str, User] = {}
    if ids:
        counts = dict(
            session.query(CommentLike.comment_id, func.count(CommentLike.id))
            .filter(CommentLike.comment_id.in_(ids))
            .group_by(CommentLike.comment_id)
            .all()
        )
        author_ids = {c.author_id for c in comments}
        authors = {u.id: u for u in session.query(User).filter(User.id.in_(author_ids))}

    return {c.id: {
        "id": c.id,
        "article_id": c.article_id,
        "author_id": c.author_id,
        "parent_id": c.parent_id,
        "content": c.content,
        "created_at": c.created_at,
        "updated_at": c.updated_at,
        "likes_count": counts.get(c.id, 0),
        "author": authors.get(c.author_id),
        "replies": [],
    } for c in comments}


def _attach(nodes: Dict[str, dict], children: Dict[str, List[Comment]], root_id: str) -> dict:
    """Wire replies into their parent nodes below ``root_id`` without recursion"""
    stack = [root_id]
    while stack:
        node_id = stack.pop()
        node = nodes[node_id]
        node["replies"] = [nodes[child.id] for child in children.get(node_id, [])]
        stack.extend(child.id for child in children.get(node_id, []))
    return nodes[root_id]
