"""
Access control policy.

Every permission in the newsroom is a row of ``RULES``: which roles may
perform an operation outright, which roles may perform it on resources they
own, and which article statuses each grant is limited to. ``decide`` is a
pure function over that table; it never touches the database, so callers
must pass a ``Target`` built from freshly loaded state.

Usage:
    decision = decide(caller, Operation.ARTICLE_DELETE, Target.of_article(article))
    if not decision:
        ...
    enforce(caller, Operation.ARTICLE_PUBLISH, Target.of_article(article))
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from newsdesk.core.errors import Forbidden, Unauthenticated
from newsdesk.models.article import ArticleStatus
from newsdesk.models.user import UserRole

ALL_ROLES = frozenset(UserRole)
WRITERS = frozenset({UserRole.AUTHOR, UserRole.EDITOR, UserRole.ADMIN})
STAFF = frozenset({UserRole.EDITOR, UserRole.ADMIN})
ADMINS = frozenset({UserRole.ADMIN})
COMMENTERS = frozenset({UserRole.READER, UserRole.AUTHOR})
NOBODY: FrozenSet[UserRole] = frozenset()


class Operation(str, Enum):
    ARTICLE_READ = "article:read"
    ARTICLE_CREATE = "article:create"
    ARTICLE_UPDATE = "article:update"
    ARTICLE_DELETE = "article:delete"
    ARTICLE_SUBMIT = "article:submit"
    ARTICLE_REVIEW = "article:review"
    ARTICLE_PUBLISH = "article:publish"
    COMMENT_CREATE = "comment:create"
    COMMENT_LIKE = "comment:like"
    COMMENT_UPDATE = "comment:update"
    COMMENT_DELETE = "comment:delete"
    DELETION_REQUEST_CREATE = "deletion_request:create"
    DELETION_REQUEST_LIST_OWN = "deletion_request:list_own"
    DELETION_REQUEST_LIST = "deletion_request:list"
    DELETION_REQUEST_REVIEW = "deletion_request:review"
    CATEGORY_CREATE = "category:create"
    CATEGORY_UPDATE = "category:update"
    CATEGORY_DELETE = "category:delete"
    USER_MANAGE = "user:manage"


@dataclass(frozen=True)
class Caller:
    """Verified identity attached to a request."""
    id: str
    role: UserRole

    @classmethod
    def of(cls, user) -> Optional["Caller"]:
        if user is None:
            return None
        return cls(id=user.id, role=UserRole(user.role))


@dataclass(frozen=True)
class Target:
    """The parts of a resource the policy looks at."""
    owner_id: Optional[str] = None
    status: Optional[ArticleStatus] = None

    @classmethod
    def of_article(cls, article) -> "Target":
        return cls(owner_id=article.author_id, status=ArticleStatus(article.status))

    @classmethod
    def of_comment(cls, comment) -> "Target":
        return cls(owner_id=comment.author_id)


@dataclass(frozen=True)
class Rule:
    denial: str
    roles: FrozenSet[UserRole] = NOBODY
    statuses: Optional[FrozenSet[ArticleStatus]] = None  # limits `roles`
    owner_roles: FrozenSet[UserRole] = NOBODY
    owner_statuses: Optional[FrozenSet[ArticleStatus]] = None  # limits `owner_roles`
    public_statuses: FrozenSet[ArticleStatus] = frozenset()  # open to anyone, anonymous included
    requires_identity: bool = True


RULES: Dict[Operation, Rule] = {
    Operation.ARTICLE_READ: Rule(
        "Access denied",
        public_statuses=frozenset({ArticleStatus.PUBLISHED}),
        roles=STAFF,
        statuses=frozenset({ArticleStatus.PENDING, ArticleStatus.APPROVED, ArticleStatus.PUBLISHED}),
        owner_roles=WRITERS,
        requires_identity=False,
    ),
    Operation.ARTICLE_CREATE: Rule("Author, Editor, or Admin access required", roles=WRITERS),
    Operation.ARTICLE_UPDATE: Rule(
        "Not authorized to update this article",
        roles=STAFF,
        owner_roles=frozenset({UserRole.AUTHOR}),
    ),
    Operation.ARTICLE_DELETE: Rule(
        "Not authorized to delete this article",
        roles=ADMINS,
        owner_roles=frozenset({UserRole.AUTHOR}),
        owner_statuses=frozenset({ArticleStatus.DRAFT}),
    ),
    Operation.ARTICLE_SUBMIT: Rule("Not authorized to submit this article", owner_roles=WRITERS),
    Operation.ARTICLE_REVIEW: Rule("Editor or Admin access required", roles=STAFF),
    Operation.ARTICLE_PUBLISH: Rule("Editor or Admin access required", roles=STAFF),
    Operation.COMMENT_CREATE: Rule("Only Reader or Author can comment", roles=COMMENTERS),
    Operation.COMMENT_LIKE: Rule("Authentication required", roles=ALL_ROLES),
    Operation.COMMENT_UPDATE: Rule("Not authorized to update this comment", owner_roles=ALL_ROLES),
    Operation.COMMENT_DELETE: Rule(
        "Not authorized to delete this comment",
        roles=ADMINS,
        owner_roles=ALL_ROLES,
    ),
    Operation.DELETION_REQUEST_CREATE: Rule(
        "You can only request deletion of your own articles",
        owner_roles=WRITERS,
    ),
    Operation.DELETION_REQUEST_LIST_OWN: Rule("Author, Editor, or Admin access required", roles=WRITERS),
    Operation.DELETION_REQUEST_LIST: Rule("Editor or Admin access required", roles=STAFF),
    Operation.DELETION_REQUEST_REVIEW: Rule("Editor or Admin access required", roles=STAFF),
    Operation.CATEGORY_CREATE: Rule("Editor or Admin access required", roles=STAFF),
    Operation.CATEGORY_UPDATE: Rule("Editor or Admin access required", roles=STAFF),
    Operation.CATEGORY_DELETE: Rule("Admin access required", roles=ADMINS),
    Operation.USER_MANAGE: Rule("Admin access required", roles=ADMINS),
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    needs_identity: bool = False

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def decide(caller: Optional[Caller], operation: Operation, target: Optional[Target] = None) -> Decision:
    """Decide whether ``caller`` may perform ``operation`` on ``target``."""
    rule = RULES[operation]
    status = target.status if target is not None else None

    if status is not None and status in rule.public_statuses:
        return ALLOW
    if caller is None:
        return Decision(False, "Authentication required" if rule.requires_identity else rule.denial,
                        needs_identity=rule.requires_identity)

    if caller.role in rule.roles and (rule.statuses is None or status in rule.statuses):
        return ALLOW

    owns = target is not None and target.owner_id is not None and target.owner_id == caller.id
    if owns and caller.role in rule.owner_roles:
        if rule.owner_statuses is None or status in rule.owner_statuses:
            return ALLOW
        return Decision(False, f"{rule.denial} while it is {status.value}")
    return Decision(False, rule.denial)


def enforce(caller: Optional[Caller], operation: Operation, target: Optional[Target] = None) -> None:
    """Raise ``Unauthenticated`` or ``Forbidden`` unless ``decide`` allows the call."""
    decision = decide(caller, operation, target)
    if decision:
        return
    if decision.needs_identity:
        raise Unauthenticated(decision.reason)
    raise Forbidden(decision.reason)


@dataclass(frozen=True)
class ArticleScope:
    """Which articles a caller may see in listings: any in `statuses`, plus own ones when `owner_id` is set."""
    statuses: FrozenSet[ArticleStatus]
    owner_id: Optional[str] = None


def article_scope(caller: Optional[Caller]) -> ArticleScope:
    rule = RULES[Operation.ARTICLE_READ]
    if caller is None:
        return ArticleScope(statuses=rule.public_statuses)
    statuses = set(rule.public_statuses)
    if caller.role in rule.roles:
        statuses |= rule.statuses or set()
    owner_id = caller.id if caller.role in rule.owner_roles else None
    return ArticleScope(statuses=frozenset(statuses), owner_id=owner_id)
