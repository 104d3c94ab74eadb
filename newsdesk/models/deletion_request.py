from datetime import datetime, UTC
import enum
import uuid
from sqlalchemy import DateTime, Enum, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from newsdesk.db.database import Base

class DeletionRequestStatus(str, enum.Enum):
    """Deletion request status"""
    PENDING = "pending"    # Waiting for an editor or admin
    APPROVED = "approved"  # Accepted, the article has been deleted
    REJECTED = "rejected"  # Refused, the article is untouched

class DeletionRequest(Base):
    """Author's request to remove one of their published articles"""
    __tablename__ = "deletion_requests"
    __table_args__ = (
        # at most one pending request per article
        Index(
            "uq_deletion_requests_pending_article",
            "article_id",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
        Index("ix_deletion_requests_author_status", "author_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    article_id: Mapped[str] = mapped_column(String(36))  # kept after the article is deleted
    article_title: Mapped[str] = mapped_column(String(255))  # snapshot, survives the cascade
    author_id: Mapped[str] = mapped_column(String(36))
    reason: Mapped[str] = mapped_column(Text)
    status: Mapped[DeletionRequestStatus] = mapped_column(
        Enum(DeletionRequestStatus),
        default=DeletionRequestStatus.PENDING,
        nullable=False
    )
    reviewer_id: Mapped[str] = mapped_column(String(36), nullable=True)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # two reviewers closing the same request cannot both succeed
    __mapper_args__ = {"version_id_col": version}
