from datetime import datetime, UTC
import uuid
from sqlalchemy import String, DateTime, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column
from newsdesk.db.database import Base
from newsdesk.models.user import UserRole

class RoleChange(Base):
    """Audit record of an administrative role change"""
    __tablename__ = "role_changes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), index=True)  # Not using foreign key, only storing ID
    old_role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False)
    new_role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False)
    changed_by: Mapped[str] = mapped_column(String(36))  # admin who made the change
    reason: Mapped[str] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
