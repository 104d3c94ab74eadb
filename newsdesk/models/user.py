from datetime import datetime, UTC
import enum
import uuid
from sqlalchemy import String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column
from newsdesk.db.database import Base

class UserRole(str, enum.Enum):
    """User role"""
    ADMIN = "admin"    # Manages users, categories, deletes anything
    EDITOR = "editor"  # Reviews and publishes articles
    AUTHOR = "author"  # Writes articles, comments
    READER = "reader"  # Reads and comments

class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.READER, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )
    last_login: Mapped[datetime] = mapped_column(DateTime, nullable=True)
