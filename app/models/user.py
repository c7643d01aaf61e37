from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.core.config import settings
from app.core.database import Base


class User(Base):
    """Local mirror of an identity issued by the platform's auth service."""

    __tablename__ = "users"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Profile information
    full_name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=True)

    # Account status
    is_active = Column(Boolean, default=True, nullable=False)
    status = Column(
        String(20), default=settings.authorization_default_role, nullable=False
    )  # student, mentor, admin

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_mentor(self) -> bool:
        return self.status in ("mentor", "admin")

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.full_name}', status='{self.status}')>"
