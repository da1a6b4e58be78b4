"""
Blog Backend - Post SQLAlchemy Model
======================================

What:  ORM model for the `posts` table.
How:   Integer identity primary key, like counter guarded by a CHECK
       constraint, optional image stored on disk (path + content type here).

Query Patterns:
    - List/search: WHERE title ILIKE :q OR content ILIKE :q
                   ORDER BY created_at DESC, id DESC LIMIT :size OFFSET :skip
      → idx_posts_created_at
    - Like/unlike: single UPDATE posts SET likes = likes ± 1 WHERE id = :id
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """A blog post. `id` never changes once assigned; `likes` never drops below zero."""

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relative path below settings.storage_root; NULL when the post has no image
    image_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # Declared content type from the upload; may be NULL even with an image
    image_content_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_posts_likes_non_negative"),
        Index("idx_posts_created_at", created_at.desc()),
    )

    @property
    def has_image(self) -> bool:
        return self.image_path is not None

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title!r}, likes={self.likes})>"
