"""ORM models. Importing this package registers every table on Base.metadata."""

from app.models.comment import Comment
from app.models.post import Post

__all__ = ["Comment", "Post"]
