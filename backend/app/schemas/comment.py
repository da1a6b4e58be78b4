"""
Blog Backend - Comment Request/Response Schemas
=================================================

`postId` in CreateCommentRequest is optional. The URL's post id decides which
post a comment is attached to; a body value is only checked for agreement
(see CommentService.create_comment).
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.post import CamelModel


class CreateCommentRequest(CamelModel):
    text: str = Field(description="Comment body")
    post_id: Optional[int] = Field(
        default=None,
        description="Target post; must match the post id in the URL when given",
    )


class UpdateCommentRequest(CamelModel):
    text: str = Field(description="Replacement comment body")


class CommentResponse(CamelModel):
    id: int
    post_id: int
    text: str
    created_at: datetime
