"""
Blog Backend - Comment Service
================================

What:  Persistence and business rules for comments on posts.
How:   Async SQLAlchemy against the `comments` table. Lookups, updates and
       deletes are keyed by comment id alone; creation is keyed by the post
       id taken from the URL.
Who:   Injected into the /posts/{post_id}/comments routes through
       get_comment_service().

Post association on create:
    The URL's post id is the one a new comment is attached to. A `postId`
    in the request body is optional; when present it must name the same
    post, otherwise the request is rejected (ValidationError → 400) instead
    of silently picking one of the two.
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import asc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.comment import Comment
from app.models.post import Post
from app.schemas.comment import (
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)

logger = logging.getLogger(__name__)


class CommentService:
    """Business logic layer for comments. Stateless; one shared instance."""

    async def _get_or_raise(self, db: AsyncSession, comment_id: int) -> Comment:
        try:
            comment = await db.get(Comment, comment_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching comment %s: %s", comment_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the comment",
                context={"comment_id": comment_id, "error_type": type(e).__name__},
            )
        if comment is None:
            raise NotFoundError(resource="comment", resource_id=comment_id)
        return comment

    async def get_comments_by_post_id(
        self, db: AsyncSession, post_id: int
    ) -> List[CommentResponse]:
        """All comments of a post, oldest first. Unknown post → empty list."""
        query = (
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(asc(Comment.created_at), asc(Comment.id))
        )
        try:
            result = await db.execute(query)
            comments = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing comments of post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve comments",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )
        return [CommentResponse.model_validate(comment) for comment in comments]

    async def get_comment_by_id(self, db: AsyncSession, comment_id: int) -> CommentResponse:
        """
        Raises:
            NotFoundError: no comment with this id
        """
        comment = await self._get_or_raise(db, comment_id)
        return CommentResponse.model_validate(comment)

    async def create_comment(
        self,
        db: AsyncSession,
        post_id: int,
        request: CreateCommentRequest,
    ) -> CommentResponse:
        """
        Attach a new comment to post `post_id`.

        Raises:
            ValidationError: request.post_id is set and differs from post_id
            NotFoundError: post `post_id` does not exist
        """
        if request.post_id is not None and request.post_id != post_id:
            raise ValidationError(
                message=(
                    f"postId {request.post_id} in the request body does not match "
                    f"post {post_id} in the URL"
                ),
                field="postId",
                context={"path_post_id": post_id, "body_post_id": request.post_id},
            )

        try:
            post = await db.get(Post, post_id)
            if post is None:
                raise NotFoundError(resource="post", resource_id=post_id)

            comment = Comment(
                post_id=post_id,
                text=request.text,
                created_at=datetime.now(timezone.utc),
            )
            db.add(comment)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating comment on post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not create the comment",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        logger.info("Comment %s created on post %s", comment.id, post_id)
        return CommentResponse.model_validate(comment)

    async def update_comment(
        self,
        db: AsyncSession,
        comment_id: int,
        request: UpdateCommentRequest,
    ) -> CommentResponse:
        """
        Raises:
            NotFoundError: no comment with this id
        """
        comment = await self._get_or_raise(db, comment_id)
        comment.text = request.text

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating comment %s: %s", comment_id, str(e))
            raise DatabaseError(
                message="Could not update the comment",
                context={"comment_id": comment_id, "error_type": type(e).__name__},
            )

        logger.info("Comment updated: %s", comment_id)
        return CommentResponse.model_validate(comment)

    async def delete_comment(self, db: AsyncSession, comment_id: int) -> None:
        """
        Raises:
            NotFoundError: no comment with this id
        """
        comment = await self._get_or_raise(db, comment_id)

        try:
            await db.delete(comment)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting comment %s: %s", comment_id, str(e))
            raise DatabaseError(
                message="Could not delete the comment",
                context={"comment_id": comment_id, "error_type": type(e).__name__},
            )

        logger.info("Comment deleted: %s", comment_id)


comment_service = CommentService()


def get_comment_service() -> CommentService:
    """FastAPI dependency returning the shared CommentService."""
    return comment_service
