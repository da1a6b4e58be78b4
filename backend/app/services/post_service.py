"""
Blog Backend - Post Service
=============================

What:  Persistence and business rules for posts: search/paginate, CRUD, likes,
       image upload/download and counting.
How:   Async SQLAlchemy against the `posts` table; images delegated to
       ImageStore. Every method takes the request's AsyncSession and
       flushes; the session dependency commits. delete_post and save_image
       commit themselves before removing files from disk.
Who:   Injected into the /api/posts routes through get_post_service().

Failure contract (mapped to HTTP by the error dispatch table in main.py):
    - Missing post (or missing image)   → NotFoundError
    - Rejected upload                   → ValidationError
    - SQLAlchemy failure                → DatabaseError
    - Disk failure                      → FileStorageError
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import case, delete, desc, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.comment import Comment
from app.models.post import Post
from app.schemas.post import CreatePostRequest, PostResponse, UpdatePostRequest
from app.services.image_store import ImageStore, image_store

logger = logging.getLogger(__name__)


def _search_filter(search: Optional[str]) -> Optional[ColumnElement[bool]]:
    """Case-insensitive substring match on title or content; None for a blank search."""
    if search is None or not search.strip():
        return None
    escaped = (
        search.strip()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    pattern = f"%{escaped}%"
    return or_(
        Post.title.ilike(pattern, escape="\\"),
        Post.content.ilike(pattern, escape="\\"),
    )


class PostService:
    """
    Business logic layer for posts.

    Args:
        images: Image storage backend. Defaults to the module singleton;
                tests pass an ImageStore rooted in a temporary directory.
    """

    def __init__(self, images: Optional[ImageStore] = None):
        self.images = images or image_store

    async def _get_or_raise(self, db: AsyncSession, post_id: int) -> Post:
        try:
            # populate_existing: like counters are changed with bulk UPDATEs
            # that bypass the identity map
            post = await db.get(Post, post_id, populate_existing=True)
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the post",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )
        if post is None:
            raise NotFoundError(resource="post", resource_id=post_id)
        return post

    async def get_all_posts(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 10,
    ) -> List[PostResponse]:
        """
        One page of posts, newest first.

        Pagination is offset based and 1-indexed: page=1 returns the newest
        `size` posts. A page past the end, or a search with no matches,
        returns an empty list.

        Query plan:
            SELECT * FROM posts [WHERE title ILIKE :q OR content ILIKE :q]
            ORDER BY created_at DESC, id DESC LIMIT :size OFFSET :skip
        """
        if page < 1 or size < 1:
            raise ValidationError(
                message="page and size must be positive",
                context={"page": page, "size": size},
            )

        query = select(Post)
        criteria = _search_filter(search)
        if criteria is not None:
            query = query.where(criteria)
        query = (
            query.order_by(desc(Post.created_at), desc(Post.id))
            .offset((page - 1) * size)
            .limit(size)
        )

        try:
            result = await db.execute(query)
            posts = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts",
                context={"error_type": type(e).__name__, "search": search},
            )

        return [PostResponse.model_validate(post) for post in posts]

    async def get_total_count(self, db: AsyncSession, search: Optional[str] = None) -> int:
        """Number of posts matching `search` (all posts when search is blank)."""
        query = select(func.count(Post.id))
        criteria = _search_filter(search)
        if criteria is not None:
            query = query.where(criteria)

        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error counting posts: %s", str(e))
            raise DatabaseError(
                message="Could not count posts",
                context={"error_type": type(e).__name__, "search": search},
            )
        return int(result.scalar_one() or 0)

    async def get_post_by_id(self, db: AsyncSession, post_id: int) -> PostResponse:
        """
        Raises:
            NotFoundError: no post with this id
        """
        post = await self._get_or_raise(db, post_id)
        return PostResponse.model_validate(post)

    async def create_post(self, db: AsyncSession, request: CreatePostRequest) -> PostResponse:
        post = Post(
            title=request.title,
            content=request.content,
            likes=0,
            created_at=datetime.now(timezone.utc),
        )
        try:
            db.add(post)
            await db.flush()  # assigns post.id
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the post",
                context={"error_type": type(e).__name__},
            )

        logger.info("Post created: %s", post.id)
        return PostResponse.model_validate(post)

    async def update_post(
        self, db: AsyncSession, post_id: int, request: UpdatePostRequest
    ) -> PostResponse:
        """
        Apply a partial update. Fields that are None in the request are left as is.

        Raises:
            NotFoundError: no post with this id
        """
        post = await self._get_or_raise(db, post_id)

        if request.title is not None:
            post.title = request.title
        if request.content is not None:
            post.content = request.content
        post.updated_at = datetime.now(timezone.utc)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not update the post",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        logger.info("Post updated: %s", post_id)
        return PostResponse.model_validate(post)

    async def delete_post(self, db: AsyncSession, post_id: int) -> None:
        """
        Delete a post together with its comments and stored image.

        Comments are deleted explicitly instead of relying on ON DELETE CASCADE,
        which SQLite only honours with PRAGMA foreign_keys=ON.

        Raises:
            NotFoundError: no post with this id
        """
        post = await self._get_or_raise(db, post_id)
        image_path = post.image_path

        try:
            await db.execute(
                delete(Comment)
                .where(Comment.post_id == post_id)
                .execution_options(synchronize_session=False)
            )
            await db.delete(post)
            await db.flush()
            # The image file is removed only after the delete is committed
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not delete the post",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        await self.images.remove(image_path)
        logger.info("Post deleted: %s", post_id)

    async def _adjust_likes(self, db: AsyncSession, post_id: int, increment: bool) -> None:
        # Single UPDATE statement: concurrent likes cannot overwrite each other
        if increment:
            new_value = Post.likes + 1
        else:
            new_value = case((Post.likes > 0, Post.likes - 1), else_=0)

        stmt = (
            update(Post)
            .where(Post.id == post_id)
            .values(likes=new_value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error changing likes of post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not update the like count",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="post", resource_id=post_id)

    async def increment_likes(self, db: AsyncSession, post_id: int) -> None:
        """
        Raises:
            NotFoundError: no post with this id
        """
        await self._adjust_likes(db, post_id, increment=True)

    async def decrement_likes(self, db: AsyncSession, post_id: int) -> None:
        """
        Remove one like. A post with zero likes stays at zero.

        Raises:
            NotFoundError: no post with this id
        """
        await self._adjust_likes(db, post_id, increment=False)

    async def get_post_image(self, db: AsyncSession, post_id: int) -> bytes:
        """
        Raises:
            NotFoundError: no post with this id, or the post has no image
        """
        post = await self._get_or_raise(db, post_id)
        if post.image_path is None:
            raise NotFoundError(resource="image", resource_id=post_id)
        return await self.images.read(post.image_path)

    async def get_image_content_type(self, db: AsyncSession, post_id: int) -> Optional[str]:
        """Declared content type of the post's image; None when it was never recorded."""
        post = await self._get_or_raise(db, post_id)
        return post.image_content_type

    async def save_image(
        self,
        db: AsyncSession,
        post_id: int,
        data: bytes,
        content_type: Optional[str],
    ) -> None:
        """
        Store (or replace) the image of a post.

        The new file is written first; the previous one is removed only after
        the post row pointing at the new file is committed.

        Raises:
            NotFoundError: no post with this id
            ValidationError: empty or oversized payload
            FileStorageError: the file could not be written
        """
        post = await self._get_or_raise(db, post_id)
        previous_path = post.image_path

        new_path = await self.images.save(post_id, data, content_type)

        post.image_path = new_path
        post.image_content_type = content_type or None
        post.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
            # The previous file is removed only once the new path is committed
            await db.commit()
        except SQLAlchemyError as e:
            await self.images.remove(new_path)
            logger.error("Database error saving image for post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not save the post image",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        if previous_path and previous_path != new_path:
            await self.images.remove(previous_path)
        logger.info("Image saved for post %s (%d bytes)", post_id, len(data))


post_service = PostService()


def get_post_service() -> PostService:
    """FastAPI dependency returning the shared PostService."""
    return post_service
