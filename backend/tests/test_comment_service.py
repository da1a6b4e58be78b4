"""
Blog Backend - Comment Service Tests
======================================

CommentService against an in-memory SQLite database.
"""

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.schemas.comment import CreateCommentRequest, UpdateCommentRequest
from app.schemas.post import CreatePostRequest


@pytest.fixture
def new_post(post_service, db_session):
    async def _new(title: str = "Post"):
        return await post_service.create_post(db_session, CreatePostRequest(title=title, content="c"))

    return _new


class TestCreateComment:

    @pytest.mark.asyncio
    async def test_attaches_to_url_post(self, comment_service, db_session, new_post):
        post = await new_post()

        comment = await comment_service.create_comment(
            db_session, post.id, CreateCommentRequest(text="Great read")
        )

        assert comment.id is not None
        assert comment.post_id == post.id
        assert comment.text == "Great read"
        assert comment.created_at is not None

    @pytest.mark.asyncio
    async def test_matching_body_post_id_accepted(self, comment_service, db_session, new_post):
        post = await new_post()

        comment = await comment_service.create_comment(
            db_session, post.id, CreateCommentRequest(text="ok", post_id=post.id)
        )

        assert comment.post_id == post.id

    @pytest.mark.asyncio
    async def test_mismatched_body_post_id_rejected(self, comment_service, db_session, new_post):
        first = await new_post("a")
        second = await new_post("b")

        with pytest.raises(ValidationError) as exc_info:
            await comment_service.create_comment(
                db_session, first.id, CreateCommentRequest(text="x", post_id=second.id)
            )

        assert exc_info.value.field == "postId"
        assert await comment_service.get_comments_by_post_id(db_session, first.id) == []
        assert await comment_service.get_comments_by_post_id(db_session, second.id) == []

    @pytest.mark.asyncio
    async def test_missing_post_raises_not_found(self, comment_service, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await comment_service.create_comment(db_session, 123, CreateCommentRequest(text="x"))

        assert exc_info.value.resource == "post"


class TestReadComments:

    @pytest.mark.asyncio
    async def test_oldest_first_and_scoped_to_post(self, comment_service, db_session, new_post):
        post = await new_post("a")
        other = await new_post("b")
        for text in ("one", "two", "three"):
            await comment_service.create_comment(db_session, post.id, CreateCommentRequest(text=text))
        await comment_service.create_comment(db_session, other.id, CreateCommentRequest(text="elsewhere"))

        comments = await comment_service.get_comments_by_post_id(db_session, post.id)

        assert [c.text for c in comments] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_unknown_post_has_no_comments(self, comment_service, db_session):
        assert await comment_service.get_comments_by_post_id(db_session, 77) == []

    @pytest.mark.asyncio
    async def test_get_by_id(self, comment_service, db_session, new_post):
        post = await new_post()
        created = await comment_service.create_comment(db_session, post.id, CreateCommentRequest(text="x"))

        fetched = await comment_service.get_comment_by_id(db_session, created.id)

        assert fetched.id == created.id
        assert fetched.post_id == post.id

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, comment_service, db_session):
        with pytest.raises(NotFoundError):
            await comment_service.get_comment_by_id(db_session, 1)


class TestUpdateAndDeleteComment:

    @pytest.mark.asyncio
    async def test_update_text(self, comment_service, db_session, new_post):
        post = await new_post()
        created = await comment_service.create_comment(db_session, post.id, CreateCommentRequest(text="old"))

        updated = await comment_service.update_comment(
            db_session, created.id, UpdateCommentRequest(text="new")
        )

        assert updated.text == "new"
        assert updated.post_id == post.id
        assert (await comment_service.get_comment_by_id(db_session, created.id)).text == "new"

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, comment_service, db_session):
        with pytest.raises(NotFoundError):
            await comment_service.update_comment(db_session, 5, UpdateCommentRequest(text="x"))

    @pytest.mark.asyncio
    async def test_delete(self, comment_service, db_session, new_post):
        post = await new_post()
        created = await comment_service.create_comment(db_session, post.id, CreateCommentRequest(text="x"))

        await comment_service.delete_comment(db_session, created.id)

        with pytest.raises(NotFoundError):
            await comment_service.get_comment_by_id(db_session, created.id)

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, comment_service, db_session):
        with pytest.raises(NotFoundError):
            await comment_service.delete_comment(db_session, 5)


class TestDatabaseFailures:

    @pytest.mark.asyncio
    async def test_list_failure_wrapped(self, comment_service, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await comment_service.get_comments_by_post_id(mock_db_session, 1)

    @pytest.mark.asyncio
    async def test_create_flush_failure_wrapped(self, comment_service, mock_db_session):
        mock_db_session.get.return_value = object()
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(DatabaseError) as exc_info:
            await comment_service.create_comment(mock_db_session, 1, CreateCommentRequest(text="x"))

        assert exc_info.value.context["post_id"] == 1
