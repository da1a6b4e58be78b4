"""
Blog Backend - Comment Route Tests
====================================

HTTP behaviour of /posts/{post_id}/comments with CommentService mocked.
"""

from unittest.mock import ANY

import pytest

from app.exceptions import DatabaseError, NotFoundError, ValidationError


@pytest.mark.asyncio
async def test_list_comments(mock_client, mock_comment_service, make_comment):
    mock_comment_service.get_comments_by_post_id.return_value = [
        make_comment(1, post_id=3, text="first"),
        make_comment(2, post_id=3, text="second"),
    ]

    response = await mock_client.get("/posts/3/comments")

    assert response.status_code == 200
    body = response.json()
    assert [c["text"] for c in body] == ["first", "second"]
    assert body[0]["postId"] == 3
    assert "createdAt" in body[0]
    mock_comment_service.get_comments_by_post_id.assert_awaited_once_with(ANY, 3)


@pytest.mark.asyncio
async def test_list_comments_of_unknown_post_is_empty(mock_client):
    response = await mock_client.get("/posts/99/comments")

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_comment_uses_comment_id_only(mock_client, mock_comment_service, make_comment):
    mock_comment_service.get_comment_by_id.return_value = make_comment(8, post_id=1)

    response = await mock_client.get("/posts/555/comments/8")

    assert response.status_code == 200
    assert response.json()["id"] == 8
    mock_comment_service.get_comment_by_id.assert_awaited_once_with(ANY, 8)


@pytest.mark.asyncio
async def test_get_missing_comment_is_404(mock_client, mock_comment_service):
    mock_comment_service.get_comment_by_id.side_effect = NotFoundError(resource="comment", resource_id=8)

    response = await mock_client.get("/posts/1/comments/8")

    assert response.status_code == 404
    assert response.content == b""


@pytest.mark.asyncio
async def test_create_passes_url_post_id(mock_client, mock_comment_service, make_comment):
    mock_comment_service.create_comment.return_value = make_comment(11, post_id=5, text="hi")

    response = await mock_client.post("/posts/5/comments", json={"text": "hi"})

    assert response.status_code == 201
    assert response.json()["postId"] == 5
    args = mock_comment_service.create_comment.await_args.args
    assert args[1] == 5
    assert args[2].text == "hi"
    assert args[2].post_id is None


@pytest.mark.asyncio
async def test_create_accepts_camel_case_post_id(mock_client, mock_comment_service, make_comment):
    mock_comment_service.create_comment.return_value = make_comment(11, post_id=5)

    await mock_client.post("/posts/5/comments", json={"text": "hi", "postId": 5})

    assert mock_comment_service.create_comment.await_args.args[2].post_id == 5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status",
    [
        (ValidationError(message="postId mismatch", field="postId"), 400),
        (NotFoundError(resource="post", resource_id=5), 404),
        (DatabaseError(), 500),
    ],
)
async def test_create_failures(mock_client, mock_comment_service, error, status):
    mock_comment_service.create_comment.side_effect = error

    response = await mock_client.post("/posts/5/comments", json={"text": "hi", "postId": 6})

    assert response.status_code == status


@pytest.mark.asyncio
async def test_create_without_text_is_422(mock_client, mock_comment_service):
    response = await mock_client.post("/posts/5/comments", json={})

    assert response.status_code == 422
    mock_comment_service.create_comment.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_comment(mock_client, mock_comment_service, make_comment):
    mock_comment_service.update_comment.return_value = make_comment(4, text="edited")

    response = await mock_client.put("/posts/1/comments/4", json={"text": "edited"})

    assert response.status_code == 200
    assert response.json()["text"] == "edited"
    comment_id, request = mock_comment_service.update_comment.await_args.args[1:]
    assert comment_id == 4
    assert request.text == "edited"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status",
    [
        (NotFoundError(resource="comment", resource_id=4), 404),
        (DatabaseError(), 500),
        (RuntimeError("boom"), 500),
    ],
)
async def test_update_failures(mock_client, mock_comment_service, error, status):
    mock_comment_service.update_comment.side_effect = error

    response = await mock_client.put("/posts/1/comments/4", json={"text": "edited"})

    assert response.status_code == status


@pytest.mark.asyncio
async def test_delete_comment(mock_client, mock_comment_service):
    response = await mock_client.delete("/posts/1/comments/4")

    assert response.status_code == 200
    assert response.content == b""
    mock_comment_service.delete_comment.assert_awaited_once_with(ANY, 4)


@pytest.mark.asyncio
async def test_delete_missing_comment_is_404(mock_client, mock_comment_service):
    mock_comment_service.delete_comment.side_effect = NotFoundError(resource="comment", resource_id=4)

    response = await mock_client.delete("/posts/1/comments/4")

    assert response.status_code == 404
