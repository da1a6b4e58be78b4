"""
Blog Backend - Comment Route Handlers
=======================================

What:  The /posts/{post_id}/comments endpoints.
How:   Thin handlers over CommentService; errors are mapped centrally.

Only listing and creation use the post id from the URL. Get, update and
delete address a comment by its own id, whatever post id the URL carries.
"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.comment import (
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)
from app.services.comment_service import CommentService, get_comment_service

router = APIRouter(prefix="/posts/{post_id}/comments", tags=["Comments"])


@router.get(
    "",
    response_model=List[CommentResponse],
    summary="List the comments of a post",
)
async def list_comments(
    post_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: CommentService = Depends(get_comment_service),
) -> List[CommentResponse]:
    return await service.get_comments_by_post_id(db, post_id)


@router.get(
    "/{comment_id}",
    response_model=CommentResponse,
    responses={404: {"description": "Comment not found"}},
    summary="Get a single comment",
)
async def get_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    return await service.get_comment_by_id(db, comment_id)


@router.post(
    "",
    status_code=201,
    response_model=CommentResponse,
    responses={
        400: {"description": "postId in the body does not match the URL"},
        404: {"description": "Post not found"},
    },
    summary="Comment on a post",
)
async def create_comment(
    post_id: int,
    request: CreateCommentRequest,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    return await service.create_comment(db, post_id, request)


@router.put(
    "/{comment_id}",
    response_model=CommentResponse,
    responses={404: {"description": "Comment not found"}, 500: {"description": "Server error"}},
    summary="Update a comment",
)
async def update_comment(
    post_id: int,
    comment_id: int,
    request: UpdateCommentRequest,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    return await service.update_comment(db, comment_id, request)


@router.delete(
    "/{comment_id}",
    responses={404: {"description": "Comment not found"}, 500: {"description": "Server error"}},
    summary="Delete a comment",
)
async def delete_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: CommentService = Depends(get_comment_service),
) -> Response:
    await service.delete_comment(db, comment_id)
    return Response(status_code=200)
