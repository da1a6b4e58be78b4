"""
Blog Backend - Post Route Handlers
====================================

What:  The /api/posts endpoints: list/search, count, CRUD, likes and images.
How:   Each handler parses path/query/body, calls PostService and returns the
       result. Failures are raised by the service as BlogError subclasses and
       turned into status codes by the handlers registered in main.py. The
       upload handler is the one exception: it reports a missing post as an
       internal failure, since its contract has no 404.

Sessions are declared with scope="function" so the commit in
get_db_session runs before the response is sent and a failed commit is
answered with 500.

Endpoint Inventory:
    GET    /api/posts                 list (search, page, size)   200
    GET    /api/posts/count           count (search)              200
    GET    /api/posts/{id}            get                         200 | 404
    POST   /api/posts                 create                      201
    PUT    /api/posts/{id}            update                      200 | 404 | 500
    DELETE /api/posts/{id}            delete                      200 | 404 | 500
    POST   /api/posts/{id}/like       add like                    200 | 404 | 500
    DELETE /api/posts/{id}/like       remove like                 200 | 404 | 500
    GET    /api/posts/{id}/image      image bytes                 200 | 404
    POST   /api/posts/{id}/image      upload (multipart "image")  200 | 400 | 500
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import BlogError, NotFoundError, ValidationError
from app.schemas.post import CreatePostRequest, PostResponse, UpdatePostRequest
from app.services.post_service import PostService, get_post_service

router = APIRouter(prefix="/api/posts", tags=["Posts"])

_NOT_FOUND = {404: {"description": "Post not found"}}
_SERVER_ERROR = {500: {"description": "Server error"}}


@router.get(
    "",
    response_model=List[PostResponse],
    summary="List posts with search and pagination",
    description=(
        "Returns one page of posts, newest first. `search` filters by a "
        "case-insensitive substring of title or content. The X-Total-Count "
        "header carries the number of matching posts."
    ),
)
async def list_posts(
    response: Response,
    search: Optional[str] = Query(default=None, description="Substring to match in title or content"),
    page: int = Query(default=1, ge=1, description="1-based page number"),
    size: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Posts per page",
    ),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    posts = await service.get_all_posts(db, search=search, page=page, size=size)
    total = await service.get_total_count(db, search=search)
    response.headers["X-Total-Count"] = str(total)
    return posts


# Declared before /{post_id} so "count" is not parsed as an id
@router.get(
    "/count",
    response_model=int,
    summary="Count posts matching an optional search",
)
async def count_posts(
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> int:
    return await service.get_total_count(db, search=search)


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses=_NOT_FOUND,
    summary="Get a single post",
)
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await service.get_post_by_id(db, post_id)


@router.post(
    "",
    status_code=201,
    response_model=PostResponse,
    summary="Create a post",
)
async def create_post(
    request: CreatePostRequest,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await service.create_post(db, request)


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Update a post",
    description="Partial update: title and content are each optional.",
)
async def update_post(
    post_id: int,
    request: UpdatePostRequest,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await service.update_post(db, post_id, request)


@router.delete(
    "/{post_id}",
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete a post with its comments and image",
)
async def delete_post(
    post_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> Response:
    await service.delete_post(db, post_id)
    return Response(status_code=200)


@router.post(
    "/{post_id}/like",
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Add one like",
)
async def add_like(
    post_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> Response:
    await service.increment_likes(db, post_id)
    return Response(status_code=200)


@router.delete(
    "/{post_id}/like",
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Remove one like",
    description="The like count never drops below zero.",
)
async def remove_like(
    post_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> Response:
    await service.decrement_likes(db, post_id)
    return Response(status_code=200)


@router.get(
    "/{post_id}/image",
    responses={
        200: {"description": "Image bytes", "content": {"image/*": {}}},
        **_NOT_FOUND,
    },
    summary="Download the post image",
)
async def get_post_image(
    post_id: int,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> Response:
    data = await service.get_post_image(db, post_id)
    content_type = (
        await service.get_image_content_type(db, post_id)
        or settings.default_image_content_type
    )
    return Response(content=data, media_type=content_type)


@router.post(
    "/{post_id}/image",
    responses={
        400: {"description": "Empty or oversized image"},
        500: {"description": "Post missing or image could not be stored"},
    },
    summary="Upload or replace the post image",
)
async def upload_post_image(
    post_id: int,
    image: UploadFile = File(..., description="Image file"),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    service: PostService = Depends(get_post_service),
) -> Response:
    try:
        content = await image.read()
    finally:
        await image.close()

    if not content:
        raise ValidationError(message="Uploaded image is empty", field="image")

    try:
        await service.save_image(db, post_id, content, image.content_type)
    except NotFoundError as e:
        # Upload answers 200 | 400 | 500 only: a missing post is a processing failure
        raise BlogError(message=e.message, context=e.context) from e
    return Response(status_code=200)
