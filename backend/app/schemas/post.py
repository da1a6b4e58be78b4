"""
Blog Backend - Post Request/Response Schemas
==============================================

What:  Pydantic models defining the JSON contract of the /api/posts endpoints.
How:   camelCase on the wire (alias generator), snake_case in Python.
       Inputs accept either spelling; responses are serialized by alias.

Example response:
    {
        "id": 12,
        "title": "Hello",
        "content": "First post",
        "likes": 3,
        "hasImage": true,
        "imageContentType": "image/png",
        "createdAt": "2024-01-15T12:00:00Z",
        "updatedAt": null
    }
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every API schema: camelCase aliases, populate by field name too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreatePostRequest(CamelModel):
    title: str = Field(max_length=255, description="Post title")
    content: str = Field(description="Post body")


class UpdatePostRequest(CamelModel):
    """Partial update: fields left out (or null) keep their stored value."""

    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = Field(default=None)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(CamelModel):
    id: int = Field(description="Post identifier, immutable once assigned")
    title: str
    content: str
    likes: int = Field(default=0, ge=0, description="Number of likes, never negative")
    has_image: bool = Field(default=False, description="Whether an image was uploaded")
    image_content_type: Optional[str] = Field(default=None)
    created_at: datetime
    updated_at: Optional[datetime] = None
