"""Pydantic models for Pinboard entities and paginated lists."""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..pagination import Cursors, PageResult, encode_cursor


class EntityBase(BaseModel):
    """Base model for rows exposed through the API, serialized in camelCase."""

    id: int = Field(description="Row identifier")
    creation_timestamp: datetime = Field(description="When the row was created")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(EntityBase):
    """A registered user."""

    name: str = Field(description="Display name")


class Post(EntityBase):
    """A text post."""

    owner_id: int = Field(description="ID of the user who owns the post")
    title: str = Field(description="Post title")
    body: str = Field(description="Post body")


class Image(EntityBase):
    """An image with an optional caption."""

    owner_id: int = Field(description="ID of the user who owns the image")
    url: str = Field(description="Image URL")
    caption: Optional[str] = Field(default=None, description="Image caption")


class Tag(EntityBase):
    """A tag that can be attached to posts and images."""

    name: str = Field(description="Tag name")


class TagCreate(BaseModel):
    """Request body for creating a tag."""

    name: str = Field(min_length=1, max_length=100, description="Tag name, unique across tags")

    model_config = ConfigDict(json_schema_extra={"example": {"name": "landscape"}})


class PostCreate(BaseModel):
    """Request body for creating a post."""

    owner_id: int = Field(description="ID of the user who owns the post")
    title: str = Field(min_length=1, description="Post title")
    body: str = Field(default="", description="Post body")
    tag_ids: List[int] = Field(default_factory=list, description="IDs of tags to attach")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {"ownerId": 7, "title": "Sunset", "body": "Taken from the pier", "tagIds": [42]}
        }
    )


class PageCursors(BaseModel):
    """Cursor tokens of a page."""

    start: Optional[str] = Field(default=None, description="Cursor this page started from")
    end: Optional[str] = Field(default=None, description="Cursor of the last item on this page")
    next: Optional[str] = Field(default=None, description="Cursor to request the next page with")

    @classmethod
    def from_cursors(cls, cursors: Cursors) -> "PageCursors":
        return cls(
            start=encode_cursor(cursors.start),
            end=encode_cursor(cursors.end),
            next=encode_cursor(cursors.next)
        )


EntityT = TypeVar("EntityT", bound=EntityBase)


class Page(BaseModel, Generic[EntityT]):
    """Response model for a paginated list."""

    items: List[EntityT] = Field(description="Items on this page")
    cursors: PageCursors = Field(description="Cursors for this page")
    has_more: bool = Field(description="Whether more items are available")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [
                    {
                        "id": 42,
                        "creationTimestamp": "2024-01-01T12:00:00Z",
                        "name": "landscape"
                    }
                ],
                "cursors": {
                    "start": None,
                    "end": "eyJrIjoidGltZXN0YW1wIiwidiI6IjIwMjQtMDEtMDFUMTI6MDA6MDArMDA6MDAifQ",
                    "next": "eyJrIjoidGltZXN0YW1wIiwidiI6IjIwMjQtMDEtMDFUMTE6MzA6MDArMDA6MDAifQ"
                },
                "has_more": True
            }
        }
    )

    @classmethod
    def from_result(cls, result: PageResult) -> "Page[EntityT]":
        """Build the response from a reduced page whose items are keyed by API field."""
        return cls(
            items=result.items,
            cursors=PageCursors.from_cursors(result.cursors),
            has_more=result.has_more
        )
