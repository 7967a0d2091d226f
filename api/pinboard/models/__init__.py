"""Pydantic models for Pinboard API."""

from .entities import (
    EntityBase, Image, Page, PageCursors, Post, PostCreate, Tag, TagCreate, User
)

__all__ = [
    "EntityBase",
    "Image",
    "Page",
    "PageCursors",
    "Post",
    "PostCreate",
    "Tag",
    "TagCreate",
    "User"
]
