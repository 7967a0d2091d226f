"""Single-entity endpoints: fetch by id and create."""

import logging
from typing import Annotated

from fastapi import APIRouter, Path

from ..db.repository import create_post, create_tag, get_row
from ..db.tables import images_table, posts_table, tags_table, users_table
from ..models.entities import Image, Post, PostCreate, Tag, TagCreate, User


logger = logging.getLogger(__name__)

entities_router = APIRouter(
    tags=["Entities"],
    responses={
        404: {"description": "Not Found"},
        422: {"description": "Validation Error"}
    }
)

IdParam = Annotated[int, Path(ge=1, description="Row identifier")]


@entities_router.get("/users/{user_id}", response_model=User, summary="Get a user")
async def get_user(user_id: IdParam) -> User:
    return User.model_validate(await get_row(users_table, user_id))


@entities_router.get("/posts/{post_id}", response_model=Post, summary="Get a post")
async def get_post(post_id: IdParam) -> Post:
    return Post.model_validate(await get_row(posts_table, post_id))


@entities_router.get("/images/{image_id}", response_model=Image, summary="Get an image")
async def get_image(image_id: IdParam) -> Image:
    return Image.model_validate(await get_row(images_table, image_id))


@entities_router.get("/tags/{tag_id}", response_model=Tag, summary="Get a tag")
async def get_tag(tag_id: IdParam) -> Tag:
    return Tag.model_validate(await get_row(tags_table, tag_id))


@entities_router.post(
    "/tags",
    response_model=Tag,
    status_code=201,
    summary="Create a tag",
    responses={409: {"description": "A tag with this name already exists"}}
)
async def add_tag(tag_data: TagCreate) -> Tag:
    logger.info(f"Creating tag '{tag_data.name}'")
    return Tag.model_validate(await create_tag(tag_data.name))


@entities_router.post(
    "/posts",
    response_model=Post,
    status_code=201,
    summary="Create a post",
    description="Create a post owned by an existing user, optionally tagged with existing tags."
)
async def add_post(post_data: PostCreate) -> Post:
    logger.info(f"Creating post for owner {post_data.owner_id} with tags {post_data.tag_ids}")
    row = await create_post(
        post_data.owner_id, post_data.title, post_data.body, post_data.tag_ids
    )
    return Post.model_validate(row)
