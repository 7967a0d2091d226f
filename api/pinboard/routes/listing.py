"""List endpoints for users, posts, images and tags."""

import logging
from typing import Annotated, Any, Dict, Optional, Type

from fastapi import APIRouter, Query, Request, Response

from ..config import get_settings
from ..db.repository import list_rows
from ..db.tables import Table, images_table, posts_table, tags_table, users_table
from ..errors.problem_details import BadRequestError
from ..models.entities import Image, Page, Post, Tag, User
from ..pagination import create_link_header


logger = logging.getLogger(__name__)

listing_router = APIRouter(
    tags=["Listing"],
    responses={
        400: {"description": "Bad Request - Invalid sort field or cursor"},
        422: {"description": "Validation Error"}
    }
)

LimitParam = Annotated[Optional[int], Query(ge=1, description="Number of items per page")]
CursorParam = Annotated[Optional[str], Query(description="Cursor token from a previous page")]
OrderParam = Annotated[str, Query(pattern="^(asc|desc)$", description="Sort order")]
SortFieldParam = Annotated[Optional[str], Query(description="Field to sort and paginate by")]
OwnerIdParam = Annotated[Optional[int], Query(alias="ownerId", description="Only items owned by this user")]
TagIdParam = Annotated[Optional[int], Query(alias="tagId", description="Only items carrying this tag")]


async def _list_page(
    table: Table,
    model: Type[Page],
    request: Request,
    response: Response,
    field: Optional[str],
    order: str,
    limit: Optional[int],
    cursor: Optional[str],
    filters: Optional[Dict[str, Any]] = None,
    tag_id: Optional[int] = None
) -> Page:
    """Fetch one page of a table and attach the Link header."""
    settings = get_settings()

    if limit is None:
        limit = settings.default_page_size
    if limit > settings.max_page_size:
        raise BadRequestError(
            f"limit must not exceed {settings.max_page_size}",
            max_page_size=settings.max_page_size
        )
    field = field or settings.default_sort_field
    filters = {name: value for name, value in (filters or {}).items() if value is not None}

    logger.info(f"Listing {table.name} sorted by {field} {order} (limit={limit})")

    result = await list_rows(
        table, field, order, limit,
        cursor=cursor, filters=filters, tag_id=tag_id
    )
    page = model.from_result(result)

    # Add Link header for pagination (RFC 8288)
    if page.cursors.next:
        base_url = settings.api_url.rstrip("/") + request.url.path
        current_params = {"limit": str(limit), "field": field, "order": order}
        for name, value in filters.items():
            current_params[name] = str(value)
        if tag_id is not None:
            current_params["tagId"] = str(tag_id)

        link_header = create_link_header(
            base_url=base_url,
            params=current_params,
            next_cursor=page.cursors.next,
            start_cursor=page.cursors.start
        )
        if link_header:
            response.headers["Link"] = link_header

    return page


@listing_router.get(
    "/users",
    response_model=Page[User],
    summary="List users",
    description="List users with cursor-based pagination."
)
async def list_users(
    request: Request,
    response: Response,
    limit: LimitParam = None,
    cursor: CursorParam = None,
    field: SortFieldParam = None,
    order: OrderParam = "desc"
) -> Page[User]:
    return await _list_page(users_table, Page[User], request, response, field, order, limit, cursor)


@listing_router.get(
    "/posts",
    response_model=Page[Post],
    summary="List posts",
    description="List posts with cursor-based pagination, optionally by owner or tag."
)
async def list_posts(
    request: Request,
    response: Response,
    limit: LimitParam = None,
    cursor: CursorParam = None,
    field: SortFieldParam = None,
    order: OrderParam = "desc",
    owner_id: OwnerIdParam = None,
    tag_id: TagIdParam = None
) -> Page[Post]:
    return await _list_page(
        posts_table, Page[Post], request, response, field, order, limit, cursor,
        filters={"ownerId": owner_id}, tag_id=tag_id
    )


@listing_router.get(
    "/images",
    response_model=Page[Image],
    summary="List images",
    description="List images with cursor-based pagination, optionally by owner or tag."
)
async def list_images(
    request: Request,
    response: Response,
    limit: LimitParam = None,
    cursor: CursorParam = None,
    field: SortFieldParam = None,
    order: OrderParam = "desc",
    owner_id: OwnerIdParam = None,
    tag_id: TagIdParam = None
) -> Page[Image]:
    return await _list_page(
        images_table, Page[Image], request, response, field, order, limit, cursor,
        filters={"ownerId": owner_id}, tag_id=tag_id
    )


@listing_router.get(
    "/tags",
    response_model=Page[Tag],
    summary="List tags",
    description="List tags with cursor-based pagination."
)
async def list_tags(
    request: Request,
    response: Response,
    limit: LimitParam = None,
    cursor: CursorParam = None,
    field: SortFieldParam = None,
    order: OrderParam = "desc"
) -> Page[Tag]:
    return await _list_page(tags_table, Page[Tag], request, response, field, order, limit, cursor)
