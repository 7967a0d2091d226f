"""Database operations for Pinboard entities."""

import logging
from typing import Any, Dict, List, Mapping, Optional

import asyncpg

from ..errors.problem_details import (
    BadRequestError, ConflictError, InternalServerError, NotFoundError
)
from ..pagination import (
    PageResult, PaginationParams, SortDirection, decode_cursor, make_cursor_pagination
)
from .connection import get_db_pool
from .executor import execute_predicate
from .tables import TAG_LINKS, Table, UnknownFieldError, posts_table, quote_identifier, tags_table


logger = logging.getLogger(__name__)


async def list_rows(
    table: Table,
    field: str,
    order: str,
    limit: int,
    cursor: Optional[str] = None,
    filters: Optional[Mapping[str, Any]] = None,
    tag_id: Optional[int] = None
) -> PageResult[Dict[str, Any]]:
    """List rows of a table with cursor-based pagination.

    Args:
        table: Table to list
        field: API field to sort and paginate by
        order: Sort order ('asc' or 'desc')
        limit: Requested page size, already validated as positive
        cursor: Optional cursor token from a previous page
        filters: Optional equality filters by API field
        tag_id: Optional tag the rows must be linked to

    Returns:
        Page whose items are keyed by API field

    Raises:
        BadRequestError: If the field, cursor or tag filter is invalid, or if
            more than ``limit`` rows share the cursor's sort value
        InternalServerError: If the database operation fails
        PaginationStateError: If the query returned more rows than planned
    """
    try:
        column, kind = table.sort_column(field)
    except UnknownFieldError as e:
        raise BadRequestError(str(e), sortable_fields=sorted(table.sortable))

    cursor_value = None
    if cursor:
        cursor_value = decode_cursor(cursor)
        if cursor_value.kind is not kind:
            raise BadRequestError(
                f"Cursor of kind '{cursor_value.kind.value}' cannot be used to sort by '{field}'"
            )

    tag_link = None
    if tag_id is not None:
        tag_link = TAG_LINKS.get(table.name)
        if tag_link is None:
            raise BadRequestError(f"Table '{table.name}' cannot be filtered by tag")

    pagination = make_cursor_pagination(PaginationParams(
        field=column,
        sort_direction=SortDirection(order),
        limit=limit,
        cursor=cursor_value
    ))

    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            rows = await execute_predicate(
                conn, table, pagination.predicate, filters, tag_link, tag_id
            )
    except UnknownFieldError as e:
        raise BadRequestError(str(e))
    except asyncpg.PostgresError as e:
        logger.error(f"Database error listing {table.name}: {e}")
        raise InternalServerError(f"Database error: {e}")

    page = pagination.reduce(rows)

    # The next request would repeat this one exactly and never advance.
    if cursor_value is not None and page.cursors.next == cursor_value:
        logger.warning(
            f"Listing {table.name} by {field} stalled: more than {limit} rows share the cursor value"
        )
        raise BadRequestError(
            f"More than {limit} rows share the '{field}' value of this cursor; "
            f"request a larger limit or sort by a unique field",
            sort_field=field,
            limit=limit
        )

    logger.debug(
        f"Listed {len(page.items)} {table.name} sorted by {field} {order} (has_more={page.has_more})"
    )

    return PageResult(
        items=[table.to_fields(row) for row in page.items],
        cursors=page.cursors
    )


async def get_row(table: Table, row_id: int) -> Dict[str, Any]:
    """Fetch one row by id, keyed by API field.

    Raises:
        NotFoundError: If no row has this id
        InternalServerError: If the database operation fails
    """
    pool = await get_db_pool()
    query = (
        f"SELECT {table.select_list} FROM {quote_identifier(table.name)} "
        f"WHERE {quote_identifier(table.column('id'))} = $1"
    )

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(query, row_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Database error getting {table.name} {row_id}: {e}")
        raise InternalServerError(f"Database error: {e}")

    if row is None:
        raise NotFoundError(f"No row with id {row_id} in '{table.name}'")
    return table.to_fields(row)


async def _insert(conn: asyncpg.Connection, table: Table, values: Mapping[str, Any]) -> asyncpg.Record:
    """Insert one row given by API field and return it."""
    columns = ", ".join(quote_identifier(table.column(name)) for name in values)
    placeholders = ", ".join(f"${i}" for i in range(1, len(values) + 1))
    query = (
        f"INSERT INTO {quote_identifier(table.name)} ({columns}) "
        f"VALUES ({placeholders}) RETURNING {table.select_list}"
    )
    return await conn.fetchrow(query, *values.values())


async def create_tag(name: str) -> Dict[str, Any]:
    """Create a tag.

    Raises:
        ConflictError: If a tag with this name exists
        InternalServerError: If the database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await _insert(conn, tags_table, {"name": name})
    except asyncpg.UniqueViolationError:
        raise ConflictError(f"Tag '{name}' already exists")
    except asyncpg.PostgresError as e:
        logger.error(f"Database error creating tag: {e}")
        raise InternalServerError(f"Database error: {e}")

    logger.info(f"Created tag {row['id']} ({name})")
    return tags_table.to_fields(row)


async def create_post(
    owner_id: int,
    title: str,
    body: str,
    tag_ids: Optional[List[int]] = None
) -> Dict[str, Any]:
    """Create a post and link it to tags in one transaction.

    Raises:
        NotFoundError: If the owner or one of the tags does not exist
        InternalServerError: If the database operation fails
    """
    link = TAG_LINKS[posts_table.name]
    # Duplicates would violate the link table's unique constraint
    tag_ids = list(dict.fromkeys(tag_ids or []))
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                row = await _insert(conn, posts_table, {
                    "ownerId": owner_id, "title": title, "body": body
                })
                if tag_ids:
                    await conn.executemany(
                        f"INSERT INTO {quote_identifier(link.table.name)} "
                        f"({quote_identifier(link.table.column(link.entity_field))}, "
                        f"{quote_identifier(link.table.column(link.tag_field))}) VALUES ($1, $2)",
                        [(row["id"], tag_id) for tag_id in tag_ids]
                    )
    except asyncpg.ForeignKeyViolationError as e:
        logger.warning(f"Rejected post for owner {owner_id} with tags {tag_ids}: {e}")
        raise NotFoundError("Owner or tag not found", owner_id=owner_id, tag_ids=tag_ids)
    except asyncpg.PostgresError as e:
        logger.error(f"Database error creating post: {e}")
        raise InternalServerError(f"Database error: {e}")

    logger.info(f"Created post {row['id']} for owner {owner_id} with {len(tag_ids)} tags")
    return posts_table.to_fields(row)
