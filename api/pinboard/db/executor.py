"""Query execution for planned pagination predicates."""

import logging
from typing import Any, List, Mapping, Optional, Tuple

import asyncpg

from ..pagination import Predicate
from .tables import Table, TagLink, quote_identifier


logger = logging.getLogger(__name__)


def render_query(
    table: Table,
    predicate: Predicate,
    filters: Optional[Mapping[str, Any]] = None,
    tag_link: Optional[TagLink] = None,
    tag_id: Optional[int] = None
) -> Tuple[str, List[Any]]:
    """Render a pagination predicate as a parameterized SELECT.

    The predicate's ordering field and filter field are column names; the
    equality ``filters`` are keyed by API field.

    Args:
        table: Table to select from
        predicate: Planned ordering, limit and cursor filter
        filters: Optional equality filters by API field
        tag_link: Join table to use when filtering by tag
        tag_id: Only select rows linked to this tag (requires ``tag_link``)

    Returns:
        Tuple of (query, parameters)

    Raises:
        UnknownFieldError: If a filter names a field the table does not have
    """
    conditions = []
    params: List[Any] = []

    for field_name, value in (filters or {}).items():
        params.append(value)
        conditions.append(f"{quote_identifier(table.column(field_name))} = ${len(params)}")

    if tag_id is not None:
        if tag_link is None:
            raise ValueError(f"Table '{table.name}' has no tag link")
        params.append(tag_id)
        conditions.append(
            f"{quote_identifier(table.column('id'))} IN ("
            f"SELECT {quote_identifier(tag_link.table.column(tag_link.entity_field))} "
            f"FROM {quote_identifier(tag_link.table.name)} "
            f"WHERE {quote_identifier(tag_link.table.column(tag_link.tag_field))} = ${len(params)})"
        )

    where = predicate.where
    if not where.is_tautology:
        params.append(where.cursor.value)
        conditions.append(f"{quote_identifier(where.field)} {where.comparator.value} ${len(params)}")

    where_clause = " AND ".join(conditions) if conditions else "TRUE"
    order_field, direction = predicate.order_by

    params.append(predicate.limit)
    query = (
        f"SELECT {table.select_list} "
        f"FROM {quote_identifier(table.name)} "
        f"WHERE {where_clause} "
        f"ORDER BY {quote_identifier(order_field)} {direction.value.upper()} "
        f"LIMIT ${len(params)}"
    )
    return query, params


async def execute_predicate(
    conn: asyncpg.Connection,
    table: Table,
    predicate: Predicate,
    filters: Optional[Mapping[str, Any]] = None,
    tag_link: Optional[TagLink] = None,
    tag_id: Optional[int] = None
) -> List[asyncpg.Record]:
    """Run a pagination predicate and return the raw rows in order."""
    query, params = render_query(table, predicate, filters, tag_link, tag_id)
    logger.debug(f"Executing paginated query on {table.name}: {query}")
    return await conn.fetch(query, *params)
