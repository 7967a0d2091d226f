"""Unit tests for entity database operations."""

from unittest.mock import AsyncMock

import asyncpg
import pytest

from pinboard.db.repository import create_post, create_tag, get_row, list_rows
from pinboard.db.tables import posts_table, tags_table
from pinboard.errors.problem_details import (
    BadRequestError, ConflictError, InternalServerError, NotFoundError
)
from pinboard.pagination import Cursor, PaginationStateError, encode_cursor


class TestListRows:
    """Test list_rows against a mocked pool."""

    @pytest.mark.asyncio
    async def test_first_page(self, mock_db_pool, tag_rows):
        """Test a first page trims the extra row and maps columns to fields."""
        _, mock_conn = mock_db_pool
        mock_conn.fetch.return_value = tag_rows[:3]

        page = await list_rows(tags_table, "id", "asc", 2)

        assert [item["id"] for item in page.items] == [1, 2]
        assert page.items[0]["creationTimestamp"] == tag_rows[0]["creation_timestamp"]
        assert "creation_timestamp" not in page.items[0]
        assert page.cursors.start is None
        assert page.cursors.end == Cursor.from_value(2)
        assert page.cursors.next == Cursor.from_value(3)

        query, *params = mock_conn.fetch.await_args.args
        assert 'ORDER BY "id" ASC' in query
        assert params == [3]

    @pytest.mark.asyncio
    async def test_cursor_is_decoded_and_applied(self, mock_db_pool, tag_rows):
        """Test the cursor token becomes an inclusive comparison."""
        _, mock_conn = mock_db_pool
        mock_conn.fetch.return_value = tag_rows[2:4]
        token = encode_cursor(Cursor.from_value(tag_rows[2]["creation_timestamp"]))

        page = await list_rows(tags_table, "creationTimestamp", "asc", 2, cursor=token)

        query, *params = mock_conn.fetch.await_args.args
        assert '"creation_timestamp" >= $1' in query
        assert params == [tag_rows[2]["creation_timestamp"], 3]
        assert page.cursors.start == Cursor.from_value(tag_rows[2]["creation_timestamp"])
        assert page.cursors.next is None

    @pytest.mark.asyncio
    async def test_empty_page(self, mock_db_pool):
        """Test an empty result keeps the supplied cursor as start and end."""
        token = encode_cursor(Cursor.from_value(99))

        page = await list_rows(tags_table, "id", "desc", 2, cursor=token)

        assert page.items == []
        assert page.cursors.start == page.cursors.end == Cursor.from_value(99)
        assert not page.has_more

    @pytest.mark.asyncio
    async def test_filters_and_tag(self, mock_db_pool):
        """Test owner and tag filters reach the query."""
        _, mock_conn = mock_db_pool

        await list_rows(posts_table, "id", "desc", 2, filters={"ownerId": 5}, tag_id=8)

        query, *params = mock_conn.fetch.await_args.args
        assert '"owner_id" = $1' in query
        assert '"post_tags"' in query
        assert params == [5, 8, 3]

    @pytest.mark.asyncio
    async def test_unknown_sort_field(self, mock_db_pool):
        """Test sorting by an unknown field is a bad request."""
        with pytest.raises(BadRequestError) as exc_info:
            await list_rows(tags_table, "ownerId", "desc", 2)

        assert exc_info.value.extensions["sortable_fields"] == ["creationTimestamp", "id", "name"]

    @pytest.mark.asyncio
    async def test_cursor_kind_mismatch(self, mock_db_pool):
        """Test a cursor from another sort field is a bad request."""
        token = encode_cursor(Cursor.from_value("sunset"))

        with pytest.raises(BadRequestError) as exc_info:
            await list_rows(tags_table, "id", "desc", 2, cursor=token)

        assert "cannot be used to sort by 'id'" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_malformed_cursor(self, mock_db_pool):
        """Test an undecodable cursor is a bad request."""
        with pytest.raises(BadRequestError):
            await list_rows(tags_table, "id", "desc", 2, cursor="%%%")

    @pytest.mark.asyncio
    async def test_tag_filter_on_tags(self, mock_db_pool):
        """Test tags themselves cannot be filtered by tag."""
        with pytest.raises(BadRequestError):
            await list_rows(tags_table, "id", "desc", 2, tag_id=1)

    @pytest.mark.asyncio
    async def test_unknown_filter_field(self, mock_db_pool):
        """Test a filter on a missing column is a bad request."""
        with pytest.raises(BadRequestError):
            await list_rows(tags_table, "id", "desc", 2, filters={"ownerId": 1})

    @pytest.mark.asyncio
    async def test_database_error(self, mock_db_pool):
        """Test asyncpg errors become internal server errors."""
        _, mock_conn = mock_db_pool
        mock_conn.fetch = AsyncMock(side_effect=asyncpg.PostgresError("boom"))

        with pytest.raises(InternalServerError):
            await list_rows(tags_table, "id", "desc", 2)

    @pytest.mark.asyncio
    async def test_executor_ignoring_limit_propagates(self, mock_db_pool, tag_rows):
        """Test too many rows is reported as a pagination state error, not a page."""
        _, mock_conn = mock_db_pool
        mock_conn.fetch.return_value = tag_rows[:5]

        with pytest.raises(PaginationStateError):
            await list_rows(tags_table, "id", "asc", 2)


class TestTiedSortValues:
    """Test paging over rows that share their sort value."""

    @pytest.mark.asyncio
    async def test_following_next_over_tied_rows_terminates(self, mock_db_pool, tied_tag_rows):
        """Test a cursor that cannot advance is rejected instead of repeating the page."""
        _, mock_conn = mock_db_pool
        # Every row matches "<= shared timestamp", so the database returns the same head.
        mock_conn.fetch.side_effect = lambda query, *params: tied_tag_rows[:params[-1]]

        pages = []
        cursor = None
        with pytest.raises(BadRequestError) as exc_info:
            for _ in range(10):
                page = await list_rows(tags_table, "creationTimestamp", "desc", 2, cursor=cursor)
                pages.append([item["id"] for item in page.items])
                cursor = encode_cursor(page.cursors.next)

        assert pages == [[5, 4]]
        assert exc_info.value.extensions == {"sort_field": "creationTimestamp", "limit": 2}
        assert "larger limit" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_ties_smaller_than_limit_advance(self, mock_db_pool, tag_rows):
        """Test rows sharing the cursor value only repeat at the boundary."""
        _, mock_conn = mock_db_pool
        shared = tag_rows[3]["creation_timestamp"]
        rows = [dict(tag_rows[2], creation_timestamp=shared), tag_rows[3], tag_rows[4]]
        mock_conn.fetch.return_value = rows

        page = await list_rows(
            tags_table, "creationTimestamp", "asc", 2, cursor=encode_cursor(Cursor.from_value(shared))
        )

        assert [item["id"] for item in page.items] == [3, 4]
        assert page.cursors.next == Cursor.from_value(tag_rows[4]["creation_timestamp"])

    @pytest.mark.asyncio
    async def test_tied_rows_page_by_id(self, mock_db_pool, tied_tag_rows):
        """Test the unique id sort pages tied timestamps without stalling."""
        _, mock_conn = mock_db_pool
        mock_conn.fetch.return_value = tied_tag_rows[2:5]

        page = await list_rows(tags_table, "id", "desc", 2, cursor=encode_cursor(Cursor.from_value(3)))

        assert [item["id"] for item in page.items] == [3, 2]
        assert page.cursors.next == Cursor.from_value(1)


class TestGetRow:
    """Test fetching a single row."""

    @pytest.mark.asyncio
    async def test_found(self, mock_db_pool, tag_rows):
        """Test a row is returned keyed by API field."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.return_value = tag_rows[0]

        row = await get_row(tags_table, 1)

        assert row == {"id": 1, "creationTimestamp": tag_rows[0]["creation_timestamp"], "name": "tag-1"}
        query, row_id = mock_conn.fetchrow.await_args.args
        assert query == 'SELECT "id", "creation_timestamp", "name" FROM "tags" WHERE "id" = $1'
        assert row_id == 1

    @pytest.mark.asyncio
    async def test_missing(self, mock_db_pool):
        """Test a missing row is not found."""
        with pytest.raises(NotFoundError) as exc_info:
            await get_row(posts_table, 404)

        assert exc_info.value.status == 404
        assert "404" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_database_error(self, mock_db_pool):
        """Test asyncpg errors become internal server errors."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.side_effect = asyncpg.PostgresError("boom")

        with pytest.raises(InternalServerError):
            await get_row(tags_table, 1)


class TestCreateTag:
    """Test tag creation."""

    @pytest.mark.asyncio
    async def test_create(self, mock_db_pool, tag_rows):
        """Test the insert statement and returned fields."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.return_value = tag_rows[0]

        tag = await create_tag("tag-1")

        assert tag["name"] == "tag-1"
        query, *params = mock_conn.fetchrow.await_args.args
        assert query == (
            'INSERT INTO "tags" ("name") VALUES ($1) '
            'RETURNING "id", "creation_timestamp", "name"'
        )
        assert params == ["tag-1"]

    @pytest.mark.asyncio
    async def test_duplicate_name(self, mock_db_pool):
        """Test a duplicate name is a conflict."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(ConflictError) as exc_info:
            await create_tag("sunset")

        assert exc_info.value.status == 409


class TestCreatePost:
    """Test post creation."""

    @pytest.fixture
    def post_row(self, tag_rows):
        return {
            "id": 12,
            "creation_timestamp": tag_rows[0]["creation_timestamp"],
            "owner_id": 7,
            "title": "Sunset",
            "body": "From the pier"
        }

    @pytest.mark.asyncio
    async def test_create_with_tags(self, mock_db_pool, post_row):
        """Test the post and its tag links are written in one transaction."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.return_value = post_row

        post = await create_post(7, "Sunset", "From the pier", [4, 9, 4])

        assert post["ownerId"] == 7
        assert post["id"] == 12
        mock_conn.transaction.assert_called_once()
        query, *params = mock_conn.fetchrow.await_args.args
        assert query.startswith('INSERT INTO "posts" ("owner_id", "title", "body") VALUES ($1, $2, $3)')
        assert params == [7, "Sunset", "From the pier"]
        link_query, link_rows = mock_conn.executemany.await_args.args
        assert link_query == 'INSERT INTO "post_tags" ("post_id", "tag_id") VALUES ($1, $2)'
        assert link_rows == [(12, 4), (12, 9)]

    @pytest.mark.asyncio
    async def test_create_without_tags(self, mock_db_pool, post_row):
        """Test no link rows are written for an untagged post."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.return_value = post_row

        await create_post(7, "Sunset", "From the pier")

        mock_conn.executemany.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_owner_or_tag(self, mock_db_pool, post_row):
        """Test a foreign key violation is reported as not found."""
        _, mock_conn = mock_db_pool
        mock_conn.fetchrow.return_value = post_row
        mock_conn.executemany.side_effect = asyncpg.ForeignKeyViolationError("fk")

        with pytest.raises(NotFoundError) as exc_info:
            await create_post(7, "Sunset", "", [99])

        assert exc_info.value.extensions == {"owner_id": 7, "tag_ids": [99]}
