"""Table definitions mapping API field names to database columns."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from ..pagination import CursorKind


class UnknownFieldError(KeyError):
    """Raised when a field is not defined (or not sortable) on a table."""

    def __init__(self, table: str, field_name: str):
        self.table = table
        self.field_name = field_name
        super().__init__(field_name)

    def __str__(self) -> str:
        return f"Unknown field '{self.field_name}' for table '{self.table}'"


@dataclass(frozen=True)
class Table:
    """
    A database table as seen by the API.

    ``columns`` maps camelCase API fields to snake_case columns; ``sortable``
    lists the fields that can drive cursor pagination and the cursor kind of
    each.
    """
    name: str
    columns: Dict[str, str]
    sortable: Dict[str, CursorKind] = field(default_factory=dict)

    def __post_init__(self):
        missing = [name for name in self.sortable if name not in self.columns]
        if missing:
            raise ValueError(f"Sortable fields {missing} are not columns of table '{self.name}'")

    def column(self, field_name: str) -> str:
        """Column name for an API field."""
        try:
            return self.columns[field_name]
        except KeyError:
            raise UnknownFieldError(self.name, field_name) from None

    def sort_column(self, field_name: str) -> Tuple[str, CursorKind]:
        """Column name and cursor kind for a sortable API field.

        Raises:
            UnknownFieldError: If the field does not exist or is not sortable
        """
        if field_name not in self.sortable:
            raise UnknownFieldError(self.name, field_name)
        return self.columns[field_name], self.sortable[field_name]

    @property
    def select_list(self) -> str:
        return ", ".join(quote_identifier(column) for column in self.columns.values())

    def to_fields(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Convert a database row keyed by column into a dict keyed by API field."""
        return {name: row[column] for name, column in self.columns.items()}


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier for PostgreSQL."""
    return '"' + name.replace('"', '""') + '"'


users_table = Table("users", {
    "id": "id",
    "name": "name",
    "creationTimestamp": "creation_timestamp",
}, sortable={
    "id": CursorKind.INTEGER,
    "name": CursorKind.TEXT,
    "creationTimestamp": CursorKind.TIMESTAMP,
})

posts_table = Table("posts", {
    "id": "id",
    "creationTimestamp": "creation_timestamp",
    "ownerId": "owner_id",
    "title": "title",
    "body": "body",
}, sortable={
    "id": CursorKind.INTEGER,
    "title": CursorKind.TEXT,
    "creationTimestamp": CursorKind.TIMESTAMP,
})

images_table = Table("images", {
    "id": "id",
    "creationTimestamp": "creation_timestamp",
    "ownerId": "owner_id",
    "url": "url",
    "caption": "caption",
}, sortable={
    "id": CursorKind.INTEGER,
    "creationTimestamp": CursorKind.TIMESTAMP,
})

tags_table = Table("tags", {
    "id": "id",
    "creationTimestamp": "creation_timestamp",
    "name": "name",
}, sortable={
    "id": CursorKind.INTEGER,
    "name": CursorKind.TEXT,
    "creationTimestamp": CursorKind.TIMESTAMP,
})

# Join tables are not listed through the API.
post_tags_table = Table("post_tags", {
    "id": "id",
    "creationTimestamp": "creation_timestamp",
    "postId": "post_id",
    "tagId": "tag_id",
})

image_tags_table = Table("image_tags", {
    "id": "id",
    "creationTimestamp": "creation_timestamp",
    "imageId": "image_id",
    "tagId": "tag_id",
})

LISTABLE_TABLES: Dict[str, Table] = {
    table.name: table for table in (users_table, posts_table, images_table, tags_table)
}


@dataclass(frozen=True)
class TagLink:
    """Join table connecting an entity table to tags."""
    table: Table
    entity_field: str
    tag_field: str = "tagId"


TAG_LINKS: Dict[str, TagLink] = {
    "posts": TagLink(post_tags_table, "postId"),
    "images": TagLink(image_tags_table, "imageId"),
}
