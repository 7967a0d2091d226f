"""RFC 8288 Link header construction for paginated responses."""

from typing import Any, Dict, Optional
from urllib.parse import urlencode


def create_link_header(
    base_url: str,
    params: Dict[str, Any],
    next_cursor: Optional[str] = None,
    start_cursor: Optional[str] = None
) -> Optional[str]:
    """Create Link header for pagination as per RFC 8288.

    Args:
        base_url: Base URL for the resource, without a query string
        params: Query parameters to carry over to the linked pages
        next_cursor: Token of the next page
        start_cursor: Token the current page started from

    Returns:
        Link header value or None if no links
    """
    links = []

    if next_cursor:
        next_params = {**params, "cursor": next_cursor}
        links.append(f'<{base_url}?{urlencode(next_params)}>; rel="next"')

    if start_cursor:
        self_params = {**params, "cursor": start_cursor}
        links.append(f'<{base_url}?{urlencode(self_params)}>; rel="self"')

    return ", ".join(links) if links else None
