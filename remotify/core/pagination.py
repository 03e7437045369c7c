"""Walk Spotify paging objects until ``next`` runs out.

Two page shapes exist: offset pages (``items`` + ``next`` URL) and cursor
pages (same fields plus ``cursors``). Some endpoints, e.g. followed artists,
wrap the cursor page under a top-level key in every response.
"""
from typing import Any, Awaitable, Callable, List, Optional

Fetch = Callable[[str], Awaitable[dict]]


async def walk_pages(first_page: dict, fetch: Fetch) -> List[Any]:
    """Return the items of ``first_page`` and every page after it, in order.

    ``fetch`` does one authenticated GET of a ``next`` URL. There is no page
    cap; the walk stops when the service stops returning ``next``.
    """
    items = list(first_page.get("items") or [])
    next_url = first_page.get("next")
    while next_url:
        page = await fetch(next_url)
        items.extend(page.get("items") or [])
        next_url = page.get("next")
    return items


async def walk_cursor_pages(first_page: dict, fetch: Fetch, key: Optional[str] = None) -> List[Any]:
    """Cursor-based variant. ``key`` unwraps responses shaped like ``{key: page}``;
    ``first_page`` is expected already unwrapped."""
    items = list(first_page.get("items") or [])
    next_url = first_page.get("next")
    while next_url:
        response = await fetch(next_url)
        page = (response.get(key) or {}) if key else response
        items.extend(page.get("items") or [])
        next_url = page.get("next")
    return items
