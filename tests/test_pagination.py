"""Test page walking"""

from unittest.mock import AsyncMock

import pytest

from remotify.core.pagination import walk_cursor_pages, walk_pages


def fetcher(pages):
    return AsyncMock(side_effect=lambda url: pages[url])


class TestWalkPages:
    """Test offset/URL pagination"""

    @pytest.mark.asyncio
    async def test_single_page(self):
        fetch = fetcher({})
        items = await walk_pages({"items": [1, 2, 3], "next": None}, fetch)

        assert items == [1, 2, 3]
        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_page_chain_keeps_order(self):
        fetch = fetcher({
            "url-1": {"items": [3, 4], "next": "url-2"},
            "url-2": {"items": [5], "next": None},
        })
        items = await walk_pages({"items": [1, 2], "next": "url-1"}, fetch)

        assert items == [1, 2, 3, 4, 5]
        assert [c.args[0] for c in fetch.call_args_list] == ["url-1", "url-2"]

    @pytest.mark.asyncio
    async def test_empty_pages_in_chain(self):
        fetch = fetcher({"url-1": {"items": [], "next": "url-2"}, "url-2": {"items": ["x"]}})
        assert await walk_pages({"items": [], "next": "url-1"}, fetch) == ["x"]

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self):
        fetch = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await walk_pages({"items": [1], "next": "url-1"}, fetch)


class TestWalkCursorPages:
    """Test cursor pagination"""

    @pytest.mark.asyncio
    async def test_plain_cursor_pages(self):
        fetch = fetcher({"c-1": {"items": ["b"], "next": None, "cursors": {"after": None}}})
        first = {"items": ["a"], "next": "c-1", "cursors": {"after": "x"}}

        assert await walk_cursor_pages(first, fetch) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_wrapped_cursor_pages(self):
        fetch = fetcher({
            "c-1": {"artists": {"items": ["b"], "next": "c-2"}},
            "c-2": {"artists": {"items": ["c"], "next": None}},
        })
        first = {"items": ["a"], "next": "c-1"}

        assert await walk_cursor_pages(first, fetch, key="artists") == ["a", "b", "c"]
