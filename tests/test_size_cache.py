"""
Size cache tests

Refresh triggers (missing / stale by last access), wholesale rebuild with
last-write-wins, and failure handling that keeps the previous mapping.
"""

import httpx
import pytest

from image_service_mcp.size_cache import SizeCache
from image_service_mcp.types import Category, CategorySize

from conftest import CATEGORIES


LIST_PATH = "/api/size/list"


class TestBuildMapping:
    """Flattening categories into one size table"""

    def test_one_entry_per_distinct_name(self):
        """Each size name appears exactly once across categories"""
        categories = [Category.from_dict(c) for c in CATEGORIES]
        mapping = SizeCache.build_mapping(categories)
        assert set(mapping) == {"thumbnail", "large", "medium"}

    def test_last_category_wins(self):
        """thumbnail is defined by both categories → avatars (later) wins"""
        categories = [Category.from_dict(c) for c in CATEGORIES]
        mapping = SizeCache.build_mapping(categories)
        assert mapping["thumbnail"] == CategorySize("thumbnail", 64, 64, "image/png")

    def test_nameless_category_skipped(self):
        """Categories without a name contribute nothing"""
        categories = [Category(name="", sizes=[CategorySize("x", 1, 1, "image/png")])]
        assert SizeCache.build_mapping(categories) == {}

    def test_non_string_size_name_skipped(self):
        """A list-valued size name is dropped instead of breaking the rebuild"""
        categories = [Category.from_dict({
            "name": "c",
            "sizes": [{"name": ["x"]}, {"name": "ok", "width": 1, "height": 1}],
        })]
        assert set(SizeCache.build_mapping(categories)) == {"ok"}


class TestSizeCacheRefresh:
    """When get() goes to the network"""

    @pytest.mark.asyncio
    async def test_first_get_refreshes(self, size_cache, service):
        """Empty cache → one listing request"""
        sizes = await size_cache.get()
        assert len(service.calls("GET", LIST_PATH)) == 1
        assert sizes["large"].width == 1200

    @pytest.mark.asyncio
    async def test_two_gets_within_window_refresh_once(self, size_cache, service, clock):
        """Two reads 4 minutes apart → a single refresh"""
        await size_cache.get()
        clock.advance(4 * 60)
        await size_cache.get()
        assert len(service.calls("GET", LIST_PATH)) == 1

    @pytest.mark.asyncio
    async def test_get_after_window_refreshes(self, size_cache, service, clock):
        """More than 5 minutes idle → refresh on next read"""
        await size_cache.get()
        clock.advance(5 * 60 + 1)
        await size_cache.get()
        assert len(service.calls("GET", LIST_PATH)) == 2

    @pytest.mark.asyncio
    async def test_staleness_measured_from_last_access(self, size_cache, service, clock):
        """Reads every 4 minutes keep the cache fresh indefinitely"""
        await size_cache.get()
        for _ in range(5):
            clock.advance(4 * 60)
            await size_cache.get()
        assert len(service.calls("GET", LIST_PATH)) == 1
        assert clock() - size_cache.last_updated_at == 20 * 60

    @pytest.mark.asyncio
    async def test_never_populated_always_refreshes(self, size_cache, service, clock):
        """No successful load yet → every read retries, regardless of timestamps"""
        service.add("GET", LIST_PATH, status=503, text="unavailable", content_type="text/plain")

        assert await size_cache.get() is None
        clock.advance(1)
        assert await size_cache.get() is None
        assert len(service.calls("GET", LIST_PATH)) == 2

    @pytest.mark.asyncio
    async def test_access_time_updated_on_every_get(self, size_cache, clock):
        """last_accessed_at follows the latest read"""
        await size_cache.get()
        clock.advance(30)
        await size_cache.get()
        assert size_cache.last_accessed_at == clock()


class TestSizeCacheFailures:
    """A failed refresh leaves the previous mapping in place"""

    @pytest.mark.asyncio
    async def test_http_error_keeps_stale_mapping(self, size_cache, service, clock):
        """500 on refresh → previous mapping and timestamp survive"""
        first = await size_cache.get()
        updated_at = size_cache.last_updated_at

        service.add("GET", LIST_PATH, status=500, json_body={"error": "db down"})
        clock.advance(10 * 60)
        second = await size_cache.get()

        assert second is first
        assert size_cache.last_updated_at == updated_at

    @pytest.mark.asyncio
    async def test_transport_error_is_swallowed(self, size_cache, service):
        """Connection errors are logged, get() returns None"""
        service.fail("GET", LIST_PATH, httpx.ConnectError("connection refused"))
        assert await size_cache.get() is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_swallowed(self, size_cache, service):
        """200 with an HTML body counts as a failed refresh"""
        service.add("GET", LIST_PATH, text="<html>", content_type="text/html")
        assert await size_cache.get() is None

    @pytest.mark.asyncio
    async def test_non_list_payload_rejected(self, size_cache, service):
        """An object instead of a list is a failure, cache untouched"""
        service.add("GET", LIST_PATH, json_body={"categories": []})
        result = await size_cache.fetch_categories()
        assert result.ok is False
        assert size_cache.sizes is None

    @pytest.mark.asyncio
    async def test_malformed_size_name_does_not_raise(self, size_cache, service):
        """Unhashable size names never escape get()"""
        service.add("GET", LIST_PATH, json_body=[{"name": "c", "sizes": [{"name": ["x"]}]}])
        assert await size_cache.get() == {}


class TestFetchCategories:
    """fetch_categories() feeds list_categories and the cache together"""

    @pytest.mark.asyncio
    async def test_returns_categories_and_rebuilds(self, size_cache):
        """Success returns parsed categories and fills the cache"""
        result = await size_cache.fetch_categories()
        assert result.ok is True
        assert [c.name for c in result.value] == ["products", "avatars"]
        assert set(size_cache.sizes) == {"thumbnail", "large", "medium"}

    @pytest.mark.asyncio
    async def test_category_list_variant(self, client, service, clock):
        """categories_path=/api/category/list is used instead of /api/size/list"""
        service.add("GET", "/api/category/list", json_body=CATEGORIES[:1])
        cache = SizeCache(client, categories_path="/api/category/list", clock=clock)

        sizes = await cache.get()

        assert set(sizes) == {"thumbnail", "large"}
        assert service.calls("GET", LIST_PATH) == []

    @pytest.mark.asyncio
    async def test_lookup(self, size_cache):
        """lookup() returns one size or None"""
        assert (await size_cache.lookup("medium")).height == 256
        assert await size_cache.lookup("missing") is None
