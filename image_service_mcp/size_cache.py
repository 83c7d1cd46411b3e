"""
Size cache

Process-wide mapping from size name to CategorySize, built from the
category listing endpoint.

Refresh rules:
- get() refreshes when the cache was never populated, or when more than
  `staleness` seconds passed since the last get()
- every get() resets the access time, so staleness is measured from the
  last read, not from the last successful refresh
- a refresh replaces the whole mapping (last write wins on size names
  shared across categories); a failed refresh keeps the previous mapping

There is no lock: two interleaved callers that both see a stale cache may
both refresh, which is harmless since a refresh is a full replace.
"""

import logging
import time
from typing import Callable, Optional

import httpx

from .client import ImageServiceClient
from .config import DEFAULT_CATEGORIES_PATH
from .normalizer import normalize_response
from .types import ApiResult, Category, CategorySize

logger = logging.getLogger(__name__)

DEFAULT_STALENESS_SECONDS = 5 * 60


class SizeCache:
    """Lazily populated size-name -> CategorySize lookup table"""

    def __init__(
        self,
        client: ImageServiceClient,
        categories_path: str = DEFAULT_CATEGORIES_PATH,
        clock: Callable[[], float] = time.monotonic,
        staleness: float = DEFAULT_STALENESS_SECONDS,
    ):
        self.client = client
        self.categories_path = categories_path
        self.clock = clock
        self.staleness = staleness

        self.sizes: Optional[dict[str, CategorySize]] = None
        self.last_updated_at: Optional[float] = None
        self.last_accessed_at: Optional[float] = None

    def is_stale(self, now: float) -> bool:
        if self.sizes is None or self.last_accessed_at is None:
            return True
        return now - self.last_accessed_at > self.staleness

    @staticmethod
    def build_mapping(categories: list[Category]) -> dict[str, CategorySize]:
        """Flatten categories into one mapping; later names overwrite earlier ones."""
        mapping: dict[str, CategorySize] = {}
        for category in categories:
            if not category.name:
                continue
            for size in category.sizes:
                if not isinstance(size.name, str) or not size.name:
                    logger.debug(f"Skipping size with invalid name in {category.name!r}: {size.name!r}")
                    continue
                mapping[size.name] = size
        return mapping

    async def fetch_categories(self) -> ApiResult:
        """
        Fetch the category list and rebuild the cache from it

        Returns:
            ApiResult whose value is list[Category] on success. On failure
            the cache is left untouched.
        """
        try:
            response = await self.client.get(self.categories_path)
        except httpx.RequestError as e:
            logger.warning(f"Error loading size cache: {e!r}")
            return ApiResult.failure(f"Request to {self.categories_path} failed: {e!r}")

        result = normalize_response(response)
        if not result.ok:
            logger.warning(f"Failed to load size cache: {result.status_code} {result.message}")
            return result

        if not isinstance(result.value, list):
            logger.warning(f"Unexpected category list payload: {type(result.value).__name__}")
            return ApiResult.failure(
                "Invalid response format: expected a list of categories",
                status_code=result.status_code,
            )

        try:
            categories = [Category.from_dict(c) for c in result.value if isinstance(c, dict)]
            sizes = self.build_mapping(categories)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Malformed category list payload: {e!r}")
            return ApiResult.failure(
                f"Invalid response format: malformed category list ({e})",
                status_code=result.status_code,
            )

        self.sizes = sizes
        self.last_updated_at = self.clock()
        logger.info(f"Size cache loaded: {len(self.sizes)} sizes")

        return ApiResult.success(categories, status_code=result.status_code)

    async def refresh(self) -> None:
        """Refresh the cache; failures are only logged."""
        await self.fetch_categories()

    async def get(self) -> Optional[dict[str, CategorySize]]:
        """
        Current mapping, refreshed first if missing or stale.

        May return None when no refresh has ever succeeded.
        """
        if self.is_stale(self.clock()):
            logger.info("Size cache is stale or missing, reloading...")
            await self.refresh()

        self.last_accessed_at = self.clock()
        return self.sizes

    async def lookup(self, name: str) -> Optional[CategorySize]:
        sizes = await self.get()
        if sizes is None:
            return None
        return sizes.get(name)
