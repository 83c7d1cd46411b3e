"""
Image Service HTTP client

Thin wrapper over httpx.AsyncClient: joins relative paths onto the
configured base URL, injects the X-API-Key header and logs request and
response metadata. Non-2xx responses are returned as-is for the
normalizer; transport errors (httpx.RequestError) propagate.
"""

import logging
from typing import Optional

import httpx

from .config import ServiceConfig
from .timing import measure_io_async

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


def mask_api_key(api_key: str) -> str:
    """First 8 characters of the key, for log output"""
    return f"{api_key[:8]}..."


class ImageServiceClient:
    """Async HTTP client bound to one image service"""

    def __init__(
        self,
        config: ServiceConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )

    def build_url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Issue one request against the service

        Args:
            method: HTTP method
            path: Path relative to the base URL (may carry a query string)
            **kwargs: Passed to httpx (files, json, headers, ...)

        Returns:
            The raw response, whatever its status
        """
        url = self.build_url(path)
        headers = {API_KEY_HEADER: self.config.api_key, **kwargs.pop("headers", {})}

        logger.info(f"Making API call: {method} {url}")
        logger.debug(f"Request headers: {({**headers, API_KEY_HEADER: '***'})}")

        response = await measure_io_async(
            lambda: self._client.request(method, url, headers=headers, **kwargs)
        )

        logger.info(f"API response status: {response.status_code} {response.reason_phrase}")
        logger.debug(f"Response headers: {dict(response.headers)}")
        return response

    async def get(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ImageServiceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
