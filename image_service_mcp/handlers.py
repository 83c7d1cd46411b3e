"""
Tool handlers

One coroutine per MCP tool. Each builds a request path, calls the image
service, normalizes the response and renders it as markdown. Failures
never raise to the caller: they come back as ToolResponse(is_error=True)
with an "Error: ..." text.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx

from .client import ImageServiceClient
from .exceptions import ImageServiceError, InvalidResponseError, ServiceRequestError
from .formatting import (
    format_categories,
    format_error,
    format_image_metadata,
    format_missing_url,
    format_resized_url,
)
from .normalizer import normalize_response
from .size_cache import SizeCache
from .timing import ToolTimer, measure_io_async
from .types import ApiResult, ImageMetadata, ToolResponse

logger = logging.getLogger(__name__)

# Failures surfaced to the caller as error-flagged text
TOOL_ERRORS = (ImageServiceError, httpx.RequestError, OSError)

UPLOAD_FIELD = "image"
UPLOAD_CONTENT_TYPE = "application/octet-stream"


def _describe(error: Exception) -> str:
    if isinstance(error, httpx.RequestError):
        detail = str(error) or type(error).__name__
        return f"Request failed: {detail}"
    if isinstance(error, OSError):
        return f"Could not read file: {error}"
    return str(error)


def failure_text(action: str, result: ApiResult) -> str:
    if result.status_code is None:
        return f"Failed to {action}: {result.message}"
    return f"Failed to {action}: {result.status_code} {result.message}"


def upload_path(category: str, resize: bool) -> str:
    return f"/api/image/{category}?forceImmediateResize={'true' if resize else 'false'}"


class ImageServiceTools:
    """Handlers for the six image service tools"""

    def __init__(self, client: ImageServiceClient, size_cache: SizeCache):
        self.client = client
        self.size_cache = size_cache

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request_json(self, action: str, method: str, path: str, **kwargs) -> Any:
        response = await self.client.request(method, path, **kwargs)
        result = normalize_response(response)
        if not result.ok:
            raise ServiceRequestError(failure_text(action, result))
        return result.value

    @staticmethod
    def _parse_metadata(payload: Any) -> ImageMetadata:
        if not isinstance(payload, dict):
            raise InvalidResponseError(
                f"Invalid response format: expected an object. Response: {json.dumps(payload)}"
            )
        return ImageMetadata.from_dict(payload)

    async def _metadata_text(self, metadata: ImageMetadata, label: str) -> str:
        # Only consult the size cache when there is something to look up
        sizes = await self.size_cache.get() if metadata.resized_files else None
        return format_image_metadata(metadata, label, sizes)

    @staticmethod
    def _error(tool_name: str, error: Exception) -> ToolResponse:
        logger.error(f"Error in {tool_name}: {error!r}")
        return ToolResponse(format_error(_describe(error)), is_error=True)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def get_image_metadata(self, image_service_id: str) -> ToolResponse:
        timer = ToolTimer("get_image_metadata")
        logger.info(f"get_image_metadata called with uuid: {image_service_id}")
        try:
            payload = await self._request_json(
                "get image metadata", "GET", f"/api/image/{image_service_id}"
            )
            metadata = self._parse_metadata(payload)
            return ToolResponse(await self._metadata_text(metadata, "Image Metadata"))
        except TOOL_ERRORS as e:
            return self._error("get_image_metadata", e)
        finally:
            timer.finish()

    async def transcode_image(self, image_service_id: str) -> ToolResponse:
        timer = ToolTimer("transcode_image")
        logger.info(f"transcode_image called with uuid: {image_service_id}")
        try:
            payload = await self._request_json(
                "transcode image", "POST", f"/api/image/{image_service_id}/transcode"
            )
            metadata = self._parse_metadata(payload)
            return ToolResponse(await self._metadata_text(metadata, "Image Transcode Result"))
        except TOOL_ERRORS as e:
            return self._error("transcode_image", e)
        finally:
            timer.finish()

    async def list_categories(self) -> ToolResponse:
        timer = ToolTimer("list_categories")
        logger.info("list_categories called")
        try:
            result = await self.size_cache.fetch_categories()
            if not result.ok:
                raise ServiceRequestError(failure_text("list categories", result))
            return ToolResponse(format_categories(result.value))
        except TOOL_ERRORS as e:
            return self._error("list_categories", e)
        finally:
            timer.finish()

    async def get_resized_image(self, image_service_id: str, size: str) -> ToolResponse:
        timer = ToolTimer("get_resized_image")
        logger.info(
            f"get_resized_image called with imageServiceId: {image_service_id}, size: {size}"
        )
        try:
            payload = await self._request_json(
                "get resized image URL", "GET", f"/api/image/s/{image_service_id}/{size}"
            )
            url = payload.get("url") if isinstance(payload, dict) else None
            if url:
                logger.info(f"Extracted URL: {url}")
                return ToolResponse(format_resized_url(image_service_id, size, url))

            logger.warning(f"No URL in resized image response for {image_service_id}/{size}")
            return ToolResponse(format_missing_url(image_service_id, size, payload))
        except TOOL_ERRORS as e:
            return self._error("get_resized_image", e)
        finally:
            timer.finish()

    async def _upload(self, category: str, filename: str, resize: bool) -> ImageMetadata:
        path = Path(filename)
        file_bytes = await measure_io_async(lambda: asyncio.to_thread(path.read_bytes))
        file_name = path.name or "image"
        logger.debug(f"Read file: {file_name}, size: {len(file_bytes)} bytes")

        payload = await self._request_json(
            "upload image",
            "POST",
            upload_path(category, resize),
            files={UPLOAD_FIELD: (file_name, file_bytes, UPLOAD_CONTENT_TYPE)},
        )

        if not isinstance(payload, dict) or not payload.get("id") or not payload.get("category"):
            raise InvalidResponseError(
                "Invalid response format: missing required fields. "
                f"Response: {json.dumps(payload)}"
            )

        logger.info(f"Successfully uploaded image, response: {payload}")
        return ImageMetadata.from_dict(payload)

    async def upload_image(self, category: str, filename: str) -> ToolResponse:
        timer = ToolTimer("upload_image")
        logger.info(f"upload_image called with category: {category}, filename: {filename}")
        try:
            metadata = await self._upload(category, filename, resize=False)
            return ToolResponse(await self._metadata_text(metadata, "Image uploaded"))
        except TOOL_ERRORS as e:
            return self._error("upload_image", e)
        finally:
            timer.finish()

    async def upload_and_resize_image(self, category: str, filename: str) -> ToolResponse:
        timer = ToolTimer("upload_and_resize_image")
        logger.info(
            f"upload_and_resize_image called with category: {category}, filename: {filename}"
        )
        try:
            metadata = await self._upload(category, filename, resize=True)
            return ToolResponse(await self._metadata_text(metadata, "Image uploaded and resized"))
        except TOOL_ERRORS as e:
            return self._error("upload_and_resize_image", e)
        finally:
            timer.finish()
