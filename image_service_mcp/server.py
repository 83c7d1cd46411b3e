#!/usr/bin/env python3
"""
Image Service MCP Server

Exposes an image-management REST service to MCP hosts over stdio.

Tools:
- get_image_metadata: Metadata and available sizes for an image
- transcode_image: Trigger transcoding and return the updated metadata
- list_categories: Categories and their configured sizes
- get_resized_image: Signed download URL for an image at a given size
- upload_image: Upload a local file (resizing deferred)
- upload_and_resize_image: Upload a local file and resize immediately

Usage:
    image-service-mcp https://images.example.com <api-key>
    IMAGE_SERVICE_URL=... IMAGE_SERVICE_API_KEY=... python -m image_service_mcp
"""

import argparse
import logging
import os
import sys
from typing import Annotated, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from .client import ImageServiceClient, mask_api_key
from .config import (
    ServiceConfig,
    configure_logging,
    load_env_file,
)
from .exceptions import ConfigurationError
from .handlers import ImageServiceTools
from .size_cache import SizeCache
from .types import ToolResponse

logger = logging.getLogger(__name__)

SERVER_NAME = "image-service-mcp"

# Argument names are part of the tool schema seen by MCP hosts
ImageServiceId = Annotated[str, Field(description="The image service ID")]
SizeName = Annotated[
    str, Field(description="The preferred size (e.g., 'thumbnail', 'small', 'medium', 'large')")
]
CategoryName = Annotated[str, Field(description="The image category")]
LocalFilename = Annotated[str, Field(description="The local file path to upload")]


def _unwrap(response: ToolResponse) -> str:
    """Error responses become MCP error results (isError: true)."""
    if response.is_error:
        raise ToolError(response.text)
    return response.text


def create_server(
    config: ServiceConfig,
    client: Optional[ImageServiceClient] = None,
    size_cache: Optional[SizeCache] = None,
) -> FastMCP:
    """
    Build the MCP server with all image service tools registered

    Args:
        config: Resolved service configuration
        client: HTTP client (built from config if omitted)
        size_cache: Shared size cache (built from client if omitted)
    """
    client = client or ImageServiceClient(config)
    size_cache = size_cache or SizeCache(client, config.categories_path)
    tools = ImageServiceTools(client, size_cache)

    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(description="Gets metadata for an image by its UUID")
    async def get_image_metadata(imageServiceId: ImageServiceId) -> str:
        return _unwrap(await tools.get_image_metadata(imageServiceId))

    @mcp.tool(
        description=(
            "Transcodes an image by its UUID. This triggers the transcoding process "
            "and returns the updated image metadata."
        )
    )
    async def transcode_image(imageServiceId: ImageServiceId) -> str:
        return _unwrap(await tools.transcode_image(imageServiceId))

    @mcp.tool(
        description=(
            "Lists all available image categories and their supported sizes. This helps "
            "determine what categories can be used when uploading images and what size "
            "options are available."
        )
    )
    async def list_categories() -> str:
        return _unwrap(await tools.list_categories())

    @mcp.tool(
        description=(
            "Gets a URL for downloading an image at a specific size. Returns a URL from "
            "which the image can be downloaded."
        )
    )
    async def get_resized_image(imageServiceId: ImageServiceId, size: SizeName) -> str:
        return _unwrap(await tools.get_resized_image(imageServiceId, size))

    @mcp.tool(
        description=(
            "Uploads an image file without immediate resizing. Takes an image category and "
            "a local filename, reads the file, and uploads it to the image service with "
            "forceImmediateResize set to false."
        )
    )
    async def upload_image(category: CategoryName, filename: LocalFilename) -> str:
        return _unwrap(await tools.upload_image(category, filename))

    @mcp.tool(
        description=(
            "Uploads an image file and immediately resizes it. Takes an image category and "
            "a local filename, reads the file, and uploads it to the image service with "
            "forceImmediateResize set to true."
        )
    )
    async def upload_and_resize_image(category: CategoryName, filename: LocalFilename) -> str:
        return _unwrap(await tools.upload_and_resize_image(category, filename))

    return mcp


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME, description="MCP server for the image service"
    )
    parser.add_argument("url", nargs="?", help="Image service base URL")
    parser.add_argument("api_key", nargs="?", help="Image service API key")
    parser.add_argument("--config", help="YAML config file with an 'image-service' section")
    parser.add_argument(
        "--categories-path",
        help="Category listing endpoint (/api/size/list or /api/category/list)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("IMAGE_SERVICE_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    load_env_file()
    configure_logging(args.log_level)

    try:
        config = ServiceConfig.resolve(
            url=args.url,
            api_key=args.api_key,
            config_path=args.config,
            categories_path=args.categories_path,
        )
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    mcp = create_server(config)

    logger.info(f"Base URL: {config.base_url}")
    logger.info(f"API Key: {mask_api_key(config.api_key)}")

    logger.info("Image Service MCP server running on stdio")
    mcp.run()


if __name__ == "__main__":
    main()
