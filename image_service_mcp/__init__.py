"""
Image Service MCP

MCP server exposing an image-management REST service as LLM tools.
"""

__version__ = "1.0.0"

# Main exports
from .client import ImageServiceClient
from .config import ServiceConfig, configure_logging
from .exceptions import (
    ImageServiceError,
    ConfigurationError,
    InvalidResponseError,
    ServiceRequestError,
)
from .handlers import ImageServiceTools
from .normalizer import normalize_response, classify_error_body, extract_pre_block
from .server import create_server, main
from .size_cache import SizeCache
from .types import (
    ApiResult,
    Category,
    CategorySize,
    ImageMetadata,
    ResizedFile,
    ToolResponse,
)

__all__ = [
    # Server
    "create_server",
    "main",
    # Components
    "ImageServiceClient",
    "ImageServiceTools",
    "ServiceConfig",
    "SizeCache",
    "configure_logging",
    "normalize_response",
    "classify_error_body",
    "extract_pre_block",
    # Types
    "ApiResult",
    "Category",
    "CategorySize",
    "ImageMetadata",
    "ResizedFile",
    "ToolResponse",
    # Errors
    "ImageServiceError",
    "ConfigurationError",
    "InvalidResponseError",
    "ServiceRequestError",
]
