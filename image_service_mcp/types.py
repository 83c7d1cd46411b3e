"""
Image Service Type Definitions

Wire types returned by the image service and the result types passed
between the normalizer, the handlers and the MCP server.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


# ============================================================================
# Categories & Sizes
# ============================================================================

@dataclass(frozen=True)
class CategorySize:
    """
    A named resizing profile

    Size names are unique within a category; the size cache treats them
    as globally unique.
    """
    name: str
    width: int
    height: int
    mime_type: str

    @classmethod
    def from_dict(cls, data: dict) -> "CategorySize":
        return cls(
            name=data.get("name", ""),
            width=data.get("width", 0),
            height=data.get("height", 0),
            mime_type=data.get("mimeType", ""),
        )


@dataclass(frozen=True)
class Category:
    """A named grouping of images sharing a set of sizes"""
    name: str
    sizes: list[CategorySize] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        sizes = data.get("sizes")
        if not isinstance(sizes, list):
            sizes = []
        return cls(
            name=data.get("name", ""),
            sizes=[CategorySize.from_dict(s) for s in sizes if isinstance(s, dict)],
        )


# ============================================================================
# Image Metadata
# ============================================================================

@dataclass(frozen=True)
class ResizedFile:
    size: str
    s3_path: str

    @classmethod
    def from_dict(cls, data: dict) -> "ResizedFile":
        return cls(size=data.get("size", ""), s3_path=data.get("s3Path", ""))


@dataclass(frozen=True)
class ImageMetadata:
    """Image record owned by the remote service (read-only here)"""
    id: str
    category: str
    downloaded_s3_path: Optional[str] = None
    original_s3_path: Optional[str] = None
    resized_files: list[ResizedFile] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ImageMetadata":
        resized = data.get("resizedFiles")
        if not isinstance(resized, list):
            resized = []
        return cls(
            id=data.get("id", ""),
            category=data.get("category", ""),
            downloaded_s3_path=data.get("downloadedS3Path"),
            original_s3_path=data.get("originalS3Path"),
            resized_files=[ResizedFile.from_dict(r) for r in resized if isinstance(r, dict)],
        )


# ============================================================================
# Results
# ============================================================================

@dataclass
class ApiResult:
    """
    Normalized HTTP response

    - ok=True: value holds the parsed JSON body
    - ok=False: message describes the failure
    """
    ok: bool
    value: Any = None
    message: str = ""
    status_code: Optional[int] = None    # None for transport failures

    @classmethod
    def success(cls, value: Any, status_code: Optional[int] = None) -> "ApiResult":
        return cls(ok=True, value=value, status_code=status_code)

    @classmethod
    def failure(cls, message: str, status_code: Optional[int] = None) -> "ApiResult":
        return cls(ok=False, message=message, status_code=status_code)


@dataclass
class ToolResponse:
    """Text returned to the MCP host, optionally flagged as an error"""
    text: str
    is_error: bool = False
