"""
Markdown rendering for tool results
"""

import json
from typing import Any, Optional

from .types import Category, CategorySize, ImageMetadata


def format_error(message: str) -> str:
    return f"Error: {message}"


def format_image_metadata(
    metadata: ImageMetadata,
    label: str,
    sizes: Optional[dict[str, CategorySize]],
) -> str:
    """
    Render image metadata as markdown

    Args:
        metadata: Image record from the service
        label: Heading text ("Image Metadata", "Image uploaded", ...)
        sizes: Size cache contents, used to add pixel dimensions
    """
    lines = [f"## {label}", ""]
    lines.append(f"**Image ID:** {metadata.id}")
    lines.append("")
    lines.append(f"**Category:** {metadata.category}")
    lines.append("")

    if metadata.resized_files:
        lines.append("**Available Sizes:**")
        lines.append("")
        for resized in metadata.resized_files:
            size_info = (sizes or {}).get(resized.size) if isinstance(resized.size, str) else None
            if size_info:
                lines.append(f"- **{resized.size}**: {size_info.width}×{size_info.height} pixels")
            else:
                # Size not in cache, show without dimensions
                lines.append(f"- **{resized.size}**")
        lines.append("")
    else:
        lines.append("*Note: No resized files available for this image.*")
        lines.append("")

    return "\n".join(lines) + "\n"


def format_categories(categories: list[Category]) -> str:
    """Render the category list with each category's sizes"""
    noun = "category" if len(categories) == 1 else "categories"
    lines = [f"Found {len(categories)} {noun}:", ""]

    for category in categories:
        lines.append(f"### {category.name or 'Unknown'}")
        lines.append("")

        if category.sizes:
            lines.append("**Available Sizes:**")
            lines.append("")
            for size in category.sizes:
                lines.append(
                    f"- **{size.name or 'Unknown'}**: "
                    f"{size.width or '?'}×{size.height or '?'} pixels "
                    f"({size.mime_type or 'Unknown'})"
                )
            lines.append("")
        else:
            lines.append("No sizes configured for this category.")
            lines.append("")

    return "\n".join(lines) + "\n"


def format_resized_url(image_id: str, size: str, url: str) -> str:
    lines = [
        "## Resized Image URL",
        "",
        f"**Image UUID:** {image_id}",
        "",
        f"**Requested Size:** {size}",
        "",
        f"**Download URL:** {url}",
        "",
        "> This is a signed URL that can be used to download the image at the "
        "requested size. The URL includes authentication parameters and may expire.",
        "",
    ]
    return "\n".join(lines) + "\n"


def pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def format_missing_url(image_id: str, size: str, payload: Any) -> str:
    """Response carried no URL; show what the service sent instead."""
    if not isinstance(payload, dict):
        return pretty_json(payload)

    lines = [
        "## Resized Image URL",
        "",
        "**Warning:** No URL found in the response.",
        "",
        f"**Image UUID:** {image_id}",
        f"**Requested Size:** {size}",
        "",
        "**Response Data:**",
        "```json",
        pretty_json(payload),
        "```",
    ]
    return "\n".join(lines)
