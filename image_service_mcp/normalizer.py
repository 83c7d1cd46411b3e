"""
Response normalizer

Turns a raw image service response into an ApiResult:
- 2xx with a JSON body    -> ApiResult(ok=True, value=<parsed>)
- 2xx with a non-JSON body -> ApiResult(ok=False, "Invalid JSON response: ...")
- non-2xx                 -> ApiResult(ok=False, <message from the error body>)

Error bodies are classified by content type (JSON / HTML / plain text).
"""

import json
import logging
from typing import Any, Optional

import httpx
from bs4 import BeautifulSoup

from .types import ApiResult

logger = logging.getLogger(__name__)

MAX_PREVIEW_CHARS = 200


def truncate(text: str, limit: int = MAX_PREVIEW_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def extract_pre_block(html: str) -> Optional[str]:
    """
    Pull the text of the first <pre> block out of an HTML error page.

    <br> tags become newlines and entities are decoded (&nbsp; as a plain
    space). Returns None when the page has no <pre> block.
    """
    soup = BeautifulSoup(html, "html.parser")
    pre = soup.find("pre")
    if pre is None:
        return None

    for br in pre.find_all("br"):
        br.replace_with("\n")

    return pre.get_text().replace("\xa0", " ").strip()


def _json_error_message(text: str) -> str:
    try:
        parsed: Any = json.loads(text)
    except ValueError:
        logger.debug("Error body declared as JSON but failed to parse")
        return text

    if isinstance(parsed, dict) and "error" in parsed:
        logger.debug(f"Parsed error object: {parsed}")
        return json.dumps(parsed, indent=2, ensure_ascii=False)
    return text


def _html_error_message(status_code: int, text: str) -> str:
    extracted = extract_pre_block(text)
    if extracted is not None:
        return f"Server error: {extracted}"
    return f"Server returned HTML error page ({status_code})"


def classify_error_body(status_code: int, content_type: str, text: str) -> str:
    """
    Build a failure message from an error response body

    Args:
        status_code: HTTP status of the failed response
        content_type: Value of the content-type header ("" if missing)
        text: Full response body

    Returns:
        Human-readable failure message
    """
    content_type = content_type.lower()

    if "application/json" in content_type:
        return _json_error_message(text)
    elif "text/html" in content_type:
        return _html_error_message(status_code, text)
    else:
        return text


def normalize_response(response: httpx.Response) -> ApiResult:
    """Normalize a complete (already read) httpx response."""
    text = response.text
    status_code = response.status_code

    if not response.is_success:
        content_type = response.headers.get("content-type", "")
        logger.debug(f"Error response body ({status_code}, {content_type}): {truncate(text)}")
        message = classify_error_body(status_code, content_type, text)
        return ApiResult.failure(message, status_code=status_code)

    try:
        value = json.loads(text)
    except ValueError:
        logger.warning(f"Invalid JSON in {status_code} response: {truncate(text)}")
        return ApiResult.failure(
            f"Invalid JSON response: {truncate(text)}", status_code=status_code
        )

    return ApiResult.success(value, status_code=status_code)
