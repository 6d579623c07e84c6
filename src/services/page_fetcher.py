"""Target page fetching for URL-based audits."""

import re
import time

import httpx
import logfire

from src.config import get_settings
from src.constants import FETCHABLE_URL_PATTERN, PAGE_FETCH_USER_AGENT

_FETCHABLE_URL = re.compile(FETCHABLE_URL_PATTERN, re.IGNORECASE)

# Content types treated as markup; anything else is not worth auditing
_TEXT_CONTENT_TYPES = ("text/", "application/xhtml+xml", "application/xml")


def is_fetchable_url(url: str | None) -> bool:
    """True if url is an absolute http(s) URL."""
    return bool(url) and _FETCHABLE_URL.match(url) is not None


def _is_text_response(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    if not content_type:
        return True
    return content_type.lower().startswith(_TEXT_CONTENT_TYPES)


async def fetch_page_html(url: str, timeout_seconds: float | None = None) -> str:
    """
    Fetch a page's markup with a single GET.

    Never raises: transport failures, non-text bodies and unsupported
    URLs all yield an empty string. The body is returned regardless of
    status code. No retries.

    Args:
        url: Page URL (must be http or https)
        timeout_seconds: Request timeout. If None, uses settings.page_fetch_timeout_seconds

    Returns:
        Response body text, or '' when nothing usable was fetched
    """
    if not is_fetchable_url(url):
        logfire.info("Skipping page fetch for unsupported URL", url=url)
        return ""

    if timeout_seconds is None:
        timeout_seconds = get_settings().page_fetch_timeout_seconds

    start_time = time.time()
    try:
        async with httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": PAGE_FETCH_USER_AGENT},
        ) as client:
            response = await client.get(url)
            elapsed = time.time() - start_time

            if not _is_text_response(response):
                logfire.warn(
                    "Page fetch returned non-text body",
                    url=url,
                    status_code=response.status_code,
                    content_type=response.headers.get("content-type"),
                    response_time_ms=elapsed * 1000,
                )
                return ""

            html = response.text
            logfire.info(
                "Page fetched",
                url=url,
                status_code=response.status_code,
                content_length=len(html),
                response_time_ms=elapsed * 1000,
            )
            return html
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeDecodeError) as e:
        elapsed = time.time() - start_time
        logfire.warn(
            "Page fetch failed, continuing without HTML",
            url=url,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=elapsed * 1000,
        )
        return ""
