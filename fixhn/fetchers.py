from __future__ import annotations

import asyncio
import logging
import re
from typing import Iterator, Optional

import httpx

from fixhn.models import Item

log = logging.getLogger(__name__)


HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

META_OPEN_RE = re.compile(r"<meta", re.IGNORECASE)
OG_IMAGE_PROPERTY_RE = re.compile(
    r"""(?<![\w-])property\s*=\s*["']og:image["']""", re.IGNORECASE
)
CONTENT_RE = re.compile(r"""(?<![\w-])content\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


class ItemFetcher:
    """
    Loads items from the Hacker News Firebase API.

    GET /v0/item/<id>.json
    """

    def __init__(self, client: httpx.AsyncClient, api_base: str) -> None:
        self._client = client
        self.api_base = api_base

    async def fetch(self, item_id: int) -> Optional[Item]:
        """
        Return the item, or None when it cannot be loaded for any reason.

        Unknown ids, HTTP errors, transport errors and undecodable bodies
        all look the same to the caller.
        """
        url = f"{self.api_base}/item/{item_id}.json"
        log.debug("Loading item %s from %s", item_id, url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except Exception as exc:
            log.warning("Could not load item %s: %s", item_id, exc)
            return None

        try:
            data = response.json()
        except ValueError as exc:
            log.warning("Item %s returned invalid JSON: %s", item_id, exc)
            return None

        item = Item.from_api(data, item_id)
        if item is None:
            log.info("Item %s does not exist", item_id)
        return item


def iter_meta_tags(html: str) -> Iterator[str]:
    """
    Yield the text of each ``<meta ...>`` tag in document order.

    A tag runs up to the next ``>`` (or the end of the page when it never
    closes), so tags never overlap and the walk is linear in the page size.
    """
    pos = 0
    while True:
        match = META_OPEN_RE.search(html, pos)
        if match is None:
            return
        end = html.find(">", match.end())
        if end < 0:
            end = len(html)
        yield html[match.end():end]
        pos = end + 1


def extract_og_image(html: str) -> Optional[str]:
    """Find the og:image URL in a page, in either attribute order."""
    for tag in iter_meta_tags(html):
        if not OG_IMAGE_PROPERTY_RE.search(tag):
            continue
        content = CONTENT_RE.search(tag)
        if content:
            return content.group(1)
    return None


def is_html(content_type: str) -> bool:
    content_type = content_type.lower()
    return any(token in content_type for token in HTML_CONTENT_TYPES)


class ImageResolver:
    """
    Best-effort lookup of the og:image advertised by a story's link.

    The whole fetch, body included, is cancelled after ``timeout`` seconds.
    Failures never escape: anything that goes wrong means "no image".
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        timeout: float = 3.0,
        max_bytes: int = 2 * 1024 * 1024,
    ) -> None:
        self._client = client
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_bytes = max_bytes

    async def resolve(self, url: str) -> Optional[str]:
        try:
            image = await asyncio.wait_for(self._find_image(url), self.timeout)
        except asyncio.TimeoutError:
            log.info("Gave up on og:image from %s after %ss", url, self.timeout)
            return None
        except Exception as exc:
            log.info("Could not fetch og:image from %s: %s", url, exc)
            return None

        log.debug("og:image for %s: %s", url, image)
        return image

    async def _find_image(self, url: str) -> Optional[str]:
        html = await self._fetch_html(url)
        if html is None:
            return None
        # Scanning a large page must not hold up the event loop.
        return await asyncio.to_thread(extract_og_image, html)

    async def _fetch_html(self, url: str) -> Optional[str]:
        async with self._client.stream(
            "GET",
            url,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            timeout=self.timeout,
        ) as response:
            if not response.is_success:
                log.info("Skip og:image for %s: HTTP %s", url, response.status_code)
                return None

            content_type = response.headers.get("content-type", "")
            if not is_html(content_type):
                log.info("Skip og:image for %s: content type %r", url, content_type)
                return None

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) >= self.max_bytes:
                    break

            encoding = response.encoding or "utf-8"
            return bytes(body[: self.max_bytes]).decode(encoding, errors="replace")
