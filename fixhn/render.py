from __future__ import annotations

import html
import time
from typing import Optional
from urllib.parse import urlparse

from fixhn.models import Item

DESCRIPTION_SEPARATOR = " | "


def escape_html(value: str) -> str:
    """
    Escape ``& < > " '`` for use in element text and attribute values.

    Ampersands are replaced first so existing entities are not double
    escaped into something else; ``'`` becomes ``&#x27;``.
    """
    return html.escape(value, quote=True)


def time_ago(unix_time: int, now: Optional[float] = None) -> str:
    """
    Render the age of a unix timestamp the way Hacker News does.

    Examples:
        45 seconds   -> "45s ago"
        10800 seconds -> "3h ago"
    """
    if now is None:
        now = time.time()
    seconds = max(int(now) - int(unix_time), 0)
    if seconds < 60:
        return f"{seconds}s ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    return f"{days}d ago"


def source_hostname(url: str) -> Optional[str]:
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def build_description(item: Item, now: Optional[float] = None) -> str:
    parts: list[str] = []
    if item.score is not None:
        parts.append(f"{item.score} points")
    if item.by:
        parts.append(f"by {item.by}")
    if item.time:
        parts.append(time_ago(item.time, now=now))
    if item.descendants is not None:
        parts.append(f"{item.descendants} comments")
    if item.url:
        # Malformed links only lose the hostname, never the preview.
        hostname = source_hostname(item.url)
        if hostname:
            parts.append(f"({hostname})")
    return DESCRIPTION_SEPARATOR.join(parts)


def render_document(
    item: Item,
    canonical_link: str,
    image: Optional[str],
    site_name: str = "Hacker News",
    now: Optional[float] = None,
) -> str:
    """Build the OpenGraph / Twitter Card page served to link-unfurling bots."""
    title = escape_html(item.title or f"HN Item #{item.id}")
    description = escape_html(build_description(item, now=now))
    link = escape_html(canonical_link)
    site = escape_html(site_name)

    if image:
        image_tags = (
            f'<meta property="og:image" content="{escape_html(image)}" />\n'
            f'  <meta name="twitter:image" content="{escape_html(image)}" />'
        )
        card = "summary_large_image"
    else:
        image_tags = ""
        card = "summary"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title} | {site}</title>

  <!-- OpenGraph -->
  <meta property="og:title" content="{title}" />
  <meta property="og:description" content="{description}" />
  <meta property="og:url" content="{link}" />
  <meta property="og:site_name" content="{site}" />
  <meta property="og:type" content="article" />
  {image_tags}

  <!-- Twitter Card -->
  <meta name="twitter:card" content="{card}" />
  <meta name="twitter:title" content="{title}" />
  <meta name="twitter:description" content="{description}" />
</head>
<body>
  <p><a href="{link}">Open &quot;{title}&quot; on {site}</a></p>
</body>
</html>"""
