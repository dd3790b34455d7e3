from __future__ import annotations

import logging
import re
from typing import Mapping, Optional

from fixhn.classifier import CallerClassifier, Classification
from fixhn.config import Settings
from fixhn.fetchers import ImageResolver, ItemFetcher
from fixhn.models import PreviewResponse
from fixhn.render import render_document

log = logging.getLogger(__name__)

ITEM_PATH = "/item"
# 19 digits still fit a signed 64-bit id; longer values are rejected before int().
ITEM_ID_RE = re.compile(r"[0-9]{1,19}")


class PreviewService:
    """
    Turns a request for ``/item?id=<id>`` into either a redirect to Hacker
    News or an OpenGraph document for link-unfurling bots.

    The only method callers should rely on is ``handle``. Collaborators are
    passed in so tests can swap the upstreams for fakes.
    """

    def __init__(
        self,
        settings: Settings,
        items: ItemFetcher,
        images: ImageResolver,
        classifier: Optional[CallerClassifier] = None,
    ) -> None:
        self.settings = settings
        self.items = items
        self.images = images
        self.classifier = classifier or CallerClassifier(settings.bot_agents)

    async def handle(
        self,
        path: str,
        params: Mapping[str, str],
        user_agent: Optional[str],
    ) -> PreviewResponse:
        if path != ITEM_PATH:
            return PreviewResponse.text(404, "Not found")

        raw_id = params.get("id")
        if not raw_id or not ITEM_ID_RE.fullmatch(raw_id):
            return PreviewResponse.text(400, "Missing or invalid id parameter")

        item_id = int(raw_id)
        link = self.settings.canonical_link(item_id)

        caller = self.classifier.classify(user_agent)
        log.debug("Item %s requested by %s client (%r)", item_id, caller.value, user_agent)
        if caller is Classification.INTERACTIVE:
            return PreviewResponse.redirect(link)

        item = await self.items.fetch(item_id)
        if item is None:
            log.info("No data for item %s, redirecting bot to %s", item_id, link)
            return PreviewResponse.redirect(link)

        image: Optional[str] = None
        if item.url:
            image = await self.images.resolve(item.url)

        document = render_document(item, link, image, site_name=self.settings.site_name)
        return PreviewResponse.document(document, self.settings.cache_max_age)
