from __future__ import annotations

import enum
import logging
import re
from typing import Iterable, Optional

from fixhn.config import DEFAULT_BOT_AGENTS

log = logging.getLogger(__name__)


class Classification(enum.Enum):
    AUTOMATED = "automated"
    INTERACTIVE = "interactive"


class CallerClassifier:
    """
    Decide whether a request comes from a link-unfurling bot or a person.

    A missing User-Agent counts as automated: an unidentified client gets
    the preview document instead of a redirect to an unrendered page.
    """

    def __init__(self, agents: Iterable[str] = DEFAULT_BOT_AGENTS) -> None:
        alternatives = "|".join(re.escape(a) for a in agents if a)
        # An empty agent list never matches anything.
        self._pattern = re.compile(alternatives or r"(?!)", re.IGNORECASE)

    def classify(self, user_agent: Optional[str]) -> Classification:
        if not user_agent:
            return Classification.AUTOMATED
        if self._pattern.search(user_agent):
            return Classification.AUTOMATED
        return Classification.INTERACTIVE

