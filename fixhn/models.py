from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class ItemKind(enum.Enum):
    STORY = "story"
    COMMENT = "comment"
    JOB = "job"
    POLL = "poll"
    POLL_OPTION = "pollopt"


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass but never a valid count or timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class Item:
    """
    A single Hacker News item as returned by the Firebase API.

    Only ``id`` is guaranteed; the API omits fields freely (deleted items,
    comments without a title, Ask HN posts without a url, ...).
    """

    id: int
    kind: Optional[ItemKind] = None
    title: Optional[str] = None
    text: Optional[str] = None
    url: Optional[str] = None
    score: Optional[int] = None
    by: Optional[str] = None
    time: Optional[int] = None
    descendants: Optional[int] = None
    kids: tuple[int, ...] = ()

    @classmethod
    def from_api(cls, payload: Any, item_id: int) -> Optional["Item"]:
        """
        Build an Item from a decoded ``/item/<id>.json`` payload.

        The API answers ``null`` for unknown ids, so anything that is not a
        JSON object means there is no item.
        """
        if not isinstance(payload, dict):
            return None

        try:
            kind: Optional[ItemKind] = ItemKind(payload.get("type"))
        except ValueError:
            kind = None

        kids = payload.get("kids")
        if isinstance(kids, list):
            kid_ids = tuple(k for k in kids if _as_int(k) is not None)
        else:
            kid_ids = ()

        return cls(
            id=_as_int(payload.get("id")) or item_id,
            kind=kind,
            title=_as_str(payload.get("title")),
            text=_as_str(payload.get("text")),
            url=_as_str(payload.get("url")),
            score=_as_int(payload.get("score")),
            by=_as_str(payload.get("by")),
            time=_as_int(payload.get("time")),
            descendants=_as_int(payload.get("descendants")),
            kids=kid_ids,
        )


@dataclass
class PreviewResponse:
    """Transport-neutral outcome of handling one request."""

    status: int
    body: str = ""
    media_type: str = "text/plain"
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400

    @classmethod
    def redirect(cls, location: str) -> "PreviewResponse":
        return cls(status=302, headers={"location": location})

    @classmethod
    def document(cls, html: str, max_age: int) -> "PreviewResponse":
        return cls(
            status=200,
            body=html,
            media_type="text/html; charset=utf-8",
            headers={"cache-control": f"public, max-age={max_age}"},
        )

    @classmethod
    def text(cls, status: int, body: str) -> "PreviewResponse":
        return cls(status=status, body=body)
