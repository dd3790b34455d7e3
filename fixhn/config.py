from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BOT_AGENTS = (
    "bot",
    "crawler",
    "spider",
    "slackbot",
    "twitterbot",
    "facebookexternalhit",
    "linkedinbot",
    "whatsapp",
    "telegrambot",
    "discord",
    "preview",
    "fetcher",
    "curl",
    "wget",
    "python-requests",
    "go-http-client",
    "mediapartners",
)


@dataclass(frozen=True)
class Settings:
    """
    Everything the preview pipeline needs to know about the outside world.

    Instances are immutable and handed to the service at construction time,
    so tests can point the pipeline at fake upstreams without patching.
    """

    api_base: str = "https://hacker-news.firebaseio.com/v0"
    site_base: str = "https://news.ycombinator.com"
    site_name: str = "Hacker News"
    bot_agents: tuple[str, ...] = DEFAULT_BOT_AGENTS
    image_fetch_agent: str = "fixhn-ogimage-fetcher/1.0"
    image_timeout: float = 3.0
    image_max_bytes: int = 2 * 1024 * 1024
    api_timeout: float = 10.0
    cache_max_age: int = 300

    def canonical_link(self, item_id: int) -> str:
        return f"{self.site_base}/item?id={item_id}"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    return int(raw)


def load_settings() -> Settings:
    """Load settings from FIXHN_* environment variables and defaults."""

    defaults = Settings()
    agents = os.getenv("FIXHN_BOT_AGENTS")
    bot_agents = (
        tuple(a.strip() for a in agents.split(",") if a.strip())
        if agents
        else defaults.bot_agents
    )

    return Settings(
        api_base=os.getenv("FIXHN_API_BASE", defaults.api_base).rstrip("/"),
        site_base=os.getenv("FIXHN_SITE_BASE", defaults.site_base).rstrip("/"),
        site_name=os.getenv("FIXHN_SITE_NAME", defaults.site_name),
        bot_agents=bot_agents,
        image_fetch_agent=os.getenv(
            "FIXHN_IMAGE_FETCH_AGENT", defaults.image_fetch_agent
        ),
        image_timeout=_env_float("FIXHN_IMAGE_TIMEOUT", defaults.image_timeout),
        image_max_bytes=_env_int("FIXHN_IMAGE_MAX_BYTES", defaults.image_max_bytes),
        api_timeout=_env_float("FIXHN_API_TIMEOUT", defaults.api_timeout),
        cache_max_age=_env_int("FIXHN_CACHE_MAX_AGE", defaults.cache_max_age),
    )
