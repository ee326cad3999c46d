"""
Remote connection configuration.

The effective pair is the user override stored in the local cache when one
exists, otherwise the bundled default from settings.
"""

from collections.abc import Callable

import httpx

from app.config import Settings, settings as default_settings
from app.database.db import CONFIG_KEY_KEY, CONFIG_URL_KEY, LocalCache
from app.errors import ConfigInvalidError
from app.logging import get_logger
from app.models import RemoteConfig

logger = get_logger('services.config_store')


def is_valid_url(url: str | None) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not url:
        return False
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class ConfigStore:
    """Loads, saves and clears the remote endpoint override."""

    def __init__(self, cache: LocalCache, settings: Settings | None = None):
        self.cache = cache
        self.settings = settings or default_settings
        self._listeners: list[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Register a callback fired after every save or clear."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()

    def load(self) -> RemoteConfig:
        url = self.cache.get_raw(CONFIG_URL_KEY)
        key = self.cache.get_raw(CONFIG_KEY_KEY)
        if url and key:
            return RemoteConfig(url=url.strip(), key=key.strip(), is_override=True)
        return RemoteConfig(
            url=(self.settings.DEFAULT_REMOTE_URL or "").strip(),
            key=(self.settings.DEFAULT_REMOTE_KEY or "").strip(),
            is_override=False,
        )

    def save(self, url: str, key: str) -> RemoteConfig:
        """
        Persist an override pair and invalidate the live connection.

        :param url: Remote endpoint URL
        :type url: str
        :param key: Remote access key
        :type key: str
        :return: The new effective configuration
        :rtype: RemoteConfig
        :raises ConfigInvalidError: If either value is empty or the URL is malformed
        """
        url = (url or "").strip()
        key = (key or "").strip()
        if not key:
            raise ConfigInvalidError("Remote access key must not be empty")
        if not is_valid_url(url):
            raise ConfigInvalidError(f"Remote URL is not a valid absolute URL: {url!r}")

        self.cache.set_raw(CONFIG_URL_KEY, url)
        self.cache.set_raw(CONFIG_KEY_KEY, key)
        logger.info(f"Saved remote configuration override for {url}")
        self._notify()
        return self.load()

    def clear(self) -> RemoteConfig:
        self.cache.delete_raw(CONFIG_URL_KEY)
        self.cache.delete_raw(CONFIG_KEY_KEY)
        logger.info("Cleared remote configuration override")
        self._notify()
        return self.load()

    def is_configured(self) -> bool:
        config = self.load()
        return bool(config.url and config.key) and is_valid_url(config.url)
