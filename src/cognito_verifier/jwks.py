"""Loading and caching of a user pool's signing keys.

A key set is fetched at most once per :class:`KeySetCache`. It is never refreshed:
when the pool rotates its signing keys, build a new cache (or verifier) to pick
them up.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from .config import TrustConfiguration
from .errors import KeySetFormatError, KeySetLoadError, KeySourceUnavailableError
from .keys import PublicKey, decode_key

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 5.0


@dataclass(frozen=True)
class KeySet:
    issuer: str
    keys: Mapping[str, PublicKey] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", MappingProxyType(dict(self.keys)))

    def get(self, kid: Any) -> PublicKey | None:
        if not isinstance(kid, str):
            return None
        return self.keys.get(kid)

    @property
    def kids(self) -> list[str]:
        return sorted(self.keys)

    def __contains__(self, kid: object) -> bool:
        return isinstance(kid, str) and kid in self.keys

    def __len__(self) -> int:
        return len(self.keys)


def parse_key_set(content: str | bytes, *, issuer: str) -> KeySet:
    try:
        document = json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise KeySetFormatError("key set is not valid JSON") from exc
    if not isinstance(document, dict):
        raise KeySetFormatError("key set must be a JSON object")
    descriptors = document.get("keys")
    if not isinstance(descriptors, list):
        raise KeySetFormatError("key set is missing the keys list")

    keys: dict[str, PublicKey] = {}
    for descriptor in descriptors:
        if not isinstance(descriptor, dict):
            raise KeySetFormatError("key set entries must be objects")
        kid = descriptor.get("kid")
        if not isinstance(kid, str) or not kid:
            raise KeySetFormatError("key set entry missing kid")
        # A single malformed key invalidates the whole key set.
        keys[kid] = decode_key(descriptor)
    return KeySet(issuer=issuer, keys=keys)


async def _read_file(path: str) -> str:
    try:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise KeySourceUnavailableError(f"unable to read key set file: {exc}", source=path) from exc


async def _download(url: str, client: httpx.AsyncClient) -> bytes:
    try:
        response = await client.get(url, headers={"Accept": "application/json"})
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise KeySourceUnavailableError(
            f"key set endpoint returned HTTP {exc.response.status_code}", source=url
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise KeySourceUnavailableError(f"unable to fetch key set: {exc}", source=url) from exc
    return response.content


async def fetch_key_set(
    config: TrustConfiguration, *, http_client: httpx.AsyncClient | None = None
) -> KeySet:
    if config.filepath:
        logger.debug("reading key set for %s from %s", config.issuer, config.filepath)
        content: str | bytes = await _read_file(config.filepath)
    elif http_client is not None:
        logger.debug("fetching key set from %s", config.jwks_url)
        content = await _download(config.jwks_url, http_client)
    else:
        logger.debug("fetching key set from %s", config.jwks_url)
        async with httpx.AsyncClient(timeout=_FETCH_TIMEOUT) as client:
            content = await _download(config.jwks_url, client)

    key_set = parse_key_set(content, issuer=config.issuer)
    logger.debug("loaded %d signing key(s) for %s", len(key_set), config.issuer)
    return key_set


class KeySetCache:
    """Loads the key set for one configuration exactly once.

    Concurrent callers arriving before the first load finishes wait for that same
    load. Its outcome, success or failure, is kept for the lifetime of the cache.
    """

    def __init__(
        self, config: TrustConfiguration, *, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config
        self._http_client = http_client
        self._lock = asyncio.Lock()
        self._key_set: KeySet | None = None
        self._error: KeySetLoadError | None = None

    @property
    def loaded(self) -> bool:
        return self._key_set is not None or self._error is not None

    async def load(self) -> KeySet:
        if self._key_set is not None:
            return self._key_set
        async with self._lock:
            if self._key_set is not None:
                return self._key_set
            if self._error is not None:
                raise self._error
            try:
                self._key_set = await fetch_key_set(self.config, http_client=self._http_client)
            except KeySetLoadError as exc:
                self._error = exc
                raise
            return self._key_set
