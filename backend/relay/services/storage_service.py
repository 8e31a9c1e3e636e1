from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import aiomcache
import structlog
from aiomcache.exceptions import ClientException

from relay.config import Settings
from relay.errors import StorageError, StoreConfigError

logger = structlog.get_logger()

DEFAULT_MEMCACHED_PORT = 11211

_STORE_ERRORS = (ClientException, OSError, asyncio.TimeoutError)


class SecretStore(ABC):
    """TTL-aware key/value store holding secret payloads."""

    @abstractmethod
    async def put(self, key: str, value: bytes, ttl: int) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or None on a miss."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove the key. Returns True only if this call removed it."""
        pass

    async def close(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class MemcachedConfig:
    host: str
    port: int
    pool_size: int

    @staticmethod
    def from_settings(settings: Settings) -> "MemcachedConfig":
        address = (settings.memcached or "").strip()
        if not address:
            raise StoreConfigError("MEMCACHED environment variable must be specified")

        host, sep, port = address.rpartition(":")
        if not sep:
            return MemcachedConfig(
                host=address, port=DEFAULT_MEMCACHED_PORT, pool_size=settings.memcached_pool_size
            )
        if not host or not port.isdigit():
            raise StoreConfigError(f"MEMCACHED must look like host[:port], got {address!r}")

        return MemcachedConfig(host=host, port=int(port), pool_size=settings.memcached_pool_size)


class MemcachedSecretStore(SecretStore):
    def __init__(self, config: MemcachedConfig, client: aiomcache.Client | None = None) -> None:
        self._config = config
        self._client = client or aiomcache.Client(
            config.host, config.port, pool_size=config.pool_size
        )

    async def put(self, key: str, value: bytes, ttl: int) -> None:
        try:
            stored = await self._client.set(key.encode(), value, exptime=ttl)
        except _STORE_ERRORS as e:
            raise StorageError() from e
        if not stored:
            raise StorageError()

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._client.get(key.encode())
        except _STORE_ERRORS as e:
            raise StorageError() from e

    async def delete(self, key: str) -> bool:
        try:
            return await self._client.delete(key.encode())
        except _STORE_ERRORS as e:
            raise StorageError() from e

    async def close(self) -> None:
        await self._client.close()


class MemorySecretStore(SecretStore):
    """In-process store for tests and local development. Not shared across workers."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    async def put(self, key: str, value: bytes, ttl: int) -> None:
        self._purge_expired()
        self._entries[key] = (value, self._clock() + ttl)

    async def get(self, key: str) -> bytes | None:
        self._purge_expired()
        entry = self._entries.get(key)
        return entry[0] if entry else None

    async def delete(self, key: str) -> bool:
        self._purge_expired()
        return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)


def create_store(settings: Settings) -> SecretStore:
    """Build the memcached-backed store described by settings."""
    config = MemcachedConfig.from_settings(settings)
    logger.info("store_configured", backend="memcached", host=config.host, port=config.port)
    return MemcachedSecretStore(config)
