"""Credential key/value store.

Two backends implement the KeyStore protocol:
- FileKeyStore: in-memory dict mirrored to one JSON file, rewritten
  wholesale on every mutation. Not safe under concurrent writer processes.
- RedisKeyStore: redis.asyncio; durable across restarts.

No transactions, no expiry. Last write wins.
"""

import json
from pathlib import Path
from typing import Protocol, runtime_checkable

import redis.asyncio as redis
import structlog

from shared.config import Settings

logger = structlog.get_logger()


@runtime_checkable
class KeyStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


class FileKeyStore:
    """JSON-file store. The file is read on first access, not at construction."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: dict[str, str] = {}
        self._loaded = False

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("{}", encoding="utf-8")
            return
        try:
            loaded = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            loaded = None
        if not isinstance(loaded, dict):
            logger.warning("key_store_file_unreadable", path=str(self.path))
            loaded = {}
        self._data = {str(k): str(v) for k, v in loaded.items()}

    def _save(self) -> None:
        self.path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")

    async def get(self, key: str) -> str | None:
        self._load()
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._load()
        self._data[key] = value
        self._save()

    async def delete(self, key: str) -> None:
        self._load()
        self._data.pop(key, None)
        self._save()

    async def close(self) -> None:
        return None


class RedisKeyStore:
    def __init__(self, url: str, client: redis.Redis | None = None):
        self.url = url
        self._client = client or redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()


def create_key_store(settings: Settings) -> KeyStore:
    """Redis when OURA_REDIS_URL is set, otherwise the local JSON file."""
    if settings.redis_url:
        logger.info("key_store_selected", backend="redis")
        return RedisKeyStore(settings.redis_url)
    logger.info("key_store_selected", backend="file", path=settings.key_store_path)
    return FileKeyStore(settings.key_store_path)
