"""
Learner progress persistence.

Purpose
-------
Explicit save/load interface for learner state. Services read and write
plain JSON-compatible dicts through a `ProgressStore`; they never know which
backend sits behind it.

Responsibilities
----------------
- Define the `ProgressStore` contract (load / save / delete per kind)
- Provide an in-memory store for tests and local runs
- Provide a Redis store with JSON values, key versioning and optional TTL

Non-Responsibilities
--------------------
- Shaping domain objects (Learner.to_dict / from_dict do that)
- Retrying failed Redis calls (callers decide; StorageError is retryable)

Key Format
----------
All keys follow the pattern: `{prefix}:learner:{learner_id}:{kind}` where the
prefix defaults to `lingualevel:v1` and kind is one of `stats`,
`milestones`, `accuracy`.

Failure Semantics
-----------------
- Redis errors raise `StorageError`
- A stored value that is not valid JSON is logged and treated as absent
"""

from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Final, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from lingualevel.core.config import Config
from lingualevel.core.exceptions import StorageError
from lingualevel.core.logging.logger import get_logger

logger = get_logger(__name__)

# ============================================================================
# STORE KINDS
# ============================================================================

KIND_STATS: Final[str] = "stats"
KIND_MILESTONES: Final[str] = "milestones"
KIND_ACCURACY: Final[str] = "accuracy"

STORE_KINDS: Final[Tuple[str, ...]] = (KIND_STATS, KIND_MILESTONES, KIND_ACCURACY)

Payload = Dict[str, Any]


def _validate_kind(kind: str) -> None:
    from lingualevel.modules.shared.exceptions import ValidationError

    if kind not in STORE_KINDS:
        raise ValidationError(
            "kind", f"Unknown progress kind '{kind}', expected one of {STORE_KINDS}"
        )


# ============================================================================
# CONTRACT
# ============================================================================


class ProgressStore(ABC):
    """Abstract persistence for per-learner progress documents."""

    @abstractmethod
    async def load(self, learner_id: str, kind: str) -> Optional[Payload]:
        """Stored payload, or None when nothing is stored."""

    @abstractmethod
    async def save(self, learner_id: str, kind: str, payload: Payload) -> None:
        ...

    @abstractmethod
    async def delete(self, learner_id: str, kind: str) -> None:
        ...

    async def delete_all(self, learner_id: str) -> None:
        for kind in STORE_KINDS:
            await self.delete(learner_id, kind)


# ============================================================================
# IN-MEMORY
# ============================================================================


class InMemoryProgressStore(ProgressStore):
    """
    Dict-backed store.

    Payloads are deep-copied on the way in and out so callers cannot mutate
    stored state through a reference they still hold.
    """

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], Payload] = {}

    def __len__(self) -> int:
        return len(self._data)

    async def load(self, learner_id: str, kind: str) -> Optional[Payload]:
        _validate_kind(kind)
        payload = self._data.get((learner_id, kind))
        return copy.deepcopy(payload) if payload is not None else None

    async def save(self, learner_id: str, kind: str, payload: Payload) -> None:
        _validate_kind(kind)
        self._data[(learner_id, kind)] = copy.deepcopy(payload)

    async def delete(self, learner_id: str, kind: str) -> None:
        _validate_kind(kind)
        self._data.pop((learner_id, kind), None)


# ============================================================================
# REDIS
# ============================================================================


class RedisProgressStore(ProgressStore):
    """
    Redis-backed store over the redis-py asyncio client.

    Args:
        client: Connected `redis.asyncio.Redis` client (decode_responses=True)
        key_prefix: Key namespace, defaults to Config.PROGRESS_KEY_PREFIX
        ttl_seconds: Expiry for written keys; 0 keeps them forever

    Example:
        >>> store = RedisProgressStore.from_config()
        >>> await store.save("learner-42", "stats", {"total_xp": 1200})
        >>> await store.load("learner-42", "stats")
        {'total_xp': 1200}
    """

    KEY_TEMPLATE = "{prefix}:learner:{learner_id}:{kind}"

    def __init__(
        self,
        client: Redis,
        key_prefix: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        self._client = client
        self._prefix = key_prefix or Config.PROGRESS_KEY_PREFIX
        self._ttl = Config.PROGRESS_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    @classmethod
    def from_config(cls, config: Any = Config) -> RedisProgressStore:
        """Build a store and its client from configuration."""
        url = config.get("REDIS_URL", "redis://localhost:6379/0")
        client = Redis.from_url(
            url,
            socket_timeout=config.get("REDIS_SOCKET_TIMEOUT", 5),
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info(
            "RedisProgressStore created",
            extra={
                "url_scheme": url.split("://")[0] if "://" in url else "unknown",
                "key_prefix": config.get("PROGRESS_KEY_PREFIX", "lingualevel:v1"),
            },
        )
        return cls(
            client,
            key_prefix=config.get("PROGRESS_KEY_PREFIX", "lingualevel:v1"),
            ttl_seconds=config.get("PROGRESS_TTL_SECONDS", 0),
        )

    def key_for(self, learner_id: str, kind: str) -> str:
        return self.KEY_TEMPLATE.format(
            prefix=self._prefix, learner_id=learner_id, kind=kind
        )

    async def load(self, learner_id: str, kind: str) -> Optional[Payload]:
        _validate_kind(kind)
        key = self.key_for(learner_id, kind)

        try:
            raw = await self._client.get(key)
        except RedisError as exc:
            logger.error(
                "Failed to load progress from Redis",
                extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise StorageError("load", key, exc) from exc

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(
                "Failed to deserialize progress JSON from Redis",
                extra={
                    "key": key,
                    "error": str(exc),
                    "raw_value_length": len(raw),
                },
            )
            return None

    async def save(self, learner_id: str, kind: str, payload: Payload) -> None:
        _validate_kind(kind)
        key = self.key_for(learner_id, kind)
        value = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

        try:
            if self._ttl > 0:
                await self._client.set(key, value, ex=self._ttl)
            else:
                await self._client.set(key, value)
        except RedisError as exc:
            logger.error(
                "Failed to save progress to Redis",
                extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise StorageError("save", key, exc) from exc

        logger.debug(
            "Progress saved",
            extra={"key": key, "payload_bytes": len(value), "ttl_seconds": self._ttl},
        )

    async def delete(self, learner_id: str, kind: str) -> None:
        _validate_kind(kind)
        key = self.key_for(learner_id, kind)
        try:
            await self._client.delete(key)
        except RedisError as exc:
            raise StorageError("delete", key, exc) from exc

    async def close(self) -> None:
        await self._client.aclose()
