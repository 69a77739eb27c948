from __future__ import annotations

import redis

from ..configmanager import CompanionConfig, ConfigManager
from ..errors import PublishingError
from . import json_serializer
from .base import Publication

logger = ConfigManager.get_logger(__name__)


def service_key(config: CompanionConfig, host: str) -> str:
    return f"{config.key_prefix}{host}"


class RedisPublisher:
    """Writes one JSON record per container host into Redis.

    The key is overwritten wholesale on every publish. The client is
    created on first use and reused across cycles.
    """

    def __init__(self, config: CompanionConfig, client: redis.Redis | None = None) -> None:
        self.config = config
        self._client = client

    def _redis(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis(
                host=self.config.redis_host,
                port=self.config.redis_port,
                db=self.config.redis_db,
                password=self.config.redis_password,
            )
            logger.debug(
                "Redis client initialized host=%s port=%s db=%s",
                self.config.redis_host,
                self.config.redis_port,
                self.config.redis_db,
            )
        return self._client

    def publish(self, publication: Publication) -> None:
        key = service_key(self.config, publication.host)
        try:
            value = json_serializer.encode(json_serializer.domain_configs(publication.host, publication.specs))
        except (TypeError, ValueError) as e:
            raise PublishingError(f"Failed to serialize publication for {publication.host} ({e})") from e

        try:
            if self.config.expire_seconds is not None:
                self._redis().set(key, value, ex=self.config.expire_seconds)
            else:
                self._redis().set(key, value)
        except redis.RedisError as e:
            raise PublishingError(f"Failed to write {key} to redis ({e})") from e
        logger.debug("Wrote %s (%d domains, expire=%s)", key, len(publication.specs), self.config.expire_seconds)
