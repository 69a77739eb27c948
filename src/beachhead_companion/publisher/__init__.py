"""Publication: the capability the companion advertises domain records through."""

from .base import Publication, Publisher
from .redis import RedisPublisher, service_key

__all__ = [
    "Publication",
    "Publisher",
    "RedisPublisher",
    "service_key",
]
