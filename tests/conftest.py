from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Generator
from typing import Any

import pytest

from beachhead_companion.configmanager import CompanionConfig
from beachhead_companion.domain_spec import DomainSpec
from beachhead_companion.errors import ContainerNotFoundError, PublishingError
from beachhead_companion.inspector import Inspection
from beachhead_companion.publisher import Publication


class MockInspector:
    """Pre-programmed inspection results keyed by container name.

    A value that is an exception is raised instead of returned. Names without
    an entry behave like containers that do not exist.
    """

    def __init__(
        self,
        *,
        enumerate_result: list[str] | Exception | None = None,
        inspect_results: dict[str, Inspection | Exception] | None = None,
    ) -> None:
        self.enumerate_result = enumerate_result if enumerate_result is not None else []
        self.inspect_results = dict(inspect_results or {})
        self.enumerate_calls = 0
        self.inspected: list[str] = []

    def enumerate(self) -> list[str]:
        self.enumerate_calls += 1
        if isinstance(self.enumerate_result, Exception):
            raise self.enumerate_result
        return list(self.enumerate_result)

    def inspect(self, container_name: str) -> Inspection:
        self.inspected.append(container_name)
        result = self.inspect_results.get(container_name)
        if result is None:
            raise ContainerNotFoundError(
                "No inspection result provided for given container name.", container_name=container_name
            )
        if isinstance(result, Exception):
            raise result
        return result


class MockPublisher:
    """Records publications; fails for any publication with a domain containing `error_trigger`."""

    def __init__(self, *, error_trigger: str | None = None) -> None:
        self.error_trigger = error_trigger
        self.publications: list[Publication] = []

    def publish(self, publication: Publication) -> None:
        if self.error_trigger and any(self.error_trigger in spec.domain_name for spec in publication.specs):
            raise PublishingError("Mock error")
        self.publications.append(publication)


class ScriptedEvent(threading.Event):
    """Termination event whose wait() returns at once and sets itself after `stop_after` waits."""

    def __init__(self, *, stop_after: int, on_wait: Callable[[int], None] | None = None) -> None:
        super().__init__()
        self.stop_after = stop_after
        self.on_wait = on_wait
        self.timeouts: list[float | None] = []

    def wait(self, timeout: float | None = None) -> bool:
        self.timeouts.append(timeout)
        if self.on_wait is not None:
            self.on_wait(len(self.timeouts))
        if len(self.timeouts) >= self.stop_after:
            self.set()
        return self.is_set()


def inspection(host: str, *domains: str, envvar_present: bool = True) -> Inspection:
    specs = [DomainSpec(domain_name=d, http_port=80, https_port=443) for d in domains]
    return Inspection(host=host, specs=specs, envvar_present=envvar_present)


def make_config(**kwargs: Any) -> CompanionConfig:
    kwargs.setdefault("refresh_seconds", None)
    return CompanionConfig(**kwargs)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("BEACHHEAD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logging() -> Generator[None, None, None]:
    # ConfigManager.configure_logging replaces root handlers; keep tests isolated.
    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if type(h) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def redis_url() -> str:
    return os.getenv("BEACHHEAD_TEST_REDIS_URL", "redis://localhost:6379/15")


def redis_available() -> bool:
    try:
        import redis

        client = redis.Redis.from_url(redis_url())
        client.ping()
        return True
    except Exception:
        return False


@pytest.fixture
def require_redis() -> bool:
    if not redis_available():
        pytest.skip("Redis server not available")
    return True
