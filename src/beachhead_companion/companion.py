from __future__ import annotations

import signal
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from . import utils
from .configmanager import CompanionConfig, ConfigManager
from .errors import (
    CompanionError,
    ConfigurationError,
    DomainSpecError,
    EnumerationError,
    EnvVarMissingError,
    InspectionError,
    PublishingError,
)
from .inspector import Inspector
from .policy import classify_missing_container, classify_missing_envvar
from .publisher import Publication, Publisher, service_key
from .publisher.json_serializer import domain_configs, encode

logger = ConfigManager.get_logger(__name__)


@dataclass(frozen=True)
class Pending:
    """A container scheduled for refresh in the current cycle."""

    explicit: bool
    value: str


def _origin(pending: Pending) -> str:
    return "explicit" if pending.explicit else "discovered"


def install_signal_handlers(termination: threading.Event) -> dict[int, Any]:
    """Route SIGINT and SIGTERM to `termination`. Returns the previous handlers."""

    def _handler(signum: int, frame: object) -> None:  # noqa: ARG001
        logger.info("Received %s; stopping at the next wait", signal.Signals(signum).name)
        # The main thread may hold the event's lock when interrupted; set it from another thread.
        threading.Thread(target=termination.set, name="beachhead-termination", daemon=True).start()

    previous: dict[int, Any] = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


class Companion:
    """Keeps registry records in sync with the running containers.

    One cycle merges explicit and discovered container names, inspects each
    container, classifies failures according to the configured policies and
    publishes what it found. Cycles repeat every `refresh_seconds` until
    `termination` is set; without a refresh interval a single cycle runs.
    """

    def __init__(
        self,
        config: CompanionConfig,
        inspector: Inspector,
        publisher: Publisher,
        *,
        container_names: Iterable[str] = (),
        termination: threading.Event | None = None,
    ) -> None:
        problems = config.problems()
        if problems:
            raise ConfigurationError("Invalid configuration: " + "; ".join(problems))
        self.config = config
        self.inspector = inspector
        self.publisher = publisher
        self.container_names = utils.unique_names(container_names)
        self.termination = termination if termination is not None else threading.Event()

    def merge(self, errors: list[CompanionError]) -> dict[str, Pending]:
        """Build this cycle's container set. Explicit entries are never downgraded."""
        pending: dict[str, Pending] = {name: Pending(explicit=True, value=name) for name in self.container_names}
        if not self.config.enumerate:
            return pending

        try:
            discovered = self.inspector.enumerate()
        except CompanionError as e:
            err = e if isinstance(e, EnumerationError) else EnumerationError(str(e))
            logger.error("Failed to enumerate containers; continuing with explicit ones only: %s", err)
            errors.append(err)
            return pending

        for name in discovered:
            if name not in pending:
                pending[name] = Pending(explicit=False, value=name)
        return pending

    def refresh_container(self, name: str, pending: Pending, errors: list[CompanionError]) -> None:
        logger.info("Refreshing beachhead config for %s", name)

        try:
            inspection = self.inspector.inspect(pending.value)
        except (InspectionError, DomainSpecError) as e:
            if e.container_name is None:
                e.container_name = name
            handling = self.config.missing_container
            escalation = classify_missing_container(handling, explicit=pending.explicit)
            logger.log(
                escalation.level,
                "Failed to inspect %s container %s (missing-container=%s): %s",
                _origin(pending),
                name,
                handling.value,
                e,
            )
            if escalation.report:
                errors.append(e)
            return

        if not inspection.envvar_present:
            handling = self.config.missing_envvar
            escalation = classify_missing_envvar(handling, explicit=pending.explicit)
            logger.log(
                escalation.level,
                "No environment variable %s on %s container %s (missing-envvar=%s)",
                self.config.envvar,
                _origin(pending),
                name,
                handling.value,
            )
            if escalation.report:
                errors.append(EnvVarMissingError(envvar=self.config.envvar, container_name=name))
            return

        publication = Publication.from_inspection(inspection)
        if self.config.dry_run:
            logger.info(
                "Dry run; would publish %s = %s",
                service_key(self.config, publication.host),
                encode(domain_configs(publication.host, publication.specs)),
            )
            return

        try:
            self.publisher.publish(publication)
        except PublishingError as e:
            if e.container_name is None:
                e.container_name = name
            logger.error("Failed to publish %s container %s: %s", _origin(pending), name, e)
            errors.append(e)
            return

        logger.info(
            "Published %d domain(s) for %s: %s",
            len(publication.specs),
            name,
            " ".join(spec.domain_name for spec in publication.specs) or "<none>",
        )

    def run_cycle(self) -> list[CompanionError]:
        errors: list[CompanionError] = []
        pending = self.merge(errors)
        if not pending:
            logger.warning("No containers to refresh")
        for name, entry in pending.items():
            self.refresh_container(name, entry, errors)
        logger.debug("Cycle finished containers=%d errors=%d", len(pending), len(errors))
        return errors

    def wait(self) -> bool:
        """Block until the next cycle is due. False means stop."""
        refresh_seconds = self.config.refresh_seconds
        if refresh_seconds is None:
            # Publish once and exit.
            return False
        if self.termination.is_set():
            return False
        self.termination.wait(refresh_seconds)
        # Termination wins over an elapsed timer.
        return not self.termination.is_set()

    def run(self) -> list[CompanionError]:
        """Run cycles until stopped; returns the errors of the final cycle."""
        while True:
            errors = self.run_cycle()
            if not self.wait():
                return errors
            if errors:
                logger.debug("Starting a new cycle; %d error(s) of the previous cycle were logged", len(errors))
