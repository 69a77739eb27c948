from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum


class MissingEnvVarHandling(str, Enum):
    """What to do with a container that lacks the domain-spec environment variable."""

    AUTOMATIC = "automatic"
    REPORT = "report"
    IGNORE = "ignore"


class MissingContainerHandling(str, Enum):
    """What to do with a container that cannot be inspected."""

    REPORT = "report"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Escalation:
    level: int
    report: bool


def classify_missing_container(handling: MissingContainerHandling, *, explicit: bool) -> Escalation:
    if handling is MissingContainerHandling.REPORT:
        return Escalation(level=logging.ERROR, report=True)
    if explicit:
        return Escalation(level=logging.WARNING, report=True)
    # Discovered containers come and go between enumeration and inspection.
    return Escalation(level=logging.INFO, report=False)


def classify_missing_envvar(handling: MissingEnvVarHandling, *, explicit: bool) -> Escalation:
    if handling is MissingEnvVarHandling.REPORT:
        return Escalation(level=logging.ERROR, report=True)
    if explicit and handling is MissingEnvVarHandling.AUTOMATIC:
        return Escalation(level=logging.ERROR, report=True)
    return Escalation(level=logging.INFO, report=False)
