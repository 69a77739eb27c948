from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from ..domain_spec import DomainSpec
from ..inspector import Inspection


@dataclass(frozen=True)
class Publication:
    host: str
    specs: list[DomainSpec] = field(default_factory=list)

    @classmethod
    def from_inspection(cls, inspection: Inspection) -> Publication:
        return cls(host=inspection.host, specs=list(inspection.specs))


class Publisher(Protocol):
    """Abstract interface for the component that publishes the current
    configuration state to whatever system needs to be informed.

    Implementations raise PublishingError on failure.
    """

    def publish(self, publication: Publication) -> None: ...
