from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from ..domain_spec import DomainSpec, parse_all


@dataclass(frozen=True)
class Inspection:
    host: str
    specs: list[DomainSpec] = field(default_factory=list)
    envvar_present: bool = False


class Inspector(Protocol):
    """Source of container information.

    Implementations raise EnumerationError / InspectionError on failure.
    """

    def enumerate(self) -> list[str]: ...

    def inspect(self, container_name: str) -> Inspection: ...


def parse_container_env(env: Iterable[str] | None, envvar: str, specs: list[DomainSpec]) -> bool:
    """Collect domain specs from `KEY=VALUE` environment lines.

    Every line for `envvar` contributes, in order. Returns whether the
    variable was present at all. DomainSpecError propagates with `specs`
    holding what was parsed so far.
    """
    present = False
    for line in env or []:
        key, sep, value = str(line).partition("=")
        if not sep or key != envvar:
            continue
        present = True
        parse_all(value, specs)
    return present
