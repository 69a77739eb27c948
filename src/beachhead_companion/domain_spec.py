from __future__ import annotations

import re
from dataclasses import dataclass

from .configmanager import ConfigManager
from .errors import DomainSpecError

logger = ConfigManager.get_logger(__name__)

DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443
MAX_PORT = 65535

_DS_PATTERN = re.compile(r"([a-zA-Z0-9][a-zA-Z0-9.-]+[a-zA-Z0-9]\.?)(:(\S+))?")
_ID_PATTERN = re.compile(r"[^A-Za-z0-9_]")
_DECIMAL_PATTERN = re.compile(r"\+?[0-9]+", re.ASCII)


@dataclass(frozen=True)
class DomainSpec:
    """Specification for a single domain.

    Carries an http port, an https port or both.
    """

    domain_name: str
    http_port: int | None = None
    https_port: int | None = None

    @property
    def spec_id(self) -> str:
        return _ID_PATTERN.sub("_", self.domain_name)

    def to_dsl(self) -> str:
        parts = [self.domain_name]
        if self.http_port is not None:
            parts.append(f"http={self.http_port}")
        if self.https_port is not None:
            parts.append(f"https={self.https_port}")
        return ":".join(parts)


def _parse_port(value: str) -> int:
    if not value:
        raise ValueError("cannot parse integer from empty string")
    if not _DECIMAL_PATTERN.fullmatch(value):
        raise ValueError(f"invalid digit found in string: {value!r}")
    port = int(value)
    if port > MAX_PORT:
        raise ValueError(f"number too large to fit in target type: {value}")
    return port


def parse_all(raw: str, specs: list[DomainSpec] | None = None) -> list[DomainSpec]:
    """Parse space separated domain-specs: DOMAIN[:http[=PORT]][:https[=PORT]].

    Results are appended to `specs` when given. Parsing stops at the first
    invalid port value; specs parsed up to that point stay in the list and
    are also attached to the raised DomainSpecError.
    """
    out: list[DomainSpec] = specs if specs is not None else []

    for m in _DS_PATTERN.finditer(raw or ""):
        domain_name = m.group(1)
        # FQDN canonicalization
        if domain_name.endswith("."):
            domain_name = domain_name[:-1]

        raw_params = m.group(3)
        params = raw_params.strip().split(":") if raw_params is not None else []

        http_port: int | None = None
        https_port: int | None = None
        for raw_param in params:
            key, sep, value = raw_param.partition("=")
            key = key.strip().lower()
            value = value.strip()

            if key not in {"http", "https"}:
                logger.warning("Unknown domain spec parameter %r for domain %s", key, domain_name)
                continue

            port: int | None = None
            if sep:
                try:
                    port = _parse_port(value)
                except ValueError as e:
                    raise DomainSpecError(domain_name=domain_name, key=key, cause=e, specs=out) from e

            if key == "http":
                http_port = DEFAULT_HTTP_PORT if port is None else port
            else:
                https_port = DEFAULT_HTTPS_PORT if port is None else port

        # No protocol given means both.
        if http_port is None and https_port is None:
            http_port = DEFAULT_HTTP_PORT
            https_port = DEFAULT_HTTPS_PORT

        out.append(DomainSpec(domain_name=domain_name, http_port=http_port, https_port=https_port))

    return out
