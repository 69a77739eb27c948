from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from ..domain_spec import DomainSpec

JSON_HOST = "host"
JSON_PORT = "port"
JSON_ID = "id"
JSON_DOMAIN = "domain"
JSON_HTTP = "http"
JSON_HTTPS = "https"


def backend_setup(host: str, port: int) -> dict[str, Any]:
    return {JSON_HOST: host, JSON_PORT: port}


def domain_config(container_host: str, spec: DomainSpec) -> dict[str, Any]:
    out: dict[str, Any] = {
        JSON_ID: spec.spec_id,
        JSON_DOMAIN: spec.domain_name,
    }
    # An absent key means the protocol is not served for this domain.
    if spec.http_port is not None:
        out[JSON_HTTP] = backend_setup(container_host, spec.http_port)
    if spec.https_port is not None:
        out[JSON_HTTPS] = backend_setup(container_host, spec.https_port)
    return out


def domain_configs(container_host: str, specs: Sequence[DomainSpec]) -> list[dict[str, Any]]:
    return [domain_config(container_host, spec) for spec in specs]


def encode(configs: list[dict[str, Any]]) -> str:
    return json.dumps(configs, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
