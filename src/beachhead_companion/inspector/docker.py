from __future__ import annotations

from typing import Any

import docker
from docker.errors import NotFound

from ..configmanager import CompanionConfig, ConfigManager
from ..domain_spec import DomainSpec
from ..errors import ContainerNotFoundError, DomainSpecError, EnumerationError, InspectionError
from .base import Inspection, parse_container_env

logger = ConfigManager.get_logger(__name__)


class DockerInspector:
    """Inspector backed by the Docker SDK.

    The client is created on first use and reused across cycles. With
    `docker_url` unset, `docker.from_env()` is used, which respects DOCKER_HOST.
    """

    def __init__(self, config: CompanionConfig, client: docker.DockerClient | None = None) -> None:
        self.config = config
        self._client = client

    def _docker(self) -> docker.DockerClient:
        if self._client is None:
            try:
                if self.config.docker_url:
                    self._client = docker.DockerClient(base_url=self.config.docker_url)
                else:
                    self._client = docker.from_env()
            except Exception as e:
                raise InspectionError(f"Failed to initialize Docker client ({e})") from e
            logger.debug("Docker client initialized url=%s", self.config.docker_url or "<env>")
        return self._client

    def enumerate(self) -> list[str]:
        try:
            containers = self._docker().containers.list(filters={"status": "running"})
        except Exception as e:
            raise EnumerationError(f"Failed to list running docker containers ({e})") from e
        logger.debug("Found %d running containers.", len(containers))
        names: list[str] = []
        for c in containers:
            name = str(getattr(c, "name", "") or "").strip() or str(getattr(c, "id", "") or "").strip()
            if name:
                names.append(name)
        return names

    def inspect(self, container_name: str) -> Inspection:
        try:
            attrs: dict[str, Any] = self._docker().containers.get(container_name).attrs or {}
        except NotFound as e:
            raise ContainerNotFoundError("No such container.", container_name=container_name) from e
        except InspectionError:
            raise
        except Exception as e:
            raise InspectionError(
                f"Error while communicating with the docker daemon ({e})", container_name=container_name
            ) from e
        return self.inspection_from_attrs(container_name, attrs)

    def inspection_from_attrs(self, container_name: str, attrs: dict[str, Any]) -> Inspection:
        config_section = attrs.get("Config") if isinstance(attrs.get("Config"), dict) else {}
        env = config_section.get("Env") or []
        if not isinstance(env, list):
            raise InspectionError("Malformed inspection payload: Config.Env is not a list.", container_name=container_name)

        specs: list[DomainSpec] = []
        try:
            present = parse_container_env(env, self.config.envvar, specs)
        except DomainSpecError as e:
            raise InspectionError(str(e), container_name=container_name) from e

        if self.config.docker_network:
            # The container name doubles as its hostname on a docker network.
            host = container_name
        else:
            network = attrs.get("NetworkSettings") if isinstance(attrs.get("NetworkSettings"), dict) else {}
            host = str(network.get("IPAddress") or "").strip()
            # Only containers that declare domains need an address.
            if not host and present:
                raise InspectionError(
                    "Container has no bridge IP address; consider --docker-network.", container_name=container_name
                )
        return Inspection(host=host, specs=specs, envvar_present=present)
