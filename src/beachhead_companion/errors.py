from __future__ import annotations


class CompanionError(RuntimeError):
    """Base class for everything the companion reports about a container or a cycle."""

    def __init__(self, message: str, *, container_name: str | None = None) -> None:
        super().__init__(message)
        self.container_name = container_name

    def __str__(self) -> str:
        msg = super().__str__()
        if self.container_name:
            return f"{msg} Container name: {self.container_name}."
        return msg


class ConfigurationError(CompanionError):
    pass


class DomainSpecError(CompanionError):
    """Invalid port value in a domain-spec token.

    `specs` holds the specs parsed before the failing token.
    """

    def __init__(
        self,
        *,
        domain_name: str,
        key: str | None,
        cause: Exception,
        specs: list | None = None,
    ) -> None:
        msg = f'Failed to parse domain spec option. Domain name: "{domain_name}"'
        if key is not None:
            msg += f' Option name: "{key}"'
        msg += f" Cause: {cause}"
        super().__init__(msg)
        self.domain_name = domain_name
        self.key = key
        self.cause = cause
        self.specs = specs if specs is not None else []


class InspectionError(CompanionError):
    pass


class ContainerNotFoundError(InspectionError):
    pass


class EnumerationError(CompanionError):
    pass


class PublishingError(CompanionError):
    pass


class EnvVarMissingError(CompanionError):
    def __init__(self, *, envvar: str, container_name: str) -> None:
        super().__init__(f"No environment variable {envvar} on container.", container_name=container_name)
        self.envvar = envvar
