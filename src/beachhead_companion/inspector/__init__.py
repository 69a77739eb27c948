"""Container inspection: the capability the companion reads container state through."""

from .base import Inspection, Inspector, parse_container_env
from .docker import DockerInspector

__all__ = [
    "DockerInspector",
    "Inspection",
    "Inspector",
    "parse_container_env",
]
