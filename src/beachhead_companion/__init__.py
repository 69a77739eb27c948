"""Keeps a Redis service registry in sync with the domains declared by running containers."""

__version__ = "0.3.0"
