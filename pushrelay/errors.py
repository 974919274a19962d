"""Process-level error types."""

from __future__ import annotations


class PushRelayError(Exception):
    """Base class for pushrelay errors."""


class ConfigError(PushRelayError):
    """Configuration is missing or invalid; the process must not start."""


class StartupError(PushRelayError):
    """A required collaborator (e.g. the Docker daemon) is unreachable at startup."""


class RuntimeQueryError(PushRelayError):
    """Listing containers from the container runtime failed."""
