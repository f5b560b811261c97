"""Connection configuration for a gateway.

This module provides the TransportConfig dataclass describing how to reach
one gateway, with serialization to/from dictionaries so it can be stored
in an application's config entries.

Example:
    config = TransportConfig(secret="ABCDEFGHIJ")
    config.validate()

    # Serialize to dict for storage
    data = config.to_dict()

    # Restore from dict
    restored = TransportConfig.from_dict(data)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pypwlocal.constants import DEFAULT_REMOTE, DEFAULT_TIMEOUT


@dataclass
class TransportConfig:
    """Configuration for a single gateway connection.

    All values are fixed once a client has been built from the config.

    Attributes:
        secret: Gateway password, used as the Basic-Auth password
        remote: ``host:port`` of the gateway (default 192.168.91.1:443)
        din: Leader DIN. When set, the client never asks the gateway for it.
        timeout: Total request timeout in seconds (default 10.0)
    """

    secret: str
    remote: str = DEFAULT_REMOTE
    din: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def base_url(self) -> str:
        """HTTPS base URL for the configured remote."""
        return f"https://{self.remote or DEFAULT_REMOTE}"

    def validate(self) -> None:
        """Validate configuration completeness.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.secret:
            raise ValueError("secret is required")

        host, sep, port = (self.remote or DEFAULT_REMOTE).rpartition(":")
        if not sep or not host:
            raise ValueError(f"remote must be host:port, got {self.remote!r}")
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"remote has an invalid port: {port!r}")

        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization.

        Returns:
            Dictionary with all configuration values, suitable for JSON
            serialization. Note that this includes the secret.
        """
        return {
            "secret": self.secret,
            "remote": self.remote,
            "din": self.din,
            "timeout": self.timeout,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransportConfig:
        """Create configuration from dictionary.

        Args:
            data: Dictionary with configuration values (from to_dict())

        Returns:
            TransportConfig instance with values from dictionary
        """
        return cls(
            secret=data.get("secret", ""),
            remote=data.get("remote") or DEFAULT_REMOTE,
            din=data.get("din") or None,
            timeout=data.get("timeout", DEFAULT_TIMEOUT),
        )

    def __repr__(self) -> str:
        return (
            f"TransportConfig(remote={self.remote!r}, din={self.din!r}, "
            f"timeout={self.timeout!r}, secret='***')"
        )


__all__ = ["TransportConfig"]
