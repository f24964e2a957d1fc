"""
Client configuration.
"""

import os
from dataclasses import dataclass, field

from .retry import RetryConfig

SDK_VERSION = "0.1.0"
USER_AGENT = f"peercat-python/{SDK_VERSION}"

DEFAULT_BASE_URL = "https://api.peerc.at"
DEFAULT_TIMEOUT = 60.0

API_KEY_ENV = "PEERCAT_API_KEY"
BASE_URL_ENV = "PEERCAT_BASE_URL"


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable configuration for a PeerCat client.

    Attributes:
        api_key: PeerCat API key (sent as a bearer token)
        base_url: API base URL (default: https://api.peerc.at)
        timeout: Request timeout in seconds (default: 60)
        retry: Retry configuration for failed requests
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ValueError("api_key must be a non-empty string")
        if self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """
        Build a configuration from PEERCAT_API_KEY and PEERCAT_BASE_URL.

        Keyword arguments override the environment.
        """
        values = {}
        if API_KEY_ENV in os.environ:
            values["api_key"] = os.environ[API_KEY_ENV]
        if BASE_URL_ENV in os.environ:
            values["base_url"] = os.environ[BASE_URL_ENV]
        values.update(overrides)
        if "api_key" not in values:
            raise ValueError(f"No API key given and {API_KEY_ENV} is not set")
        return cls(**values)
