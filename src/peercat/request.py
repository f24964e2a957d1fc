"""
Request descriptor passed to the executor.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RequestDescriptor:
    """A single API call: HTTP method, path, optional body and credential."""

    method: str
    path: str
    api_key: str
    body: dict[str, Any] | None = None
    params: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must be a non-empty string")
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/', got {self.path!r}")
        object.__setattr__(self, "method", self.method.upper())

    def headers(self, user_agent: str) -> dict:
        """Get headers for this request."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": user_agent,
        }
