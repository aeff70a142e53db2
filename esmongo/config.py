"""
Client configuration.

Options can be given explicitly or read from the environment (and a
``.env`` file) with ``ClientOptions.from_env()``.
"""

import os
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from esmongo.execution.cursor import DEFAULT_PAGE_SIZE

DEFAULT_HOSTS = ["http://localhost:9200"]

ENV_PREFIX = "ESMONGO_"


class ClientOptions(BaseModel):
    """Configuration for the Elasticsearch-backed client."""

    hosts: List[str] = Field(default_factory=lambda: list(DEFAULT_HOSTS))
    api_key: Optional[str] = None
    basic_auth: Optional[Tuple[str, str]] = None
    request_timeout: Optional[float] = None
    refresh_on_updates: bool = False
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientOptions":
        """
        Build options from ``ESMONGO_*`` environment variables.

        Args:
            **overrides: Explicit values, these win over the environment

        Returns:
            Validated client options
        """
        load_dotenv()

        values: Dict[str, Any] = {}
        hosts = os.getenv(f"{ENV_PREFIX}HOSTS")
        if hosts:
            values["hosts"] = [h.strip() for h in hosts.split(",") if h.strip()]
        api_key = os.getenv(f"{ENV_PREFIX}API_KEY")
        if api_key:
            values["api_key"] = api_key
        username = os.getenv(f"{ENV_PREFIX}USERNAME")
        if username:
            values["basic_auth"] = (username, os.getenv(f"{ENV_PREFIX}PASSWORD", ""))
        timeout = os.getenv(f"{ENV_PREFIX}REQUEST_TIMEOUT")
        if timeout:
            values["request_timeout"] = timeout
        refresh = os.getenv(f"{ENV_PREFIX}REFRESH_ON_UPDATES")
        if refresh:
            values["refresh_on_updates"] = refresh
        page_size = os.getenv(f"{ENV_PREFIX}PAGE_SIZE")
        if page_size:
            values["page_size"] = page_size

        values.update(overrides)
        return cls(**values)

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``elasticsearch.Elasticsearch``."""
        kwargs: Dict[str, Any] = {"hosts": self.hosts}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.basic_auth:
            kwargs["basic_auth"] = self.basic_auth
        if self.request_timeout is not None:
            kwargs["request_timeout"] = self.request_timeout
        return kwargs
