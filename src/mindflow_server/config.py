"""Server settings for the mindflow HTTP host.

``ServerSettings.from_env()`` reads the ``SERVER_*`` variables plus
``TRUSTED_PROXY_SECRET``; every field has a local-development default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ServerSettings:
    """Immutable host configuration, stored on ``app.state.settings``."""

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # "*" allows every origin
    cors_origins: tuple[str, ...] = ("*",)

    # None: FlowCatalog falls back to MINDFLOW_FLOWS_DIR, then flows/
    flows_dir: str | None = None

    # GET /flows page size when no limit is given, and the cap on ?limit=
    flow_list_limit: int = 20
    flow_list_max: int = 100

    # When set, X-User-ID is only trusted alongside a matching X-Proxy-Secret
    trusted_proxy_secret: str | None = None

    @classmethod
    def from_env(cls) -> ServerSettings:
        origins = os.getenv("SERVER_CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("SERVER_HOST", cls.host),
            port=int(os.getenv("SERVER_PORT", str(cls.port))),
            log_level=os.getenv("SERVER_LOG_LEVEL", cls.log_level).upper(),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            flows_dir=os.getenv("SERVER_FLOWS_DIR") or None,
            flow_list_limit=int(os.getenv("SERVER_FLOW_LIST_LIMIT", str(cls.flow_list_limit))),
            flow_list_max=int(os.getenv("SERVER_FLOW_LIST_MAX", str(cls.flow_list_max))),
            trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
        )

    def page_size(self, requested: int | None) -> int:
        """Resolve a ``?limit=`` value against the configured default and cap."""
        if requested is None:
            return self.flow_list_limit
        return min(requested, self.flow_list_max)
