"""Gateway configuration, read from environment variables."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .core.dispatcher import DEFAULT_TIMEOUT_SECONDS, Dispatcher
from .core.operations import default_registry

logger = logging.getLogger(__name__)

REST_DEFAULT_PORT = 3000
MCP_DEFAULT_PORT = 3001

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


class GatewayConfig(BaseModel):
    """Runtime settings shared by the REST and MCP entry points."""

    host: str = "0.0.0.0"
    port: int = REST_DEFAULT_PORT
    fred_api_key: str = ""
    timeout: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0, description="Seconds allowed per upstream call")
    strict_enums: bool = Field(False, description="Reject unknown enum values instead of dropping them")
    log_level: str = "INFO"
    mcp_transport: str = "http"

    @classmethod
    def from_env(cls, default_port: int = REST_DEFAULT_PORT, environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", str(default_port))),
            fred_api_key=env.get("FRED_API_KEY", "").strip(),
            timeout=float(env.get("FRED_GATEWAY_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))),
            strict_enums=env.get("FRED_GATEWAY_STRICT_ENUMS", "").strip().lower() in _TRUTHY,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            mcp_transport=env.get("MCP_TRANSPORT", "http").strip().lower(),
        )

    def configure_logging(self) -> None:
        logging.basicConfig(level=getattr(logging, self.log_level, logging.INFO), format=LOG_FORMAT)

    def warn_if_unconfigured(self) -> None:
        if not self.fred_api_key:
            logger.warning("FRED_API_KEY environment variable not set — upstream calls will fail")
            logger.warning("Get your API key from: https://fred.stlouisfed.org/docs/api/api_key.html")


def build_dispatcher(config: GatewayConfig) -> Dispatcher:
    """Dispatcher over the live FRED registry."""
    return Dispatcher(
        default_registry(config.fred_api_key),
        timeout=config.timeout,
        strict_enums=config.strict_enums,
    )
