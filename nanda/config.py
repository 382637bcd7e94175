"""Settings via pydantic-settings with NANDA_ env prefix.

The Anthropic key reads the unprefixed ANTHROPIC_API_KEY variable so the
same .env file can be shared with other tooling. Field names are also
accepted so a dumped Settings can be validated again.
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_URL = "https://chat.nanda-registry.com:6900"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NANDA_", env_file=".env", populate_by_name=True)

    # Agent identity
    agent_id: str = "nanda-agent"
    domain: str = "localhost"
    anthropic_api_key: str = Field("", validation_alias="ANTHROPIC_API_KEY")

    # Network
    host: str = "0.0.0.0"
    port: int = 6000  # agent bridge
    api_port: int = 6001  # REST API
    ssl: bool = False
    cert_path: str | None = None
    key_path: str | None = None

    # Registry
    registry_url: str = DEFAULT_REGISTRY_URL
    public_url: str | None = None
    api_url: str | None = None
    heartbeat_interval: int = 60  # seconds, 0 disables

    # Conversations (0 = unbounded)
    max_conversations: int = Field(0, ge=0)

    log_level: Literal["error", "warning", "info", "debug"] = "info"

    @model_validator(mode="after")
    def _validate_ssl(self) -> "Settings":
        if self.ssl and not (self.cert_path and self.key_path):
            raise ValueError("ssl requires both cert_path and key_path")
        return self

    @property
    def agent_url(self) -> str:
        return self.public_url or f"http://localhost:{self.port}"

    @property
    def api_base_url(self) -> str:
        return self.api_url or f"http://localhost:{self.api_port}"
