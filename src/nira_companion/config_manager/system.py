# config_manager/system.py
from pydantic import BaseModel, Field, model_validator

from .env_config import get_env_config


class SystemConfig(BaseModel):
    """System configuration settings."""

    host: str = Field(default_factory=lambda: get_env_config().server.host)
    port: int = Field(default_factory=lambda: get_env_config().server.port)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    admin_api_key: str = Field(
        default_factory=lambda: get_env_config().server.admin_api_key
    )
    # Treat bearer tokens as user ids. Local development only.
    allow_dev_tokens: bool = Field(
        default_factory=lambda: get_env_config().server.allow_dev_tokens
    )

    @model_validator(mode="after")
    def check_port(self):
        if self.port < 0 or self.port > 65535:
            raise ValueError("Port must be between 0 and 65535")
        return self
