"""
Configuration management for jobchat.

Loads settings from environment variables (and a local .env file) with
sensible defaults.
Uses pydantic-settings for validation.
"""

from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class BedrockSettings(BaseSettings):
    """Upstream agent settings - Lambda proxy by default, direct runtime optional."""

    model_config = SettingsConfigDict(env_prefix="BEDROCK_", env_file=".env", extra="ignore")

    agent_id: Optional[str] = Field(
        default=None,
        description="Bedrock agent ID (direct runtime only)"
    )
    agent_alias_id: Optional[str] = Field(
        default=None,
        description="Bedrock agent alias ID (direct runtime only)"
    )
    region: str = Field(
        default="us-east-1",
        description="Region of the Bedrock agent runtime"
    )
    lambda_name: str = Field(
        default="bedrock-agent-proxy",
        description="Name or ARN of the Lambda that fronts the agent"
    )
    lambda_region: str = Field(
        default="us-east-2",
        description="Region of the agent Lambda"
    )
    use_lambda_proxy: bool = Field(
        default=True,
        description="Invoke the agent through the Lambda proxy instead of the runtime API"
    )


class ChatHistorySettings(BaseSettings):
    """Chat history Lambda settings."""

    model_config = SettingsConfigDict(env_prefix="SAVE_CHAT_", env_file=".env", extra="ignore")

    lambda_name: str = Field(
        default="vectorize-chat",
        description="Name or ARN of the Lambda that stores chat turns"
    )
    region: str = Field(
        default="us-east-2",
        description="Region of the chat history Lambda"
    )


class CorsSettings(BaseSettings):
    """Origins allowed to embed the chat widget."""

    model_config = SettingsConfigDict(env_prefix="CORS_", env_file=".env", extra="ignore")

    # Comma-separated, e.g. "http://localhost:3000,https://app.example.com"
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed origins"
    )
    default_origin: str = Field(
        default="http://localhost:3000",
        description="Origin echoed when the request origin is not allowed"
    )

    @property
    def origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


class ParsingSettings(BaseSettings):
    """Extraction behaviour toggles."""

    model_config = SettingsConfigDict(env_prefix="PARSING_", env_file=".env", extra="ignore")

    default_filters_on_dashboard_phrase: bool = Field(
        default=True,
        description="Substitute all-'Any' filters when the agent only says it updated the dashboard"
    )
    infer_filters_from_text: bool = Field(
        default=False,
        description="Infer filters from titles and places in the message when none were supplied"
    )


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(env_prefix="JOBCHAT_", env_file=".env", extra="ignore")

    # Application
    app_name: str = "jobchat"
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    use_mock_agent: bool = Field(
        default=False,
        description="Answer with canned agent replies instead of calling AWS"
    )

    # Sub-settings
    bedrock: BedrockSettings = Field(default_factory=BedrockSettings)
    chat_history: ChatHistorySettings = Field(default_factory=ChatHistorySettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    parsing: ParsingSettings = Field(default_factory=ParsingSettings)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings. Useful for dependency injection."""
    return settings
