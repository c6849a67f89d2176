"""
Configuration module with strict validation.

Key principles:
- Importing the library does NOT require any API key
- Running a scout DOES require an LLM key (fails early with clear error)
- Timeouts, models and the client signature are configurable
- Safe defaults for all optional settings
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signal_scout.core.api_errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # LLM providers (OPTIONAL for import, REQUIRED for extraction)
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key"
    )

    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key"
    )

    llm_provider: Optional[str] = Field(
        default=None,
        description="Force 'openai' or 'anthropic' (default: whichever key is set, OpenAI first)"
    )

    # Models
    scout_agent_model: str = Field(
        default="gpt-4o-mini",
        description="Model for the contact, identity and classification agents"
    )

    scout_roster_model: str = Field(
        default="gpt-4o",
        description="Model for the roster agent"
    )

    scout_max_tokens: int = Field(
        default=2000,
        ge=100,
        le=16000,
        description="Maximum completion tokens per agent call"
    )

    # Fetching
    scout_fetch_timeout: float = Field(
        default=18.0,
        ge=1.0,
        le=120.0,
        description="Deadline in seconds shared by every page fetch of one scout run"
    )

    scout_user_agent: str = Field(
        default="SignalOS/1.0 (B2B Operating System; +https://signal.com)",
        description="User-Agent header sent with every page fetch"
    )

    scout_debug: bool = Field(
        default=False,
        description="Attach the diagnostic payload when the caller does not say"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: Optional[str]) -> Optional[str]:
        """Validate the forced provider, if any."""
        if v is None or not v.strip():
            return None
        v_lower = v.strip().lower()
        if v_lower not in {"openai", "anthropic"}:
            raise ValueError("llm_provider must be 'openai' or 'anthropic'")
        return v_lower

    def get_openai_api_key(self) -> Optional[str]:
        """Get the OpenAI API key if configured."""
        if self.openai_api_key and self.openai_api_key.strip():
            return self.openai_api_key.strip()
        return None

    def get_anthropic_api_key(self) -> Optional[str]:
        """Get the Anthropic API key if configured."""
        if self.anthropic_api_key and self.anthropic_api_key.strip():
            return self.anthropic_api_key.strip()
        return None

    def require_llm_api_key(self) -> str:
        """
        Get an LLM API key, raising clear error if none is configured.

        Call this at the START of any scout run.

        Raises:
            ConfigurationError: If neither key is configured

        Returns:
            str: The key for the provider that will be used
        """
        if self.llm_provider == "anthropic":
            key = self.get_anthropic_api_key()
        elif self.llm_provider == "openai":
            key = self.get_openai_api_key()
        else:
            key = self.get_openai_api_key() or self.get_anthropic_api_key()

        if not key:
            raise ConfigurationError(
                "LLM API key not configured. Add OPENAI_API_KEY (or ANTHROPIC_API_KEY) "
                "to your .env file or environment variables.",
                source="config",
                missing_config="OPENAI_API_KEY",
            )
        return key


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    This pattern allows:
    - Easy testing (can reset settings between tests)
    - Lazy loading (only loads when first accessed)
    - Singleton pattern (same instance used everywhere)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """
    Reset the global settings instance.

    Useful for testing to ensure clean state between tests.
    """
    global _settings
    _settings = None
