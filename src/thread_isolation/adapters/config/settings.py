"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IsolationSettings(BaseSettings):
    """Isolation policy configuration.

    Controls which types may be registered and how private module copies
    are named.
    """

    model_config = SettingsConfigDict(
        env_prefix="THREAD_ISOLATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    protected_namespaces: list[str] = Field(
        default_factory=list,
        description=(
            "Dotted namespaces types must belong to in order to be registered "
            "(empty = any module backed by Python source)"
        ),
    )

    deny_stdlib: bool = Field(
        default=True,
        description="Refuse to isolate standard library modules",
    )

    module_alias_prefix: str = Field(
        default="__isolated__",
        min_length=1,
        max_length=64,
        description="Infix between original module name and context label in private aliases",
    )

    @field_validator("protected_namespaces")
    @classmethod
    def validate_protected_namespaces(cls, v: list[str]) -> list[str]:
        """Strip surrounding dots and reject non-identifier segments."""
        cleaned = []
        for namespace in v:
            namespace = namespace.strip().strip(".")
            if not namespace:
                continue
            if not all(part.isidentifier() for part in namespace.split(".")):
                raise ValueError(f"Invalid namespace '{namespace}'")
            cleaned.append(namespace)
        return cleaned

    @field_validator("module_alias_prefix")
    @classmethod
    def validate_module_alias_prefix(cls, v: str) -> str:
        """Validate the alias infix is usable inside a module name."""
        if not ("x" + v).isidentifier():
            raise ValueError("module_alias_prefix must only contain identifier characters")
        return v


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="THREAD_ISOLATION_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    json_output: bool = Field(
        default=False,
        description="Render log events as JSON instead of console output",
    )


class Settings(BaseSettings):
    """Root settings container.

    Aggregates all subsettings into a single object.

    Example:
        >>> settings = Settings()
        >>> settings.isolation.deny_stdlib
        True
        >>> settings.logging.level
        'INFO'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    isolation: IsolationSettings = Field(default_factory=IsolationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings singleton.

    Loads configuration from environment variables and .env file.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings (for testing).

    Forces reload of configuration from environment.

    Returns:
        Fresh Settings instance.
    """
    global _settings
    _settings = Settings()
    return _settings
