"""Configuration Management with Pydantic.

Defaults for the task combinators and the JSON client, parsed from a YAML or
JSON file and validated with Pydantic. Environment variables prefixed with
``TOOLBELT_`` override file values.
"""

import os
import threading
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from toolbelt.log_config import get_logger

# Initialize logger
logger = get_logger(__name__)

# Constants
HIGH_RETRY_DELAY_MS = 60_000
DEFAULT_CONFIG_FILES = ("toolbelt.yaml", "toolbelt.yml", "toolbelt.json")


class RetrySettings(BaseModel):
    """Retry budget applied by :class:`~toolbelt.tasks.runner.TaskRunner`.

    Attributes:
        attempts: Total attempts per task, including the first
        delay_ms: Constant delay between attempts in milliseconds
    """

    attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts per task",
    )
    delay_ms: int = Field(
        default=0,
        ge=0,
        description="Delay between attempts in milliseconds",
    )


class ConcurrencySettings(BaseModel):
    """Concurrency defaults.

    Attributes:
        limit: Maximum tasks in flight during a parallel run (None = unbounded)
        batch_size: Default number of tasks per chunk for batched runs
    """

    limit: int | None = Field(
        default=None,
        ge=1,
        description="Concurrency ceiling for parallel runs",
    )
    batch_size: int = Field(
        default=10,
        ge=1,
        description="Tasks per chunk for batched runs",
    )


class HttpSettings(BaseModel):
    """JSON client settings.

    Attributes:
        base_url: Prefix for relative request URLs
        timeout_ms: Default request timeout in milliseconds (None = no timeout)
        headers: Headers sent with every request
    """

    base_url: str = Field(
        default="",
        description="Base URL for relative requests",
    )
    timeout_ms: int | None = Field(
        default=None,
        gt=0,
        description="Request timeout in milliseconds",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Default request headers",
    )

    model_config = {"str_strip_whitespace": True}


class ToolbeltConfig(BaseModel):
    """Top-level configuration combining all settings.

    Attributes:
        retry: Retry budget
        concurrency: Concurrency defaults
        http: JSON client settings
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON lines instead of console output
    """

    retry: RetrySettings = Field(default_factory=RetrySettings)
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ToolbeltConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated ToolbeltConfig instance

        Raises:
            FileNotFoundError: If the configuration file doesn't exist
            ValueError: If the configuration is empty, unparsable or invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if not config_data:
            msg = "Configuration file is empty"
            raise ValueError(msg)

        config_data = cls._apply_env_overrides(config_data)
        config = cls(**config_data)

        logger.info(
            "configuration_loaded",
            concurrency_limit=config.concurrency.limit,
            retry_attempts=config.retry.attempts,
            logging_level=config.logging_level,
        )
        return config

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern ``TOOLBELT_<SECTION>_<KEY>``,
        e.g. ``TOOLBELT_RETRY_ATTEMPTS`` or ``TOOLBELT_HTTP_TIMEOUT_MS``.

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("retry", "attempts"): "TOOLBELT_RETRY_ATTEMPTS",
            ("retry", "delay_ms"): "TOOLBELT_RETRY_DELAY_MS",
            ("concurrency", "limit"): "TOOLBELT_CONCURRENCY_LIMIT",
            ("concurrency", "batch_size"): "TOOLBELT_BATCH_SIZE",
            ("http", "base_url"): "TOOLBELT_HTTP_BASE_URL",
            ("http", "timeout_ms"): "TOOLBELT_HTTP_TIMEOUT_MS",
            ("logging_level",): "TOOLBELT_LOGGING_LEVEL",
            ("json_logs",): "TOOLBELT_JSON_LOGS",
        }

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                if key not in current:
                    current[key] = {}
                current = current[key]

            # Convert string values to appropriate types
            if env_var.endswith(("_ATTEMPTS", "_MS", "_LIMIT", "_SIZE")):
                value = int(value)
            elif env_var.endswith("_LOGS"):
                value = value.lower() in ("true", "1", "yes")

            current[path[-1]] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.concurrency.limit is None:
            warnings.append(
                "Concurrency is unbounded - every task of a parallel run starts at once",
            )

        if self.http.timeout_ms is None:
            warnings.append("HTTP requests have no timeout and may wait indefinitely")

        if self.retry.delay_ms > HIGH_RETRY_DELAY_MS:
            warnings.append(
                f"Retry delay is high ({self.retry.delay_ms}ms) - "
                "failing tasks may take a long time to give up",
            )

        return warnings


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: ToolbeltConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> ToolbeltConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                toolbelt.yaml, toolbelt.yml or toolbelt.json in the current directory.

        Returns:
            Loaded ToolbeltConfig instance

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in DEFAULT_CONFIG_FILES:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                msg = (
                    "No configuration file found. Expected toolbelt.yaml, "
                    "toolbelt.yml, or toolbelt.json"
                )
                raise FileNotFoundError(msg)

        return ToolbeltConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> ToolbeltConfig:
        """Get configuration instance (singleton pattern).

        Uses double-checked locking so concurrent threads cannot both load.

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            ToolbeltConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> ToolbeltConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> ToolbeltConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConcurrencySettings",
    "HttpSettings",
    "RetrySettings",
    "ToolbeltConfig",
    "get_config",
    "load_config",
    "reset_config",
]
