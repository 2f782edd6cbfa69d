"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), reset_config(), ConfigModule.get()/get_all()
Hidden: Environment parsing, defaults, validation

Every value comes from the environment; there are no config files.
"""

import os
from typing import Any, Dict, Optional

# Keys the rest of the service may rely on being present after startup
REQUIRED_CONFIG_KEYS = {
    "database_url": "SQLAlchemy database URL for the studio sessions store",
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "session_end_notes_policy": "Notes/recording files on end: 'clear' or 'preserve'",
}

OPTIONAL_CONFIG_KEYS = {
    "database_echo": {"description": "Echo SQL statements to the log", "default": False},
    "create_schema": {"description": "Create missing tables at startup", "default": False},
    "redis_host": {"description": "Redis host for the auth audit trail", "default": None},
    "redis_port": {"description": "Redis port", "default": 6379},
    "redis_db": {"description": "Redis database number", "default": 0},
    "redis_password": {"description": "Redis password", "default": None},
    "debug": {"description": "Auto-reload when run directly", "default": False},
}

NOTES_POLICIES = ("clear", "preserve")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _redis_port() -> int:
    # Kubernetes service links export REDIS_PORT as tcp://host:port
    value = os.getenv("REDIS_PORT", "6379")
    return int(value.rsplit(":", 1)[-1]) if value.startswith("tcp://") else int(value)


def load_from_env() -> Dict[str, Any]:
    """Read every known key from the environment, applying defaults."""
    return {
        "database_url": os.getenv("DATABASE_URL", "sqlite:///./studio_sessions.db"),
        "database_echo": _env_flag("DATABASE_ECHO"),
        "create_schema": _env_flag("DB_CREATE_SCHEMA"),
        "redis_host": os.getenv("REDIS_HOST") or None,
        "redis_port": _redis_port(),
        "redis_db": _env_int("REDIS_DB", 0),
        "redis_password": os.getenv("REDIS_PASSWORD") or None,
        "host": os.getenv("API_HOST", "0.0.0.0"),
        "port": _env_int("API_PORT", 8080),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "debug": _env_flag("DEBUG"),
        "session_end_notes_policy": os.getenv("SESSION_END_NOTES_POLICY", "clear").lower(),
    }


class ConfigModule:
    """Validated, environment-backed configuration."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        """
        Args:
            values: Explicit settings; the environment is read when omitted

        Raises:
            ValueError: If a required key is missing or the notes policy is unknown
        """
        self._config = load_from_env() if values is None else dict(values)
        self._validate()

    def _validate(self) -> None:
        missing = [key for key in REQUIRED_CONFIG_KEYS if self._config.get(key) is None]
        if missing:
            raise ValueError(f"Missing required configuration keys: {', '.join(missing)}")

        policy = self._config["session_end_notes_policy"]
        if policy not in NOTES_POLICIES:
            raise ValueError(
                f"Invalid SESSION_END_NOTES_POLICY '{policy}'. "
                f"Expected one of: {', '.join(NOTES_POLICIES)}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Copy of every configuration value."""
        return dict(self._config)

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """The required/optional key contract, for documentation and checks."""
        return {
            "required": dict(REQUIRED_CONFIG_KEYS),
            "optional": dict(OPTIONAL_CONFIG_KEYS),
        }


_instance: Optional[ConfigModule] = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


def reset_config() -> None:
    """Forget the singleton so the next get_config() re-reads the environment."""
    global _instance
    _instance = None
