"""Configuration management for the variant generator."""

import json
import logging
from pathlib import Path
from typing import Any, Dict


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""
    pass


class ConfigManager:
    """Manages loading and validation of configuration from config.json."""

    REQUIRED_FIELDS = [
        "uploads_directory_path"
    ]

    DEFAULTS: Dict[str, Any] = {
        "ffmpeg_path": "ffmpeg",
        "engine_timeout_seconds": 3600,
        "max_workers": 1,
        "fail_fast": False,
        "abort_on_failure": True,
    }

    SERVER_DEFAULTS: Dict[str, Any] = {
        "enabled": False,
        "host": "0.0.0.0",
        "port": 3000,
    }

    def __init__(self, config_path: str = "config.json"):
        """
        Initialize ConfigManager with path to configuration file.

        Args:
            config_path: Path to the JSON configuration file (default: "config.json")
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_and_validate()

    def _load_and_validate(self):
        """Load and validate configuration on initialization."""
        try:
            logging.info(f"Loading configuration from {self.config_path}")
            config = self.load_config()
            self.validate_config(config)
            self._config = self._apply_defaults(config)
            logging.info("Configuration loaded and validated successfully")
        except ConfigurationError:
            logging.error(f"Configuration error: Failed to load or validate {self.config_path}")
            raise

    def load_config(self) -> dict:
        """
        Read and parse JSON configuration from file.

        Returns:
            Dictionary containing configuration data

        Raises:
            ConfigurationError: If file is missing or contains invalid JSON
        """
        if not self.config_path.exists():
            error_msg = f"Configuration file not found: {self.config_path}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg)

        try:
            logging.debug(f"Reading configuration file: {self.config_path}")
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            error_msg = f"Invalid JSON in configuration file: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg)
        except OSError as e:
            error_msg = f"Error reading configuration file: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg)

        if not isinstance(config, dict):
            raise ConfigurationError("Configuration root must be a JSON object")

        logging.debug(f"Configuration contents: {config}")
        return config

    def _require_type(self, config: dict, field: str, expected: type) -> None:
        value = config[field]
        # bool is a subclass of int; reject it where an int is expected
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            error_msg = f"'{field}' must be a {expected.__name__}, got {type(value).__name__}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg)

    def validate_config(self, config: dict) -> bool:
        """
        Verify that all required fields exist and all present fields are valid.

        Args:
            config: Configuration dictionary to validate

        Returns:
            True if configuration is valid

        Raises:
            ConfigurationError: If validation fails
        """
        logging.debug("Starting configuration validation")

        missing_fields = [
            field for field in self.REQUIRED_FIELDS
            if field not in config
        ]
        if missing_fields:
            error_msg = f"Missing required configuration fields: {', '.join(missing_fields)}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg)

        self._require_type(config, "uploads_directory_path", str)
        uploads_path = Path(config["uploads_directory_path"])
        if uploads_path.exists() and not uploads_path.is_dir():
            error_msg = f"Uploads path exists but is not a directory: {uploads_path}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg)

        for field in ("ffmpeg_path",):
            if field in config:
                self._require_type(config, field, str)
        for field in ("fail_fast", "abort_on_failure"):
            if field in config:
                self._require_type(config, field, bool)
        for field in ("engine_timeout_seconds", "max_workers"):
            if field in config:
                self._require_type(config, field, int)
                if config[field] < 1:
                    error_msg = f"'{field}' must be at least 1, got {config[field]}"
                    logging.error(error_msg)
                    raise ConfigurationError(error_msg)

        if "server" in config:
            self._validate_server(config["server"])

        logging.info("Configuration validation successful")
        return True

    def _validate_server(self, server: Any) -> None:
        if not isinstance(server, dict):
            raise ConfigurationError(f"'server' must be an object, got {type(server).__name__}")
        if "enabled" in server:
            self._require_type(server, "enabled", bool)
        if "host" in server:
            self._require_type(server, "host", str)
        if "port" in server:
            self._require_type(server, "port", int)
            if not 0 < server["port"] < 65536:
                raise ConfigurationError(f"'port' out of range: {server['port']}")

    def _apply_defaults(self, config: dict) -> Dict[str, Any]:
        merged = dict(self.DEFAULTS)
        merged.update(config)
        merged["server"] = {**self.SERVER_DEFAULTS, **config.get("server", {})}
        return merged

    @property
    def uploads_directory(self) -> Path:
        """Get the uploads directory path as a Path object."""
        return Path(self._config["uploads_directory_path"])

    @property
    def ffmpeg_path(self) -> str:
        return self._config["ffmpeg_path"]

    @property
    def engine_timeout(self) -> int:
        """Maximum run time of one ffmpeg process in seconds."""
        return self._config["engine_timeout_seconds"]

    @property
    def max_workers(self) -> int:
        return self._config["max_workers"]

    @property
    def fail_fast(self) -> bool:
        return self._config["fail_fast"]

    @property
    def abort_on_failure(self) -> bool:
        """Whether a failed variant prevents the server from starting."""
        return self._config["abort_on_failure"]

    @property
    def server_enabled(self) -> bool:
        return self._config["server"]["enabled"]

    @property
    def server_host(self) -> str:
        return self._config["server"]["host"]

    @property
    def server_port(self) -> int:
        return self._config["server"]["port"]
