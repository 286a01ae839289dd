"""Configuration service for managing BPD dashboard configuration.

This module provides the ConfigService class, which is the single source of truth
for configuration and store credentials. It handles:

- Loading and saving config.json
- Dotted-key reads and writes of configuration values
- The persisted credential override set from the settings surface
- Credential resolution across call-site arguments, the persisted override and
  environment variables
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from bpd_dashboard.models.config_models import AppConfig, StoreCredentials

logger = logging.getLogger(__name__)

URL_KEY = "SUPABASE_URL"
ANON_KEY = "SUPABASE_ANON_KEY"

# Checked in order for each key; the plain name wins over framework prefixes.
ENV_PREFIXES = ("", "VITE_", "REACT_APP_", "NEXT_PUBLIC_", "PUBLIC_")


def lookup_env(key: str, environ: Mapping[str, str] | None = None) -> str:
    """Look up *key* across the conventional environment variable namespaces.

    Args:
        key: Base variable name, e.g. ``SUPABASE_URL``
        environ: Mapping to search (defaults to ``os.environ``)

    Returns:
        The first non-empty value found, stripped, or an empty string
    """
    if environ is None:
        environ = os.environ
    for prefix in ENV_PREFIXES:
        value = environ.get(f"{prefix}{key}")
        if value and value.strip():
            return value.strip()
    return ""


class ConfigService:
    """Service for managing application configuration and credentials.

    Configuration lives in ``config.json`` under the user config directory;
    the credential override lives in ``credentials.json`` next to it with
    owner-only permissions.
    """

    def __init__(self, environ: Mapping[str, str] | None = None):
        """Initialize the config service.

        Args:
            environ: Environment mapping used for credential lookup
                (defaults to ``os.environ``)
        """
        self.config_dir = Path(user_config_dir("bpd_dashboard"))
        self.config_path = self.config_dir / "config.json"
        self.credentials_path = self.config_dir / "credentials.json"
        self.data_dir = Path(user_data_dir("bpd_dashboard"))
        self.environ = environ

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage.

        A missing or unreadable file yields the default configuration.
        """
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except (OSError, ValueError):
            # Missing or corrupt file, fall back to defaults
            self._config = AppConfig()

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, BaseModel):
                value = getattr(value, k, None)
            else:
                return None
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        Raises:
            ValueError: If the key does not exist or the value is invalid
        """
        keys = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for k in keys[:-1]:
            if k not in current or not isinstance(current[k], dict):
                raise ValueError(f"Unknown configuration key: {key}")
            current = current[k]
        if keys[-1] not in current:
            raise ValueError(f"Unknown configuration key: {key}")
        current[keys[-1]] = value

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {value}") from e
        self.save_config()

    def reset_config(self) -> None:
        """Reset configuration to defaults."""
        self._config = AppConfig()
        if self.config_path.exists():
            self.config_path.unlink()

    def load_credentials(self) -> StoreCredentials | None:
        """Load the persisted credential override.

        Returns:
            StoreCredentials, or None if absent or unreadable
        """
        try:
            with open(self.credentials_path, encoding="utf-8") as f:
                return StoreCredentials(**json.load(f))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Ignoring unreadable credentials file %s: %s", self.credentials_path, e)
            return None

    def save_credentials(self, url: str, key: str) -> StoreCredentials:
        """Persist a credential override.

        Raises:
            ValueError: If either value is blank
        """
        credentials = StoreCredentials(url=url, key=key)
        self.credentials_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.credentials_path, "w", encoding="utf-8") as f:
            json.dump(credentials.model_dump(), f, indent=2)

        self.credentials_path.chmod(0o600)
        return credentials

    def clear_credentials(self) -> None:
        """Erase the persisted credential override."""
        if self.credentials_path.exists():
            self.credentials_path.unlink()

    def env_credentials(self) -> StoreCredentials | None:
        """Credentials from environment variables, if both keys are set."""
        url = lookup_env(URL_KEY, self.environ)
        key = lookup_env(ANON_KEY, self.environ)
        if url and key:
            return StoreCredentials(url=url, key=key)
        return None

    def resolve_credentials(
        self, url: str | None = None, key: str | None = None
    ) -> StoreCredentials | None:
        """Resolve the credential pair to connect with.

        Priority: explicit arguments (both required), then the persisted
        override, then the environment lookup.
        """
        if url and url.strip() and key and key.strip():
            return StoreCredentials(url=url, key=key)
        return self.load_credentials() or self.env_credentials()

    def has_credentials(self) -> bool:
        """Whether any credential source currently resolves."""
        return self.resolve_credentials() is not None


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
