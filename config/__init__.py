"""
Configuration Module for the Expiry Date OCR Engine.

Loads tunables (label prefixes, preprocessing sizes, recognition providers,
cloud credentials, logging) from a YAML file. Components read values through
get_config() and always pass an in-code default, so a trimmed settings file
never breaks a component.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional


class ConfigurationManager:
    """
    Singleton access to config/settings.yaml.

    Attributes:
        config_path (Path): Path to the configuration file.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("preprocessing.target_width")
        1200
        >>> config.get("recognition.providers")
        ['tesseract', 'cloud']
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional path to a YAML file.
                        Defaults to config/settings.yaml.
        """
        if self._initialized:
            return

        if config_path is None:
            self.config_path = Path(__file__).parent / "settings.yaml"
        else:
            self.config_path = Path(config_path)

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load configuration from the YAML file.

        Raises:
            FileNotFoundError: If the configuration file doesn't exist.
            yaml.YAMLError: If the configuration file is invalid.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Make the log file path absolute, relative to the project root."""
        project_root = Path(__file__).parent.parent

        log_file = self._config.get('logging', {}).get('file', {})
        path = log_file.get('path') if isinstance(log_file, dict) else None
        if path and not Path(path).is_absolute():
            log_file['path'] = str(project_root / path)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "recognition.cloud.api_key").
            default: Value returned when the key doesn't exist.

        Returns:
            Configuration value or default.

        Example:
            >>> config.get("recognition.cloud.engine")
            2
            >>> config.get("nonexistent.key", "fallback")
            'fallback'
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_all(self) -> Dict[str, Any]:
        """Return a shallow copy of the whole configuration."""
        return self._config.copy()

    def reload(self) -> None:
        """Re-read the configuration file."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """
        Drop the singleton instance.
        Used by tests and by the CLI when --config points elsewhere.
        """
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get configuration values.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config']
