"""
Configuration loading system for the Context Engine.

This module handles loading, merging, and validating configuration from
multiple sources including YAML files, environment variables, and CLI arguments.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
import yaml
from pydantic import BaseModel, ValidationError
from dotenv import load_dotenv

from .models import ContextEngineConfig
from ..utils.error_handling import ConfigurationError


ENV_PREFIX = "CTXENG_"

# Well-known variables honoured when the prefixed form is absent
FALLBACK_ENV_VARS = {
    "GEMINI_API_KEY": ("llm", "api_key"),
    "GOOGLE_CLOUD_PROJECT": ("llm", "project_id"),
}


class ConfigLoader:
    """
    Configuration loader that supports multiple sources and validation.

    Loading priority (highest to lowest):
    1. Environment variables (CTXENG_*)
    2. CLI-specified config file
    3. Environment-specific config (e.g., development.yaml)
    4. Default configuration file
    5. Built-in defaults (from Pydantic models)
    """

    def __init__(self):
        """Initialize the configuration loader."""
        self._config: Optional[ContextEngineConfig] = None
        self._config_path: Optional[Path] = None

        # Load environment variables from .env file if it exists
        env_file = Path(".env")
        if env_file.exists():
            load_dotenv(env_file)

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ContextEngineConfig:
        """
        Load configuration from multiple sources and validate it.

        Args:
            config_path: Optional path to a specific config file

        Returns:
            Validated ContextEngineConfig instance

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        try:
            config_data: Dict[str, Any] = {}

            # 1. Load default configuration
            default_config_path = self._find_default_config()
            if default_config_path:
                default_data = self._load_yaml_file(default_config_path)
                config_data = self._deep_merge(config_data, default_data)

            # 2. Load environment-specific configuration
            env_config_path = self._find_environment_config()
            if env_config_path and env_config_path != default_config_path:
                env_data = self._load_yaml_file(env_config_path)
                config_data = self._deep_merge(config_data, env_data)

            # 3. Load CLI-specified configuration
            if config_path:
                cli_config_path = Path(config_path)
                if not cli_config_path.exists():
                    raise ConfigurationError(
                        f"Specified config file not found: {config_path}",
                        details={"path": str(config_path)}
                    )

                cli_data = self._load_yaml_file(cli_config_path)
                config_data = self._deep_merge(config_data, cli_data)
                self._config_path = cli_config_path

            # 4. Apply environment variable overrides (highest priority)
            config_data = self._apply_env_overrides(config_data)

            # 5. Validate the final configuration
            self._config = ContextEngineConfig(**config_data)

            return self._config

        except ConfigurationError:
            raise
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {self._format_validation_error(e)}",
                details={"error_count": e.error_count()}
            ) from e
        except (OSError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}") from e

    def get_config(self) -> ContextEngineConfig:
        """
        Get the current configuration, loading it if necessary.

        Returns:
            Current ContextEngineConfig instance
        """
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def reload_config(self, config_path: Optional[Union[str, Path]] = None) -> ContextEngineConfig:
        """
        Reload configuration from sources.

        Args:
            config_path: Optional path to a specific config file

        Returns:
            Newly loaded ContextEngineConfig instance
        """
        self._config = None
        return self.load_config(config_path)

    def _find_default_config(self) -> Optional[Path]:
        """Find the default configuration file."""
        possible_paths = [
            Path("configs/default.yaml"),
            Path("configs/default.yml"),
            Path("config/default.yaml"),
            Path("config/default.yml"),
        ]

        for path in possible_paths:
            if path.exists():
                return path

        return None

    def _find_environment_config(self) -> Optional[Path]:
        """Find environment-specific configuration file."""
        env = os.getenv(f"{ENV_PREFIX}ENV") or os.getenv("ENVIRONMENT")

        if not env:
            return None

        possible_paths = [
            Path(f"configs/{env}.yaml"),
            Path(f"configs/{env}.yml"),
            Path(f"config/{env}.yaml"),
            Path(f"config/{env}.yml"),
        ]

        for path in possible_paths:
            if path.exists():
                return path

        return None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse a YAML configuration file.

        Args:
            file_path: Path to the YAML file

        Returns:
            Parsed configuration data

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)

            if data is None:
                return {}

            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {file_path} must contain a YAML object (dictionary)",
                    details={"path": str(file_path)}
                )

            return data

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {file_path}: {str(e)}", details={"path": str(file_path)}) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {str(e)}", details={"path": str(file_path)}) from e

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary

        Returns:
            Merged configuration dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        The first segment after the prefix names the section and the rest is the
        field, so ``CTXENG_LLM_MAX_CONCURRENT_REQUESTS`` overrides
        ``llm.max_concurrent_requests``. Unknown names are ignored.

        Args:
            config_data: Configuration data to override

        Returns:
            Configuration data with environment overrides applied
        """
        result = self._deep_merge({}, config_data)
        sections = ContextEngineConfig.model_fields

        for env_key, (section, field) in FALLBACK_ENV_VARS.items():
            env_value = os.environ.get(env_key)
            if env_value and not result.get(section, {}).get(field):
                self._set_nested_value(result, [section, field], env_value)

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX) or env_key == f"{ENV_PREFIX}ENV":
                continue

            parts = env_key[len(ENV_PREFIX):].lower().split('_')
            section, field = parts[0], '_'.join(parts[1:])
            if section not in sections or not field:
                continue

            section_model = sections[section].annotation
            if not (isinstance(section_model, type) and issubclass(section_model, BaseModel)):
                continue
            if field not in section_model.model_fields:
                continue

            typed_value = self._convert_env_value(env_value, section_model.model_fields[field].annotation)
            self._set_nested_value(result, [section, field], typed_value)

        return result

    def _convert_env_value(self, value: str, annotation: Any = None) -> Any:
        """
        Convert environment variable string to the shape the model expects.

        Scalars are handed to pydantic as strings, which coerces them to the
        field's type. List fields are split on commas.

        Args:
            value: String value from environment variable
            annotation: Type annotation of the target field

        Returns:
            Converted value
        """
        if annotation is not None and getattr(annotation, '__origin__', None) in (list, List):
            return [item.strip() for item in value.split(',') if item.strip()]

        return value

    def _set_nested_value(self, data: Dict[str, Any], path: list, value: Any) -> None:
        """
        Set a value in a nested dictionary using a path.

        Args:
            data: Dictionary to modify
            path: List of keys representing the path
            value: Value to set
        """
        current = data

        for key in path[:-1]:
            if key not in current or current[key] is None:
                current[key] = {}
            elif not isinstance(current[key], dict):
                # Can't navigate further, skip this override
                return
            current = current[key]

        if path:
            current[path[-1]] = value

    def _format_validation_error(self, error: ValidationError) -> str:
        """
        Format a Pydantic validation error for user-friendly display.

        Args:
            error: Pydantic ValidationError

        Returns:
            Formatted error message
        """
        messages = []
        for err in error.errors():
            location = " -> ".join(str(loc) for loc in err['loc']) or "config"
            message = err['msg']
            value = err.get('input', 'N/A')
            if isinstance(value, dict):
                value = "{...}"
            messages.append(f"  {location}: {message} (got: {value})")

        return "Validation errors:\n" + "\n".join(messages)


# Global configuration loader instance
_config_loader = ConfigLoader()


def load_config(config_path: Optional[Union[str, Path]] = None) -> ContextEngineConfig:
    """
    Load configuration from multiple sources.

    Args:
        config_path: Optional path to a specific config file

    Returns:
        Validated ContextEngineConfig instance

    Raises:
        ConfigurationError: If configuration loading fails
    """
    return _config_loader.load_config(config_path)


def get_config() -> ContextEngineConfig:
    """
    Get the current configuration, loading it if necessary.

    Returns:
        Current ContextEngineConfig instance
    """
    return _config_loader.get_config()


def reload_config(config_path: Optional[Union[str, Path]] = None) -> ContextEngineConfig:
    """
    Reload configuration from sources.

    Args:
        config_path: Optional path to a specific config file

    Returns:
        Newly loaded ContextEngineConfig instance
    """
    return _config_loader.reload_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> tuple[bool, Optional[str]]:
    """
    Validate a configuration file without loading it globally.

    Args:
        config_path: Path to configuration file to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        temp_loader = ConfigLoader()
        temp_loader.load_config(config_path)
        return True, None
    except ConfigurationError as e:
        return False, str(e)
