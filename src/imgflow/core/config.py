"""
Configuration Management
========================

TOML-based configuration file support for imgflow.

Configuration files are merged in the following order (highest to lowest priority):
1. Path passed explicitly to load_config_cascade()
2. ./imgflow.toml (current directory)
3. ~/.config/imgflow/config.toml (user config)
4. /etc/imgflow/config.toml (system config)
5. Built-in defaults

Example configuration file (imgflow.toml):

    [catalog]
    user_dir = "~/.imgflow/workflows"

    [paths]
    output_dir = "./output"
    temp_dir = "/tmp/imgflow"

    [execution]
    parallel_jobs = 4

    [logging]
    level = "WARNING"

    [validation]
    strict = false
"""

import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from imgflow.core.exceptions import ConfigError
from imgflow.core.logger import get_logger, set_level

logger = get_logger(__name__)

# Use tomli for Python < 3.11, tomllib for Python >= 3.11
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

PACKAGE_WORKFLOWS_DIR = Path(__file__).resolve().parent.parent / "workflows"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "catalog": {
        "builtin_dir": None,  # None = workflows shipped with the package
        "user_dir": "~/.imgflow/workflows",
    },
    "paths": {
        "output_dir": "./output",
        "temp_dir": os.path.join(tempfile.gettempdir(), "imgflow"),
    },
    "execution": {
        "parallel_jobs": 4,
    },
    "logging": {
        "level": "WARNING",
    },
    "validation": {
        "strict": False,
    },
}

# Standard config file locations, highest priority first
CONFIG_LOCATIONS = [
    Path("imgflow.toml"),
    Path("~/.config/imgflow/config.toml").expanduser(),
    Path("/etc/imgflow/config.toml"),
]


@dataclass
class Config:
    """
    Configuration container for imgflow settings.

    Attributes:
        catalog: Workflow catalog directories
        paths: Default output and temporary directories
        execution: Settings consumed by the execution coordinator
        logging: Logging settings
        validation: Validation defaults
        _source: Path to the config file that was loaded
    """

    catalog: Dict[str, Any] = field(default_factory=dict)
    paths: Dict[str, Any] = field(default_factory=dict)
    execution: Dict[str, Any] = field(default_factory=dict)
    logging: Dict[str, Any] = field(default_factory=dict)
    validation: Dict[str, Any] = field(default_factory=dict)
    _source: Optional[str] = None

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        section_dict = getattr(self, section, {})
        if not isinstance(section_dict, dict):
            return default
        return section_dict.get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set a configuration value."""
        section_dict = getattr(self, section, None)
        if isinstance(section_dict, dict):
            section_dict[key] = value

    @property
    def builtin_catalog_dir(self) -> Path:
        """Directory of workflows shipped with imgflow."""
        configured = self.get("catalog", "builtin_dir")
        if configured:
            return Path(configured).expanduser()
        return PACKAGE_WORKFLOWS_DIR

    @property
    def user_catalog_dir(self) -> Path:
        """Directory of user-authored workflows."""
        return Path(self.get("catalog", "user_dir", "~/.imgflow/workflows")).expanduser()

    @property
    def temp_dir(self) -> str:
        return str(self.get("paths", "temp_dir", DEFAULT_CONFIG["paths"]["temp_dir"]))

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "catalog": self.catalog,
            "paths": self.paths,
            "execution": self.execution,
            "logging": self.logging,
            "validation": self.validation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "Config":
        """Create Config from dictionary."""
        return cls(
            catalog=data.get("catalog", {}),
            paths=data.get("paths", {}),
            execution=data.get("execution", {}),
            logging=data.get("logging", {}),
            validation=data.get("validation", {}),
            _source=source,
        )


def load_toml(filepath: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a TOML configuration file.

    Args:
        filepath: Path to the TOML file

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigError: If TOML parsing fails
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    with open(path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def save_toml(config: Dict[str, Any], filepath: Union[str, Path]) -> str:
    """
    Save configuration to a TOML file.

    None values are omitted since TOML has no null.

    Args:
        config: Configuration dictionary
        filepath: Path to save the file

    Returns:
        Path to the saved file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = []
    for section, values in config.items():
        if isinstance(values, dict) and values:
            lines.append(f"[{section}]")
            for key, value in values.items():
                if isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, (int, float)):
                    lines.append(f"{key} = {value}")
                elif isinstance(value, list):
                    items = ", ".join(f'"{v}"' if isinstance(v, str) else str(v) for v in value)
                    lines.append(f"{key} = [{items}]")
            lines.append("")

    path.write_text("\n".join(lines), encoding="utf-8")
    return str(path)


def get_default_config() -> Config:
    """Get the default configuration."""
    return Config.from_dict(_deep_copy_dict(DEFAULT_CONFIG))


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from a single file, or use defaults.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Config object with file values merged over the defaults
    """
    config_data = _deep_copy_dict(DEFAULT_CONFIG)

    config_file = find_config_file(config_path)
    if config_file:
        try:
            config_data = _merge_dicts(config_data, load_toml(config_file))
            logger.info(f"Loaded configuration from {config_file}")
            return Config.from_dict(config_data, source=str(config_file))
        except (OSError, ConfigError) as e:
            logger.warning(f"Error loading config file {config_file}: {e}")

    return Config.from_dict(config_data)


def find_config_file(config_path: Optional[str] = None) -> Optional[Path]:
    """
    Find the configuration file to use.

    Args:
        config_path: Explicit path to config file (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if config_path:
        path = Path(config_path)
        if path.exists():
            return path
        logger.warning(f"Specified config file not found: {config_path}")
        return None

    for location in CONFIG_LOCATIONS:
        if location.exists():
            return location

    return None


def get_config_locations() -> List[Path]:
    """Get configuration file search locations in priority order (highest first)."""
    return CONFIG_LOCATIONS.copy()


def load_config_cascade(explicit_path: Optional[str] = None) -> Config:
    """
    Load configuration with full cascade support.

    Merges configs from all levels in priority order:
    defaults -> system -> user -> current dir -> explicit

    Args:
        explicit_path: Explicit config file path (highest priority)

    Returns:
        Config object with merged settings from all sources
    """
    config_data = _deep_copy_dict(DEFAULT_CONFIG)
    source = "defaults"

    locations = get_config_locations()
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            locations = [path] + locations
        else:
            logger.warning(f"Specified config file not found: {explicit_path}")

    # Lowest priority first so later files override earlier ones
    for location in reversed(locations):
        if not location.exists():
            continue
        try:
            config_data = _merge_dicts(config_data, load_toml(location))
            source = str(location)
            logger.debug(f"Merged configuration from {location}")
        except (OSError, ConfigError) as e:
            logger.warning(f"Error loading {location}: {e}")

    return Config.from_dict(config_data, source=source)


def _deep_copy_dict(d: Dict[str, Any]) -> Dict[str, Any]:
    """Create a deep copy of a dictionary."""
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            result[key] = _deep_copy_dict(value)
        elif isinstance(value, list):
            result[key] = value.copy()
        else:
            result[key] = value
    return result


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two dictionaries, with override taking precedence."""
    result = _deep_copy_dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


# Global configuration instance
_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config_cascade()
        set_level(_global_config.get("logging", "level", "WARNING"))
    return _global_config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration (reloaded on next access)."""
    global _global_config
    _global_config = None
