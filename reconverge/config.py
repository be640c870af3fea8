#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("reconverge")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. RECONVERGE_CONFIG environment variable
    2. ~/.reconverge/ directory
    """
    if 'RECONVERGE_CONFIG' in os.environ:
        path = Path(os.environ['RECONVERGE_CONFIG']).expanduser()
        if path.exists():
            return path

    config_dir = Path.home() / '.reconverge'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def _read_config_file(config_path: Path) -> dict:
    """Parse a config file according to its suffix."""
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file.

    Raises:
        ConfigError: if the config file exists but cannot be parsed
    """
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config must be a mapping: {config_path}")

        config = merge_configs(config, file_config)

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file (JSON or YAML, chosen by suffix)."""
    config_path = Path(config_path) if config_path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        if config_path.suffix.lower() == '.toml':
            logger.warning("Writing TOML is not supported. Saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            # Exit non-zero when any stage or item failed
            "strict_exit": False,
            "state_directory": "~/.local/state/reconverge",
        },
        "manifests": {
            "directory": "~/.config",
            "files": {
                "system_package": "packages.apt",
                "system_repository": "repositories.apt",
                "sandbox_package": "packages.snap",
                "language_package": "packages.pip",
                "repository": "repositories.git",
                "release": "releases.github",
            },
        },
        "logging": {
            "file": "/var/log/package_setup.log",
            "level": "INFO",
        },
        "privilege": {
            "command": "sudo",
        },
        "apt": {
            "base_packages": ["software-properties-common", "apt-utils", "curl", "wget", "git"],
            "foreign_architectures": ["i386"],
        },
        "repositories": {
            "base_directory": "~/Downloads/git-repos",
        },
        "releases": {
            "default_pattern": r".*\.deb",
        },
        "github": {
            "api_url": "https://api.github.com",
            "token": "",
            "timeout_seconds": 30,
            "download_timeout_seconds": 300,
            "rate_limit": {
                "max_retries": 3,
                "max_delay_seconds": 60,
            },
        },
        "hooks": [
            {
                "name": "streamdeck-ui",
                "when_language_package": "streamdeck_ui",
                "system_packages": ["libhidapi-libusb0", "libudev-dev"],
                "message": "Streamdeck UI setup completed. Launch with 'streamdeck' after reboot.",
            },
        ],
    }


def generate_config_example(config_path=None):
    """Write the default configuration as an example file and return its path."""
    config_path = Path(config_path) if config_path else Path.home() / '.reconverge' / 'config.example.json'
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        json.dump(get_default_config(), f, indent=2)

    logger.info(f"An example configuration file has been saved to {config_path}")
    return config_path


def merge_configs(base_config, override_config):
    """Overlay ``override_config`` on ``base_config``; nested sections merge key by key."""
    merged = dict(base_config)
    for key, value in override_config.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(env_key, value, current):
    """Convert an environment string to the type of the setting it replaces."""
    if isinstance(current, bool):
        lowered = value.strip().lower()
        if lowered in ('true', 'yes', 'on', '1'):
            return True
        if lowered in ('false', 'no', 'off', '0'):
            return False
        raise ConfigError(f"{env_key} must be a boolean, got {value!r}")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError as e:
            raise ConfigError(f"{env_key} must be an integer, got {value!r}") from e
    if isinstance(current, list):
        return [part.strip() for part in value.split(',') if part.strip()]
    return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.

    Each scalar or list setting one level below a section can be replaced by
    RECONVERGE_<SECTION>_<KEY>, e.g. RECONVERGE_GENERAL_STRICT_EXIT=true or
    RECONVERGE_APT_BASE_PACKAGES=git,curl. Deeper settings (github.rate_limit)
    and the hooks list are file-only.

    Raises:
        ConfigError: if a boolean or integer override cannot be parsed
    """
    for section, settings in config.items():
        if not isinstance(settings, dict):
            continue
        for key, current in settings.items():
            if isinstance(current, dict):
                continue
            env_key = f"RECONVERGE_{section}_{key}".upper()
            if env_key in os.environ:
                settings[key] = _coerce_env_value(env_key, os.environ[env_key], current)
    return config
