#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import sys

import yaml

from .exit_codes import ConfigurationError
from .utils import deep_merge, load_yaml_document

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("pluginsync")

# Organization defaults shipped with the package
PACKAGE_CONFIG_DEFAULTS = Path(__file__).parent / 'config_defaults.yml'

DEFAULT_BADGE_TEMPLATE = (
    "[![Build Status](https://travis-ci.org/{organization}/{repo}.svg?branch=master)]"
    "(https://travis-ci.org/{organization}/{repo})"
)
DEFAULT_ARTIFACT_URL_TEMPLATE = (
    "https://s3-us-west-2.amazonaws.com/snap.ci.snap-telemetry.io/plugins/"
    "{repo}/{build}/{os}/{arch}/{repo}"
)


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. PLUGINSYNC_CONFIG environment variable
    2. ~/.pluginsync/ directory
    """
    if 'PLUGINSYNC_CONFIG' in os.environ:
        path = Path(os.environ['PLUGINSYNC_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.pluginsync'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            # Merge file config with defaults
            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config):
    """Save configuration to file."""
    config_path = get_config_path()

    try:
        # Create directory if it doesn't exist
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.suffix.lower() in ['.toml']:
            # tomllib is read-only
            import toml
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            # Default to JSON format
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")
    except OSError as e:
        logger.error(f"Error saving config to {config_path}: {e}")


def get_default_config():
    """Get default configuration."""
    return {
        "organization": "intelsdi-x",
        "github": {
            "token": "",
            "api_url": "https://api.github.com",
            "timeout_seconds": 30
        },
        "plugins": {
            "tool_name": "pluginsync",
            "protected_branch": "master",
            "badge_exempt": ["Mesos"],
            "badge_template": DEFAULT_BADGE_TEMPLATE,
            "artifact_url_template": DEFAULT_ARTIFACT_URL_TEMPLATE,
            "config_defaults": ""
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def configure_logging(config: Dict[str, Any], debug: bool = False) -> None:
    """Apply the logging section of the configuration to the pluginsync logger."""
    settings = config.get('logging', {})
    level = logging.DEBUG if debug else getattr(logging, str(settings.get('level', 'INFO')).upper(), logging.INFO)
    logger.setLevel(level)
    fmt = settings.get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    return deep_merge(base_config, override_config)


def load_config_defaults(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Load the organization-wide defaults merged under every ``.sync.yml``.

    Uses ``plugins.config_defaults`` when set, else the defaults shipped
    with the package. A missing or malformed file is a configuration error
    and is raised.
    """
    configured = ((config or {}).get('plugins') or {}).get('config_defaults')
    path = Path(configured).expanduser() if configured else PACKAGE_CONFIG_DEFAULTS

    try:
        return load_yaml_document(path.read_text())
    except OSError as e:
        raise ConfigurationError(f"Unable to read config defaults {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed config defaults {path}: {e}") from e


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: PLUGINSYNC_SECTION_SUBSECTION_KEY
    For example: PLUGINSYNC_GITHUB_TIMEOUT_SECONDS=60
    """
    env_prefix = "PLUGINSYNC_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'PLUGINSYNC_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
