#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

logger = logging.getLogger("gitsvnsync")

# Level for "success-of-note" messages (between INFO and WARNING)
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VALID_PREFERENCES = ("ours", "theirs")


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GITSVNSYNC_CONFIG environment variable
    2. ~/.gitsvnsync/ directory
    """
    if 'GITSVNSYNC_CONFIG' in os.environ:
        path = Path(os.environ['GITSVNSYNC_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.gitsvnsync'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    return apply_env_overrides(config)


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
        "sync": {
            "sync_all": False,
            "merges_only": True,
            "hub_remote": "origin",
            "svn_remote": "svn",
            "trunk_prefix": "svn",
            "staging_prefix": "inter",
            "strategy": "recursive",
            "hub_to_trunk_preference": "theirs",
            "trunk_to_hub_preference": "ours",
            "exclude_branches": ["tags/*", "*@*"],
        },
        "parallel": {
            "max_workers": 0,  # 0 = os.cpu_count()
        },
        "logging": {
            "level": "INFO",
            "file": "~/git_svn_sync.log",
        },
        "discovery": {
            "exclude_patterns": [
                "node_modules",
                "__pycache__",
                ".venv",
                "venv",
            ],
        },
        "git": {
            "timeout": None,
        },
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: GITSVNSYNC_SECTION_KEY
    For example: GITSVNSYNC_SYNC_MERGES_ONLY=false
    List settings take a comma-separated string, see as_patterns().
    """
    env_prefix = "GITSVNSYNC_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "GITSVNSYNC_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

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
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def validate_preference(value, key):
    """Check a merge-side preference is one git understands."""
    from .exit_codes import ConfigError

    if value not in VALID_PREFERENCES:
        raise ConfigError(
            f"Invalid value for {key}: {value!r} (expected one of {', '.join(VALID_PREFERENCES)})"
        )
    return value


def as_patterns(value):
    """
    Normalize a pattern list setting.

    Environment overrides and YAML scalars arrive as a single string; it is
    read as a comma-separated list (e.g. "tags/*,*@*").
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(p) for p in value]
    return [p.strip() for p in str(value).split(',') if p.strip()]


def configure_logging(log_file=None, debug=False, level="INFO"):
    """
    Install the file and stderr handlers on the gitsvnsync logger.

    Safe to call more than once (e.g. again inside a pool worker): previously
    installed handlers are replaced, not duplicated.

    Args:
        log_file: Append-only log file path (None disables file logging)
        debug: Trace every git command at DEBUG level
        level: Level name used when debug is off
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode='a', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG if debug else getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False
    return logger
