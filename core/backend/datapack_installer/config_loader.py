"""
Configuration Loader

Loads and validates configuration from YAML files.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Dict, Optional

import yaml

from .config import (
    BASE_DIR,
    CONNECT_TIMEOUT,
    DEFAULT_USER_AGENT,
    HTTP_HOST,
    HTTP_PORT,
    IMAGE_CACHE_TTL,
    NODES,
    PACKS_CACHE_TTL,
    READ_TIMEOUT,
    SERVERS,
    VANILLA_TWEAKS_URL,
)

logger = logging.getLogger(__name__)

ENV_PATTERN = re.compile(r'\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}')


def get_config_paths() -> list[Path]:
    """
    Get list of config file paths to check in priority order

    Returns:
        List of paths to check (first found wins)
    """
    return [
        Path.home() / ".config" / "minecraft-datapack-installer" / "config.yaml",
        Path.cwd() / "config.yaml",
        BASE_DIR / "config.yaml",
    ]


def default_config() -> Dict:
    return {
        'catalog': {
            'base_url': VANILLA_TWEAKS_URL,
            'user_agent': DEFAULT_USER_AGENT,
            'connect_timeout': CONNECT_TIMEOUT,
            'read_timeout': READ_TIMEOUT,
        },
        'cache': {
            'packs_ttl_minutes': PACKS_CACHE_TTL,
            'image_ttl_minutes': IMAGE_CACHE_TTL,
        },
        'nodes': copy.deepcopy(NODES),
        'servers': copy.deepcopy(SERVERS),
        'logging': {
            'level': 'INFO',
            'directory': None,
        },
        'activity': {
            'log_file': None,
        },
        'http': {
            'host': HTTP_HOST,
            'port': HTTP_PORT,
        },
    }


def load_config(config_path: Optional[Path] = None) -> Dict:
    """
    Load configuration from YAML file

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Configuration dict with catalog, cache, nodes, servers, logging, http
    """
    config = default_config()

    config_files = [config_path] if config_path else get_config_paths()

    loaded_from = None
    for path in config_files:
        if path.exists():
            loaded_from = path
            break

    if not loaded_from:
        logger.info("No config file found, using defaults")
        return config

    logger.info(f"Loading configuration from: {loaded_from}")

    try:
        with open(loaded_from, 'r') as f:
            user_config = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        logger.error(f"Error loading config {loaded_from}: {e}")
        logger.info("Falling back to defaults")
        return config

    if not user_config:
        logger.warning(f"Config file {loaded_from} is empty")
        return config

    user_config = substitute_env_vars(user_config)

    # Mapping sections replace the defaults, settings sections merge into them
    for section in ('nodes', 'servers'):
        if section in user_config:
            config[section] = user_config[section] or {}

    for section in ('catalog', 'cache', 'logging', 'activity', 'http'):
        if isinstance(user_config.get(section), dict):
            config[section].update(user_config[section])

    logger.info(f"✓ Loaded {len(config['servers'])} server(s) and "
                f"{len(config['nodes'])} node(s) from config")

    return config


def substitute_env_vars(config):
    """
    Substitute environment variables in config values

    Handles patterns like:
    - ${ENV_VAR}
    - ${ENV_VAR:-default_value}

    Args:
        config: Configuration value (dict, list or scalar)

    Returns:
        Config with environment variables substituted
    """
    if isinstance(config, str):
        return ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), config)
    if isinstance(config, dict):
        return {k: substitute_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [substitute_env_vars(item) for item in config]
    return config


def validate_config(config: Dict) -> tuple[bool, list[str]]:
    """
    Validate configuration structure

    Args:
        config: Configuration dict to validate

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []
    nodes = config.get('nodes') or {}
    node_ids = {str(node_id) for node_id in nodes}

    for node_id, node in nodes.items():
        if not isinstance(node, dict):
            errors.append(f"Node '{node_id}' must be a mapping")
            continue
        for key in ('fqdn', 'daemon_token'):
            if not node.get(key):
                errors.append(f"Node '{node_id}' missing required '{key}' field")
        if node.get('scheme', 'https') not in ('http', 'https'):
            errors.append(f"Node '{node_id}' scheme must be http or https")

    for uuid_short, server in (config.get('servers') or {}).items():
        if not isinstance(server, dict):
            errors.append(f"Server '{uuid_short}' must be a mapping")
            continue
        if 'uuid' not in server:
            errors.append(f"Server '{uuid_short}' missing required 'uuid' field")
        if 'node_id' not in server:
            errors.append(f"Server '{uuid_short}' missing required 'node_id' field")
        elif str(server['node_id']) not in node_ids:
            errors.append(f"Server '{uuid_short}' references undefined node '{server['node_id']}'")

    base_url = (config.get('catalog') or {}).get('base_url', '')
    if not str(base_url).startswith(('http://', 'https://')):
        errors.append("Catalog 'base_url' must be an http(s) URL")

    for key in ('packs_ttl_minutes', 'image_ttl_minutes'):
        value = (config.get('cache') or {}).get(key)
        if value is not None:
            try:
                if float(value) < 0:
                    errors.append(f"Cache '{key}' must not be negative")
            except (TypeError, ValueError):
                errors.append(f"Cache '{key}' must be a number")

    is_valid = len(errors) == 0
    return is_valid, errors


def save_config(config: Dict, config_path: Optional[Path] = None) -> bool:
    """
    Save configuration to YAML file

    Args:
        config: Configuration dict to save
        config_path: Optional path to save to (defaults to user config)

    Returns:
        True if saved successfully
    """
    if not config_path:
        config_path = get_config_paths()[0]

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to save config: {e}")
        return False

    logger.info(f"✓ Configuration saved to: {config_path}")
    return True
