"""
Process-wide share group settings loaded from the environment.

**Conceptual**: This module is the startup path. It reads raw values for every
key in CONFIG_DEF from environment variables (optionally seeded from a .env
file), lets callers layer explicit overrides on top, and builds the single
ShareGroupConfig the process uses for its whole lifetime. Any invalid value
fails here, at startup, with a ConfigException naming the offending key.

**Environment variables**: each key maps to its upper-cased name with dots
replaced by underscores, e.g.
  - group.share.max.groups        -> GROUP_SHARE_MAX_GROUPS
  - group.share.session.timeout.ms -> GROUP_SHARE_SESSION_TIMEOUT_MS

This module uses python-dotenv to load the .env file at the project root.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from sharegroup.config.share_group_config import CONFIG_DEF, ShareGroupConfig

logger = logging.getLogger(__name__)

# Load .env from project root; variables already set in the environment win
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def env_var_name(key: str) -> str:
    """Environment variable name for a configuration key."""
    return key.upper().replace('.', '_')


def properties_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Collect raw values for every defined key that is set in the environment.

    Unset keys are left out so that CONFIG_DEF supplies their defaults.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        Dict of configuration key -> raw string value.

    Usage example:
        >>> # In .env file:
        >>> # GROUP_SHARE_DELIVERY_COUNT_LIMIT=3
        >>>
        >>> properties_from_env()
        {'group.share.delivery.count.limit': '3'}
    """
    if environ is None:
        environ = os.environ

    props: Dict[str, str] = {}
    for key in CONFIG_DEF.names():
        value = environ.get(env_var_name(key))
        if value is not None:
            props[key] = value
    return props


def load_share_group_config(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ShareGroupConfig:
    """
    Build a validated ShareGroupConfig from the environment plus overrides.

    Args:
        overrides: Raw key/value pairs that take precedence over the
                   environment (e.g. from --set on the command line).
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        ShareGroupConfig.

    Raises:
        ConfigException: If a value is malformed or out of range, or
                         ConfigOrderingError if related values are out of order.
    """
    props: Dict[str, Any] = properties_from_env(environ)
    if overrides:
        props.update(overrides)
    logger.debug("Loading share group configuration from %d supplied value(s)", len(props))
    return ShareGroupConfig.from_props(props)


# Cached on first access; tests call reset_share_group_config() between cases.
_default_config: Optional[ShareGroupConfig] = None


def get_share_group_config(overrides: Optional[Mapping[str, Any]] = None) -> ShareGroupConfig:
    """
    Get the process-wide ShareGroupConfig, loading it on first call.

    Overrides only take effect on the call that performs the load; later calls
    return the cached instance unchanged.

    Args:
        overrides: Raw key/value pairs applied over the environment on first load.

    Returns:
        The cached ShareGroupConfig.

    Raises:
        ConfigException: If loading fails. Nothing is cached in that case.
    """
    global _default_config

    if _default_config is None:
        _default_config = load_share_group_config(overrides)
    elif overrides:
        logger.warning("Share group configuration already loaded; ignoring %d override(s)", len(overrides))

    return _default_config


def reset_share_group_config():
    """
    Reset the cached ShareGroupConfig (for testing).

    Returns:
        None (side effect: clears the cache).
    """
    global _default_config
    _default_config = None
