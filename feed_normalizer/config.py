"""Configuration for feed_normalizer.

Settings come from built-in defaults, then an optional YAML file, then
environment variables. The YAML path is taken from the ``path`` argument or
the FEED_NORMALIZER_CONFIG environment variable.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FEED_NORMALIZER_CONFIG"


@dataclass
class ServerConfig:
    """Runtime settings for the CLI, HTTP fetcher and MCP server."""

    name: str = "feed_normalizer"
    log_level: str = "INFO"
    request_timeout: float = 30.0
    user_agent: str = "FeedNormalizer/1.0 (RSS/Atom Normalizer)"
    max_redirects: int = 20
    dns_rebinding_protection: bool = False
    allowed_hosts: List[str] = field(default_factory=list)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_hosts(value: str) -> List[str]:
    return [h.strip() for h in value.split(",") if h.strip()]


# env var -> (field name, converter)
_ENV_OVERRIDES = {
    "FEED_NORMALIZER_NAME": ("name", str),
    "FEED_NORMALIZER_LOG_LEVEL": ("log_level", str),
    "FEED_NORMALIZER_REQUEST_TIMEOUT": ("request_timeout", float),
    "FEED_NORMALIZER_USER_AGENT": ("user_agent", str),
    "FEED_NORMALIZER_MAX_REDIRECTS": ("max_redirects", int),
    "MCP_DNS_REBINDING_PROTECTION": ("dns_rebinding_protection", _parse_bool),
    "MCP_ALLOWED_HOSTS": ("allowed_hosts", _parse_hosts),
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load the YAML config file and keep only known settings."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(ServerConfig)}
    values = {}
    for key, value in data.items():
        if key in known:
            values[key] = value
        else:
            logger.warning(f"Ignoring unknown config key: {key}")
    return values


def load_config(path: Optional[Union[str, Path]] = None) -> ServerConfig:
    """Build a ServerConfig from defaults, YAML file and environment.

    Args:
        path: Optional YAML config file (falls back to FEED_NORMALIZER_CONFIG)

    Returns:
        Fully resolved configuration

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If a setting has an invalid value
    """
    values: Dict[str, Any] = {}

    config_path = path or os.environ.get(CONFIG_ENV_VAR)
    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        values.update(_load_yaml(config_path))

    for env_var, (name, convert) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None or raw == "":
            continue
        try:
            values[name] = convert(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {raw!r}") from e

    if isinstance(values.get("allowed_hosts"), str):
        values["allowed_hosts"] = _parse_hosts(values["allowed_hosts"])

    return ServerConfig(**values)


_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get or create the process-wide configuration."""
    global _config

    if _config is None:
        _config = load_config()
    return _config


def set_config(config: ServerConfig) -> None:
    global _config
    _config = config


def reset_config() -> None:
    """Forget the cached configuration (used by tests)."""
    global _config
    _config = None
