"""
Adapter configuration loading.

Loads adapter configuration from YAML with environment variable expansion.
Collecting the values interactively is the CLI's job; this module only
reads what was stored.
"""

import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv


def expand_env_vars(value: Any) -> Any:
    """
    Recursively expand ${VAR} environment variables in config values.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with env vars expanded
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}|\$([A-Z_][A-Z0-9_]*)'

        def replace(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]

    return value


def _auth_block(token: str) -> dict:
    return {
        "http-auth-type": "http_token",
        "username": "",
        "password-or-token": token,
    }


def default_config() -> dict:
    """Minimal configuration built from environment variables."""
    return {
        "default_adapter": os.environ.get("FORGEKIT_ADAPTER", "github"),
        "adapters": {
            "github": {
                "base_url": os.environ.get("GITHUB_URL", "https://api.github.com"),
                "repo_domain_url": os.environ.get("GITHUB_DOMAIN_URL", "https://github.com"),
                "authentication": _auth_block(os.environ.get("GITHUB_TOKEN", "")),
            },
            "gitlab": {
                "base_url": os.environ.get("GITLAB_URL", "https://gitlab.com/api/v4"),
                "repo_domain_url": os.environ.get("GITLAB_DOMAIN_URL", "https://gitlab.com"),
                "authentication": _auth_block(os.environ.get("GITLAB_TOKEN", "")),
            },
        },
    }


def load_adapter_config(config_path: str | Path | None = None) -> dict:
    """
    Load adapter configuration from YAML file.

    Looks for config in this order:
    1. Explicitly provided path
    2. config/forgekit.yaml relative to project root
    3. Returns default config from environment

    A .env file is loaded first, then ${VAR} references are expanded.

    Args:
        config_path: Optional path to config file

    Returns:
        Dict with adapter configuration
    """
    load_dotenv()

    if config_path is None:
        # forgekit/adapter/config.py -> project root is ../../..
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / "config" / "forgekit.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        return default_config()

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    config = expand_env_vars(config)

    for name, adapter_config in (config.get("adapters") or {}).items():
        config["adapters"][name] = normalize_adapter_config(adapter_config or {})

    return config


def normalize_adapter_config(config: dict) -> dict:
    """Strip trailing slashes from the API and web URLs."""
    normalized = dict(config)
    for key in ("base_url", "repo_domain_url"):
        if normalized.get(key):
            normalized[key] = str(normalized[key]).rstrip("/")
    return normalized


def get_adapter_config(adapter_name: str, config: dict | None = None) -> dict:
    """
    Get configuration for a specific adapter.

    Args:
        adapter_name: Name of the adapter (e.g., "gitlab")
        config: Optional pre-loaded config dict

    Returns:
        Adapter-specific configuration dict

    Raises:
        ValueError: If adapter not found in config
    """
    if config is None:
        config = load_adapter_config()

    adapters = config.get("adapters", {})

    if adapter_name not in adapters:
        raise ValueError(f"Adapter '{adapter_name}' not found in config")

    return adapters[adapter_name]


def adapter_key(adapter_name: str, config: dict) -> str:
    """
    Unique name of a configured adapter, e.g. "gitlab:gitlab.example.com".

    Raises:
        ValueError: If base_url is missing
    """
    if not config.get("base_url"):
        raise ValueError("Invalid base_url configuration.")

    host = urlparse(config["base_url"]).hostname or ""
    return f"{adapter_name}:{host}"
