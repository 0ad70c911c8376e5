"""Configuration management for spendwise."""

import json
import os
from decimal import Decimal
from pathlib import Path
from typing import Any

from spendwise.utils import to_decimal

CONFIG_FILENAME = "config.json"
APP_NAME = "spendwise"


def get_config_dir() -> Path:
    """Get the config directory path (XDG compliant)."""
    xdg_config_home = os.getenv("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config_home) / APP_NAME


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_config_dir() / CONFIG_FILENAME


def get_data_dir() -> Path:
    """Get the data directory path (XDG compliant)."""
    xdg_data_home = os.getenv("XDG_DATA_HOME", str(Path.home() / ".local" / "share"))
    return Path(xdg_data_home) / APP_NAME


def find_config_file() -> Path | None:
    """Find the config file in standard locations.

    Searches for config in the following order:
    1. config.json in current directory
    2. XDG config: ~/.config/spendwise/config.json
    """
    config_paths = [
        Path(CONFIG_FILENAME),
        get_config_path(),
    ]

    for path in config_paths:
        if path.exists():
            return path

    return None


def load_json_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(config_path) as f:
        return json.load(f)  # type: ignore[no-any-return]


def save_json_config(config: dict[str, Any], config_path: Path | None = None) -> Path:
    """Save configuration to a JSON file.

    Args:
        config: Configuration dictionary to save
        config_path: Path to save to (defaults to XDG config location)

    Returns:
        Path where config was saved
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(config, f, indent=2)
        f.write("\n")

    return config_path


def load_config(config_path: Path | None = None) -> dict[str, Any] | None:
    """Load configuration from config file.

    Args:
        config_path: Explicit path to config.json file

    Returns:
        Loaded config dict or None if not found
    """
    if config_path:
        return load_json_config(config_path)

    config_file = find_config_file()
    if config_file:
        return load_json_config(config_file)

    return None


def config_exists() -> bool:
    """Check if any config file exists."""
    return find_config_file() is not None


def get_truelayer_settings(config: dict[str, Any] | None = None) -> dict[str, str]:
    """Get TrueLayer client settings.

    Returns:
        Dictionary with client_id, client_secret, redirect_uri, base_url and
        auth_url (missing values are empty strings)
    """
    tl_config = (config or {}).get("truelayer", {})
    return {
        key: str(tl_config.get(key) or "")
        for key in ("client_id", "client_secret", "redirect_uri", "base_url", "auth_url")
    }


def get_access_token(
    config: dict[str, Any] | None = None,
    override: str | None = None,
) -> str | None:
    """Get a TrueLayer access token.

    Args:
        config: Loaded JSON config
        override: Token to use instead of config or environment

    Returns:
        Token string or None if not configured
    """
    if override:
        return override

    if token := os.getenv("TRUELAYER_ACCESS_TOKEN"):
        return token

    if config:
        if token := config.get("truelayer", {}).get("access_token"):
            return token  # type: ignore[no-any-return]

    return None


def get_user_id(config: dict[str, Any] | None = None) -> str:
    return str((config or {}).get("user_id") or "default")


def get_milestone_thresholds(config: dict[str, Any] | None = None) -> list[Decimal] | None:
    """Get custom emergency-fund milestone thresholds, if configured."""
    thresholds = (config or {}).get("emergency_fund", {}).get("milestones")
    if not thresholds:
        return None
    return sorted(to_decimal(t) for t in thresholds)


def get_store_paths(config: dict[str, Any] | None = None) -> tuple[Path, Path]:
    """Get the primary and cache store file paths.

    Returns:
        (primary_path, cache_path)
    """
    store_config = (config or {}).get("store", {})
    data_dir = get_data_dir()
    primary = Path(store_config.get("path") or data_dir / "store.json")
    cache = Path(store_config.get("cache_path") or data_dir / "cache.json")
    return primary.expanduser(), cache.expanduser()


def get_budget_rule(config: dict[str, Any] | None = None) -> tuple[Decimal, Decimal]:
    """Get the (save, spend) budget split, defaulting to 20/80."""
    rule = (config or {}).get("budget_rule", {})
    return to_decimal(rule.get("save", "0.2")), to_decimal(rule.get("spend", "0.8"))


def create_default_config() -> dict[str, Any]:
    """Create a default configuration."""
    return {
        "user_id": "default",
        "truelayer": {
            "client_id": None,
            "client_secret": None,
            "redirect_uri": None,
            "access_token": None,
        },
        "emergency_fund": {
            "milestones": [500, 1000, 2500, 5000, 7500],
        },
        "budget_rule": {"save": "0.2", "spend": "0.8"},
        "store": {"path": None, "cache_path": None},
    }
