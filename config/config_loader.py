"""
config_loader.py
-----------------
Singleton config loader. Reads config.yaml once and caches it.
All analytics modules read thresholds through this — never hardcoded values.
"""

import os
import yaml
from typing import Any, Dict


_CONFIG_CACHE: Dict[str, Any] = {}


def load_config(config_path: str | None = None) -> Dict[str, Any]:
    """
    Load and cache the YAML configuration file.

    Args:
        config_path: Path to config.yaml. Defaults to config/ relative to this file.

    Returns:
        Full config dictionary.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE:
        return _CONFIG_CACHE

    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "config.yaml")

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        _CONFIG_CACHE = yaml.safe_load(f)

    return _CONFIG_CACHE


def get_section(name: str) -> Dict[str, Any]:
    """
    Returns a top-level config block by name.

    Raises:
        KeyError: If the section is not in the config.
    """
    config = load_config()
    if name not in config:
        raise KeyError(
            f"No config section '{name}'. "
            f"Available: {list(config.keys())}"
        )
    return config[name]


def get_trend_config() -> Dict[str, Any]:
    """Returns the trend_analysis block."""
    return get_section("trend_analysis")


def get_seasonal_config() -> Dict[str, Any]:
    """Returns the seasonal_patterns block."""
    return get_section("seasonal_patterns")


def get_prediction_config() -> Dict[str, Any]:
    """Returns the prediction block."""
    return get_section("prediction")


def get_anomaly_config() -> Dict[str, Any]:
    """Returns the anomaly_detection block."""
    return get_section("anomaly_detection")


def get_value_scoring_config() -> Dict[str, Any]:
    """Returns the value_scoring block."""
    return get_section("value_scoring")


def get_spending_config() -> Dict[str, Any]:
    """Returns the spending block."""
    return get_section("spending")


def get_output_config() -> Dict[str, Any]:
    """Returns output formatting settings."""
    return get_section("output")


def reset_config() -> None:
    """Clears cached config. Useful for testing."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = {}
