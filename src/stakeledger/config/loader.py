"""Configuration loader from YAML."""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .schema import Config

CONFIG_ENV_VAR = "STAKELEDGER_CONFIG"
DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def resolve_config_path(yaml_path: Optional[str] = None) -> Path:
    """Explicit path first, then $STAKELEDGER_CONFIG, then the packaged defaults."""
    if yaml_path is None:
        yaml_path = os.environ.get(CONFIG_ENV_VAR) or DEFAULTS_PATH
    return Path(yaml_path)


def merge_overrides(data: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge nested overrides into config data without mutating either input.

    Mappings merge key by key; any other value (lists included) replaces
    the original outright.
    """
    merged = copy.deepcopy(data)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_overrides(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(yaml_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        yaml_path: Path to YAML file (defaults to $STAKELEDGER_CONFIG, then defaults.yaml)
        overrides: Nested values applied on top of the file before validation,
            e.g. ``{"simulation": {"blocks": 50}}``

    Returns:
        Config object
    """
    path = resolve_config_path(yaml_path)
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if overrides:
        data = merge_overrides(data, overrides)
    return Config.from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """Create config from dictionary."""
    return Config.from_dict(data)
