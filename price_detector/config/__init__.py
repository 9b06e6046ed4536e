"""Configuration module."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..models import ExtractionSettings


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config/settings.yaml

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_dir = Path(__file__).parent
        config_path = config_dir / "settings.yaml"

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    config.setdefault("logging", {})
    config.setdefault("extraction", {})

    # Override with environment variables if present
    if "PRICE_DETECTOR_LOG_LEVEL" in os.environ:
        config["logging"]["level"] = os.environ["PRICE_DETECTOR_LOG_LEVEL"]

    if "PRICE_DETECTOR_MIN_CONFIDENCE" in os.environ:
        config["extraction"]["minConfidence"] = float(os.environ["PRICE_DETECTOR_MIN_CONFIDENCE"])

    if "PRICE_DETECTOR_DEBUG" in os.environ:
        config["extraction"]["debugMode"] = _as_bool(os.environ["PRICE_DETECTOR_DEBUG"])

    if "PRICE_DETECTOR_EARLY_EXIT_CONFIDENCE" in os.environ:
        config["extraction"]["earlyExitConfidence"] = float(os.environ["PRICE_DETECTOR_EARLY_EXIT_CONFIDENCE"])

    return config


def load_settings(config_path: Optional[Union[str, Path]] = None) -> ExtractionSettings:
    """Load the extraction section of the configuration as ExtractionSettings."""
    return ExtractionSettings.coerce(load_config(config_path)["extraction"])
