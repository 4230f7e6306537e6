"""
Configuration utilities for Accredited TREs.

Provides configuration loading and validation for the normalization engine,
source retrieval, and result aggregation.
"""

import re
import logging
import yaml
from typing import Dict, Any, Optional
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/accredited_tres.yaml"


def load_normalization_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration from YAML file, layered over the defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning(f"Configuration file {config_path} not found, using defaults")
            return get_default_normalization_config()

        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        merged = merge_configs(get_default_normalization_config(), config)

        logger.info(f"Loaded configuration from {config_path}")
        return merged

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        return get_default_normalization_config()


def get_default_normalization_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Default configuration dictionary
    """
    return {
        "normalization": {
            "header_marker": "enterprise name",
            "fallback_preamble_rows": 4,
            "canonical_width": 9,
            "strict_quoting": False,
            "id_prefix": "provider",
            "freshness_pattern": r"\bAs of\s+([^.\r\n]*)\.",
        },
        "sources": {
            "data_dir": "data",
            "timeout": 20,
            "max_workers": 5,
            "overrides": {},
        },
        "aggregation": {
            "error_separator": "; ",
        },
    }


def validate_normalization_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ["normalization", "sources"]

    for section in required_sections:
        if section not in config:
            logger.error(f"Missing required configuration section: {section}")
            return False

    norm_config = config.get("normalization", {})
    if not str(norm_config.get("header_marker", "")).strip():
        logger.error("normalization.header_marker must be a non-empty string")
        return False

    preamble = norm_config.get("fallback_preamble_rows", 4)
    if not isinstance(preamble, int) or isinstance(preamble, bool) or preamble < 0:
        logger.error("normalization.fallback_preamble_rows must be a non-negative integer")
        return False

    width = norm_config.get("canonical_width", 9)
    if not isinstance(width, int) or isinstance(width, bool) or width < 9:
        logger.error("normalization.canonical_width must be an integer of at least 9")
        return False

    if not isinstance(norm_config.get("strict_quoting", False), bool):
        logger.error("normalization.strict_quoting must be a boolean")
        return False

    try:
        freshness_pattern = re.compile(str(norm_config.get("freshness_pattern", "")))
    except re.error as e:
        logger.error(f"normalization.freshness_pattern is not a valid regular expression: {e}")
        return False
    if freshness_pattern.groups < 1:
        logger.error("normalization.freshness_pattern must capture the date in a group")
        return False

    sources_config = config.get("sources", {})
    timeout = sources_config.get("timeout", 20)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        logger.error("sources.timeout must be a positive number")
        return False

    workers = sources_config.get("max_workers", 5)
    if not isinstance(workers, int) or workers < 1:
        logger.error("sources.max_workers must be a positive integer")
        return False

    if not isinstance(sources_config.get("overrides", {}) or {}, dict):
        logger.error("sources.overrides must be a mapping of province id to location")
        return False

    logger.info("Configuration validation passed")
    return True


def merge_configs(base_config: Dict[str, Any], override_config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = base_config.copy()

    for key, value in (override_config or {}).items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged
