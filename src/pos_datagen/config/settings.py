"""
Configuration loading and management for the POS data generator.

This module provides utilities for loading, validating, and managing
configuration settings from JSON files, environment variables, and
multi-merchant credential files.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pos_datagen.shared.exceptions import ConfigurationError

from .models import SimulatorConfig

logger = logging.getLogger(__name__)


def load_config(
    config_path: str | Path | None = None, config_name: str = "config.json"
) -> SimulatorConfig:
    """
    Load configuration from file with path resolution.

    Args:
        config_path: Explicit path to config file or directory containing config
        config_name: Name of config file (default: "config.json")

    Returns:
        SimulatorConfig: Loaded and validated configuration

    Raises:
        FileNotFoundError: If no configuration file is found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / config_name,
            Path.cwd() / "config" / config_name,
        ]

        for path in search_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError(
                f"Configuration file '{config_name}' not found in any of: "
                f"{[str(p) for p in search_paths]}"
            )

    config_path = Path(config_path)

    if config_path.is_dir():
        config_path = config_path / config_name

    return SimulatorConfig.from_file(config_path)


def get_config_from_env() -> SimulatorConfig | None:
    """
    Try to load configuration from environment variables.

    Returns:
        SimulatorConfig if POS_CONFIG_FILE or POS_MERCHANT_ID is set, None otherwise
    """
    config_file_env = os.getenv("POS_CONFIG_FILE")
    if config_file_env:
        return load_config(config_file_env)

    merchant_id = os.getenv("POS_MERCHANT_ID")
    if not merchant_id:
        return None

    try:
        merchant: dict[str, Any] = {
            "merchant_id": merchant_id,
            "merchant_name": os.getenv("POS_MERCHANT_NAME"),
            "api_token": os.getenv("POS_API_TOKEN", ""),
        }
        if os.getenv("POS_ENVIRONMENT"):
            merchant["environment"] = os.environ["POS_ENVIRONMENT"]
        if os.getenv("POS_TIMEZONE"):
            merchant["timezone"] = os.environ["POS_TIMEZONE"]
        if os.getenv("POS_TAX_RATE"):
            merchant["tax_rate"] = float(os.environ["POS_TAX_RATE"])

        simulation: dict[str, Any] = {}
        if os.getenv("POS_REFUND_PERCENTAGE"):
            simulation["refund_percentage"] = float(os.environ["POS_REFUND_PERCENTAGE"])
        if os.getenv("POS_SEED"):
            simulation["seed"] = int(os.environ["POS_SEED"])

        config_data: dict[str, Any] = {
            "merchant": merchant,
            "ecommerce": {
                "public_token": os.getenv("POS_PUBLIC_TOKEN"),
                "private_token": os.getenv("POS_PRIVATE_TOKEN"),
            },
            "simulation": simulation,
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
        if os.getenv("POS_AUDIT_DATABASE_URL"):
            config_data["audit"] = {
                "enabled": True,
                "database_url": os.environ["POS_AUDIT_DATABASE_URL"],
            }

        return SimulatorConfig(**config_data)

    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid environment variable configuration: {e}")


def load_config_with_fallback(config_path: str | Path | None = None) -> SimulatorConfig:
    """
    Load configuration with fallback to environment variables.

    Priority order:
    1. Explicit config file path
    2. Environment variable POS_CONFIG_FILE
    3. Individual POS_* environment variables
    4. Default locations (config.json, config/config.json)

    Raises:
        ConfigurationError: If no source yields a configuration
    """
    if config_path:
        try:
            return load_config(config_path)
        except FileNotFoundError:
            logger.warning(f"Config file {config_path} not found, trying environment")

    env_config = get_config_from_env()
    if env_config:
        return env_config

    try:
        return load_config()
    except FileNotFoundError as e:
        raise ConfigurationError(
            "No configuration found; set POS_MERCHANT_ID or provide config.json"
        ) from e


def load_merchants_file(file_path: str | Path) -> list[dict[str, Any]]:
    """
    Load a multi-merchant credentials file.

    The file holds a JSON list of objects with CLOVER_MERCHANT_ID,
    CLOVER_MERCHANT_NAME, CLOVER_API_TOKEN, PUBLIC_TOKEN and PRIVATE_TOKEN.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Merchants file not found: {file_path}")

    try:
        with path.open("r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in merchants file: {e}")

    if not isinstance(data, list):
        raise ValueError("Merchants file must contain a JSON list")
    return data


def select_merchant(
    config: SimulatorConfig,
    merchants: list[dict[str, Any]],
    merchant_id: str | None = None,
    index: int = 0,
) -> SimulatorConfig:
    """
    Overlay one merchant's credentials from a merchants file onto ``config``.

    Args:
        config: Base configuration
        merchants: Entries from load_merchants_file()
        merchant_id: Pick the entry with this merchant ID
        index: Pick by position when merchant_id is None

    Raises:
        ConfigurationError: If the requested merchant is not present
    """
    if merchant_id is not None:
        entry = next(
            (m for m in merchants if m.get("CLOVER_MERCHANT_ID") == merchant_id), None
        )
        if entry is None:
            raise ConfigurationError(
                "Merchant not found in merchants file", {"merchant_id": merchant_id}
            )
    else:
        if not 0 <= index < len(merchants):
            raise ConfigurationError(
                "Merchant index out of range", {"index": index, "count": len(merchants)}
            )
        entry = merchants[index]

    merchant = config.merchant.model_copy(
        update={
            "merchant_id": entry.get("CLOVER_MERCHANT_ID", config.merchant.merchant_id),
            "merchant_name": entry.get("CLOVER_MERCHANT_NAME", config.merchant.merchant_name),
            "api_token": entry.get("CLOVER_API_TOKEN", config.merchant.api_token),
        }
    )
    ecommerce = config.ecommerce.model_copy(
        update={
            "public_token": entry.get("PUBLIC_TOKEN", config.ecommerce.public_token),
            "private_token": entry.get("PRIVATE_TOKEN", config.ecommerce.private_token),
        }
    )
    logger.info(f"Selected merchant {merchant.merchant_name or merchant.merchant_id}")
    return config.model_copy(update={"merchant": merchant, "ecommerce": ecommerce})
