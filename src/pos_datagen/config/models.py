"""
Configuration models for the POS sandbox data generator.

These models define the structure and validation for the config.json file.
Secrets (API tokens) may be omitted from the file and supplied through the
environment instead.
"""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class MerchantConfig(BaseModel):
    """Sandbox merchant the simulation writes to."""

    merchant_id: str = Field(..., min_length=1, description="Platform merchant ID")
    merchant_name: str | None = Field(None, description="Display name for logs")
    api_token: str = Field(
        default="",
        validate_default=True,
        description="Merchant API token (prefer POS_API_TOKEN env var)",
    )
    environment: str = Field(
        "https://sandbox.dev.clover.com/",
        description="Base URL of the platform REST API",
    )
    timezone: str = Field(
        "America/New_York", description="IANA timezone used for order timestamps"
    )
    tax_rate: float = Field(
        8.25,
        ge=0.0,
        le=100.0,
        description="Flat fallback tax rate, in percent",
    )

    @field_validator("api_token", mode="before")
    @classmethod
    def load_token_from_env(cls, v: str | None) -> str:
        """Load the API token from the environment if the file leaves it blank."""
        if v and v.strip():
            return v
        return os.getenv("POS_API_TOKEN", "")

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"environment must be an http(s) URL, got '{v}'")
        return v if v.endswith("/") else f"{v}/"


class EcommerceConfig(BaseModel):
    """Card-processing (ecommerce) integration settings."""

    public_token: str | None = Field(None, description="Tokenizer public key")
    private_token: str | None = Field(None, description="Ecommerce private key")
    ecommerce_environment: str = Field(
        "https://scl-sandbox.dev.clover.com/",
        description="Base URL of the card charge API",
    )
    tokenizer_environment: str = Field(
        "https://token-sandbox.dev.clover.com/",
        description="Base URL of the card tokenizer API",
    )

    @property
    def enabled(self) -> bool:
        """Card routing only runs when both keys are configured."""
        return bool(self.public_token) and bool(self.private_token)


class OrderRange(BaseModel):
    """Inclusive min/max order count for one kind of day."""

    min: int = Field(..., ge=0, description="Minimum orders for the day")
    max: int = Field(..., ge=0, description="Maximum orders for the day")

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.max < self.min:
            raise ValueError(f"max ({self.max}) must be >= min ({self.min})")
        return self


class OrderPatternsConfig(BaseModel):
    """Order-count ranges keyed by day-of-week category."""

    weekday: OrderRange = Field(default_factory=lambda: OrderRange(min=40, max=60))
    friday: OrderRange = Field(default_factory=lambda: OrderRange(min=70, max=100))
    saturday: OrderRange = Field(default_factory=lambda: OrderRange(min=80, max=120))
    sunday: OrderRange = Field(default_factory=lambda: OrderRange(min=50, max=80))


class SimulationConfig(BaseModel):
    """Knobs for the day simulation."""

    order_patterns: OrderPatternsConfig = Field(
        default_factory=OrderPatternsConfig,
        description="Order-count ranges per day type",
    )
    refund_percentage: float = Field(
        5.0, ge=0.0, le=100.0, description="Percent of orders refunded after a run"
    )
    seed: int | None = Field(
        None,
        ge=0,
        le=2**32 - 1,
        description="Random seed for reproducible runs (None for fresh entropy)",
    )
    max_workers: int = Field(
        1, gt=0, le=32, description="Parallel order assembly workers"
    )
    http_timeout: float = Field(
        30.0, gt=0.0, description="Timeout in seconds for platform HTTP calls"
    )


class AuditConfig(BaseModel):
    """Local audit mirror of simulated orders and payments."""

    enabled: bool = Field(False, description="Mirror orders to the audit database")
    database_url: str = Field(
        "sqlite:///data/audit.db", description="SQLAlchemy URL of the audit database"
    )
    echo: bool = Field(False, description="Log SQL statements")


class SimulatorConfig(BaseModel):
    """Main configuration model for the POS data generator."""

    merchant: MerchantConfig = Field(..., description="Sandbox merchant settings")
    ecommerce: EcommerceConfig = Field(
        default_factory=EcommerceConfig, description="Card processing settings"
    )
    simulation: SimulationConfig = Field(
        default_factory=SimulationConfig, description="Simulation settings"
    )
    audit: AuditConfig = Field(
        default_factory=AuditConfig, description="Audit store settings"
    )
    log_level: str = Field("INFO", description="Root log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}")
        return level

    @classmethod
    def from_file(cls, file_path: str | Path) -> "SimulatorConfig":
        """
        Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the JSON is invalid or doesn't match the schema
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        try:
            with path.open("r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        return cls(**data)

    def to_file(self, file_path: str | Path) -> None:
        """Save configuration to a JSON file, leaving secrets out."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(
            exclude={"merchant": {"api_token"}, "ecommerce": {"private_token"}}
        )
        with path.open("w") as f:
            json.dump(data, f, indent=2)
