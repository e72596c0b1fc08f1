"""Shared models, exceptions, and utilities for the POS data generator."""

from pos_datagen.shared.exceptions import (
    ApiError,
    ConfigurationError,
    InvalidInputError,
    PosDataGenException,
)
from pos_datagen.shared.money import format_cents, percent_of

__all__ = [
    "ApiError",
    "ConfigurationError",
    "InvalidInputError",
    "PosDataGenException",
    "format_cents",
    "percent_of",
]
