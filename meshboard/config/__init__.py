"""Configuration loading utilities for meshboard."""

from .schema import (
    ConversionConfig,
    load_config,
)

__all__ = ["ConversionConfig", "load_config"]
