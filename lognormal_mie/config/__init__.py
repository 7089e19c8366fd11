"""
Configuration management for log-normal Mie runs.

This module provides:
- MieDerivsConfig: Data class for run parameters
- load_config: Loading of YAML/JSON configuration files
"""

from lognormal_mie.config.settings import (
    AngleConfig,
    DistributionConfig,
    MieDerivsConfig,
    OutputConfig,
    QuadratureConfig,
    load_config,
)

__all__ = [
    "AngleConfig",
    "DistributionConfig",
    "MieDerivsConfig",
    "OutputConfig",
    "QuadratureConfig",
    "load_config",
]
