"""
Run configuration data structures.

Defines the configuration schema for log-normal Mie derivative runs,
loadable from YAML or JSON.

Example YAML input:

    distribution:
      number_density: 1.0
      median_radius: 0.5
      spread: 1.5
      wavenumber: 2.0
      refractive_index_real: 1.5
      refractive_index_imag: 0.01
    angles:
      cos_angles: [-1.0, 0.0, 1.0]
    quadrature:
      npts: null
    output:
      format: json
      diagnostics: true
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json

import numpy as np
import yaml

from lognormal_mie.core.constants import (
    DEFAULT_QUADRATURE_KIND,
    MIN_QUADRATURE_POINTS,
    SIZE_PARAMETER_STEP,
)
from lognormal_mie.core.distribution import DistributionParams
from lognormal_mie.core.errors import ConfigurationError

OUTPUT_FORMATS = ("json", "yaml", "csv")


@dataclass
class DistributionConfig:
    """Log-normal distribution and optical parameters.

    Attributes:
        number_density: N, particles per unit volume
        median_radius: Rm
        spread: Geometric spread S (> 1)
        wavenumber: 1/wavelength, reciprocal of the radius unit
        refractive_index_real: Real part of the refractive index
        refractive_index_imag: Imaginary part of the refractive index
    """
    number_density: float = 1.0
    median_radius: float = 0.5
    spread: float = 1.5
    wavenumber: float = 2.0
    refractive_index_real: float = 1.5
    refractive_index_imag: float = 0.0

    @property
    def refractive_index(self) -> complex:
        return complex(self.refractive_index_real, self.refractive_index_imag)

    def to_params(self) -> DistributionParams:
        """Convert to the engine's DistributionParams."""
        return DistributionParams(
            n=self.number_density,
            rm=self.median_radius,
            s=self.spread,
            wavenumber=self.wavenumber,
            refractive_index=self.refractive_index,
        )


@dataclass
class AngleConfig:
    """Scattering angles for the intensity functions.

    Attributes:
        cos_angles: Explicit cosines of the scattering angles
        n_angles: Number of evenly spaced angles from 0 to 180 degrees,
                  used when cos_angles is not given
    """
    cos_angles: Optional[List[float]] = None
    n_angles: Optional[int] = None

    def resolve(self) -> Optional[np.ndarray]:
        """Angle cosines to pass to the engine, or None."""
        if self.cos_angles is not None:
            return np.asarray(self.cos_angles, dtype=float)
        if self.n_angles:
            return np.cos(np.radians(np.linspace(0.0, 180.0, self.n_angles)))
        return None


@dataclass
class QuadratureConfig:
    """Radius quadrature settings.

    Attributes:
        kind: Base rule (only Gauss-Legendre is available)
        npts: Explicit point count; automatic selection if None
        min_points: Floor for the automatic point count
        size_parameter_step: Target node spacing in size parameter
    """
    kind: str = DEFAULT_QUADRATURE_KIND
    npts: Optional[int] = None
    min_points: int = MIN_QUADRATURE_POINTS
    size_parameter_step: float = SIZE_PARAMETER_STEP


@dataclass
class OutputConfig:
    """Output settings.

    Attributes:
        format: Output file format (json, yaml, csv)
        output_path: Destination file; results are printed if None
        diagnostics: Include quadrature diagnostics
    """
    format: str = "json"
    output_path: Optional[str] = None
    diagnostics: bool = False


@dataclass
class MieDerivsConfig:
    """Complete run configuration."""
    distribution: DistributionConfig = field(default_factory=DistributionConfig)
    angles: AngleConfig = field(default_factory=AngleConfig)
    quadrature: QuadratureConfig = field(default_factory=QuadratureConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "MieDerivsConfig":
        """Create MieDerivsConfig from a nested dictionary.

        Missing sections take their defaults; unknown keys raise
        ConfigurationError.
        """
        config_dict = config_dict or {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration must be a mapping, got {type(config_dict).__name__}"
            )

        sections = {
            "distribution": DistributionConfig,
            "angles": AngleConfig,
            "quadrature": QuadratureConfig,
            "output": OutputConfig,
        }
        unknown = set(config_dict) - set(sections)
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}")

        parsed = {}
        for name, section_cls in sections.items():
            try:
                parsed[name] = section_cls(**(config_dict.get(name) or {}))
            except TypeError as e:
                raise ConfigurationError(f"Invalid '{name}' section: {e}") from e

        return cls(**parsed)

    @classmethod
    def from_json(cls, json_path: Union[str, Path]) -> "MieDerivsConfig":
        """Load configuration from a JSON file."""
        with open(json_path, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "MieDerivsConfig":
        """Load configuration from a YAML file."""
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f)
        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a nested dictionary."""
        return asdict(self)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_json(self, path: Union[str, Path], indent: int = 2) -> None:
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=indent)

    def validate(self) -> List[str]:
        """Validate configuration parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []
        dist = self.distribution

        if dist.number_density <= 0:
            errors.append("number_density must be positive")
        if dist.median_radius <= 0:
            errors.append("median_radius must be positive")
        if dist.spread <= 1:
            errors.append("spread must be greater than 1")
        if dist.wavenumber <= 0:
            errors.append("wavenumber must be positive")

        if self.angles.cos_angles is not None:
            if any(abs(mu) > 1 for mu in self.angles.cos_angles):
                errors.append("cos_angles must lie in [-1, 1]")
        if self.angles.n_angles is not None and self.angles.n_angles < 0:
            errors.append("n_angles must be non-negative")

        quad = self.quadrature
        if quad.npts is not None and quad.npts < 1:
            errors.append("npts must be at least 1")
        if quad.min_points < 1:
            errors.append("min_points must be at least 1")
        if quad.size_parameter_step <= 0:
            errors.append("size_parameter_step must be positive")

        if self.output.format.lower() not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {self.output.format}")

        return errors


def load_config(path: Union[str, Path]) -> MieDerivsConfig:
    """
    Load run configuration from a YAML or JSON file.

    Parameters
    ----------
    path : str or Path
        Path to configuration file (.yaml, .yml, or .json)

    Returns
    -------
    config : MieDerivsConfig

    Raises
    ------
    FileNotFoundError
        If the configuration file doesn't exist
    ConfigurationError
        If the file format is not supported or its content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in ('.yaml', '.yml'):
        return MieDerivsConfig.from_yaml(path)
    elif suffix == '.json':
        return MieDerivsConfig.from_json(path)
    raise ConfigurationError(f"Unsupported file format: {suffix}. Use .yaml, .yml, or .json")
