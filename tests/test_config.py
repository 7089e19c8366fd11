"""
Tests for run configuration loading and validation.
"""

import json

import numpy as np
import pytest
import yaml

from lognormal_mie.config import (
    AngleConfig,
    DistributionConfig,
    MieDerivsConfig,
    QuadratureConfig,
    load_config,
)
from lognormal_mie.core import ConfigurationError, DistributionParams


class TestDefaults:
    def test_default_config_is_valid(self):
        config = MieDerivsConfig()
        assert config.validate() == []

    def test_distribution_to_params(self):
        dist = DistributionConfig(number_density=2.0, median_radius=0.3, spread=1.4,
                                  wavenumber=1.5, refractive_index_real=1.33,
                                  refractive_index_imag=0.002)
        params = dist.to_params()

        assert isinstance(params, DistributionParams)
        assert params.n == 2.0
        assert params.refractive_index == complex(1.33, 0.002)


class TestAngles:
    def test_no_angles(self):
        assert AngleConfig().resolve() is None

    def test_explicit_cosines(self):
        mu = AngleConfig(cos_angles=[-1, 0.5]).resolve()
        assert np.array_equal(mu, [-1.0, 0.5])

    def test_evenly_spaced(self):
        """n_angles spans 0 to 180 degrees inclusive."""
        mu = AngleConfig(n_angles=3).resolve()
        assert np.allclose(mu, [1.0, 0.0, -1.0])

    def test_explicit_wins(self):
        mu = AngleConfig(cos_angles=[0.2], n_angles=10).resolve()
        assert mu.shape == (1,)


class TestFromDict:
    def test_partial_sections(self):
        config = MieDerivsConfig.from_dict({"distribution": {"spread": 2.0}})

        assert config.distribution.spread == 2.0
        assert config.distribution.median_radius == 0.5
        assert config.quadrature == QuadratureConfig()

    def test_empty(self):
        assert MieDerivsConfig.from_dict(None) == MieDerivsConfig()

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration sections"):
            MieDerivsConfig.from_dict({"atmosphere": {}})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="distribution"):
            MieDerivsConfig.from_dict({"distribution": {"radius": 1.0}})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError, match="mapping"):
            MieDerivsConfig.from_dict([1, 2])


class TestValidate:
    @pytest.mark.parametrize("section, key, value, message", [
        ("distribution", "number_density", 0.0, "number_density"),
        ("distribution", "median_radius", -1.0, "median_radius"),
        ("distribution", "spread", 1.0, "spread"),
        ("distribution", "wavenumber", 0.0, "wavenumber"),
        ("angles", "cos_angles", [0.0, 1.5], "cos_angles"),
        ("angles", "n_angles", -2, "n_angles"),
        ("quadrature", "npts", 0, "npts"),
        ("quadrature", "size_parameter_step", 0.0, "size_parameter_step"),
        ("output", "format", "netcdf", "output format"),
    ])
    def test_reports_invalid_values(self, section, key, value, message):
        config = MieDerivsConfig.from_dict({section: {key: value}})

        errors = config.validate()
        assert len(errors) == 1
        assert message in errors[0]


class TestFiles:
    def test_yaml_round_trip(self, tmp_path):
        config = MieDerivsConfig.from_dict({
            "distribution": {"median_radius": 0.1},
            "angles": {"cos_angles": [-1.0, 1.0]},
        })
        path = tmp_path / "run.yaml"
        config.to_yaml(path)

        assert load_config(path) == config

    def test_json_round_trip(self, tmp_path):
        config = MieDerivsConfig.from_dict({"quadrature": {"npts": 500}})
        path = tmp_path / "run.json"
        config.to_json(path)

        assert json.loads(path.read_text())["quadrature"]["npts"] == 500
        assert load_config(path) == config

    def test_yml_suffix(self, tmp_path):
        path = tmp_path / "run.yml"
        path.write_text(yaml.safe_dump({"output": {"format": "csv"}}))

        assert load_config(path).output.format == "csv"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "run.toml"
        path.write_text("")
        with pytest.raises(ConfigurationError, match="Unsupported file format"):
            load_config(path)
