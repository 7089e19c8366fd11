"""
Integration tests for the full calculation pipeline.

Covers configuration loading, the engine, the output formatter and the
command-line interface working together.
"""

import json
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import yaml

from lognormal_mie import mie_derivs_ln
from lognormal_mie.cli import main
from lognormal_mie.config import MieDerivsConfig
from lognormal_mie.core import LogNormalMieEngine
from lognormal_mie.utils import OutputFormatter, result_to_dict


SMALL_RUN = ["--n", "1", "--rm", "0.2", "--s", "1.3", "--wavenumber", "1",
             "--m-real", "1.5", "--m-imag", "0.01"]


@pytest.fixture(scope="module")
def config():
    return MieDerivsConfig.from_dict({
        "distribution": {
            "number_density": 1.0,
            "median_radius": 0.2,
            "spread": 1.3,
            "wavenumber": 1.0,
            "refractive_index_real": 1.5,
            "refractive_index_imag": 0.01,
        },
        "angles": {"cos_angles": [-1.0, 0.0, 1.0]},
        "output": {"diagnostics": True},
    })


@pytest.fixture(scope="module")
def result(config):
    engine = LogNormalMieEngine.from_config(config.quadrature)
    return engine.compute(
        config.distribution.to_params(),
        cos_angles=config.angles.resolve(),
        npts=config.quadrature.npts,
        diagnostics=config.output.diagnostics,
    )


class TestConfigToResult:
    """Configuration drives the engine."""

    def test_result_parameters(self, result):
        """Result carries the configured distribution."""
        assert result.params.rm == 0.2
        assert result.params.refractive_index == 1.5 + 0.01j

    def test_result_sections(self, result):
        """Intensity and diagnostics are present when requested."""
        assert result.intensity is not None
        assert len(result.intensity.i1) == 3
        assert result.diagnostics.point_count == 200

    def test_result_to_dict(self, result):
        """Dictionary form contains plain Python values."""
        data = result_to_dict(result)

        assert set(data) == {"parameters", "coefficients", "bulk", "intensity", "diagnostics"}
        assert data["coefficients"]["bext"] == result.bext
        assert isinstance(data["intensity"]["i1"], list)
        assert len(data["intensity"]["phase_function"]) == 3
        json.dumps(data)


class TestOutputFormats:
    """Test output format generation."""

    def test_json_output(self, result):
        """Test JSON output format."""
        formatter = OutputFormatter()

        with tempfile.TemporaryDirectory() as tmp:
            output_path = Path(tmp) / "result.json"
            result_path = formatter.save(result, output_path, format="json")

            with open(result_path) as f:
                data = json.load(f)

        assert data["metadata"]["software"] == "lognormal-mie"
        assert np.isclose(data["coefficients"]["bsca"], result.bsca)
        assert data["diagnostics"]["point_count"] == 200

    def test_yaml_output(self, result, tmp_path):
        """Test YAML output format."""
        path = OutputFormatter().save(result, tmp_path / "result.yaml", format="yaml")

        with open(path) as f:
            data = yaml.safe_load(f)

        assert np.isclose(data["coefficients"]["dbext_drm"], result.dbext_drm)
        assert data["intensity"]["cos_angles"] == [-1.0, 0.0, 1.0]

    def test_csv_output_with_angles(self, result, tmp_path):
        """Per-angle table plus a separate bulk table."""
        path = OutputFormatter().save(result, tmp_path / "result.csv", format="csv")

        angles = pd.read_csv(path)
        bulk = pd.read_csv(tmp_path / "result_bulk.csv")

        assert len(angles) == 3
        assert np.allclose(angles["i2"], result.intensity.i2)
        assert np.allclose(angles["angle_deg"], [180.0, 90.0, 0.0])
        assert np.isclose(bulk["bext"].iloc[0], result.bext)

    def test_csv_output_without_angles(self, config, tmp_path):
        """Bulk table only when no angles were requested."""
        engine = LogNormalMieEngine()
        plain = engine.compute(config.distribution.to_params())

        path = OutputFormatter().save(plain, tmp_path / "bulk.csv", format="csv")

        bulk = pd.read_csv(path)
        assert list(bulk.columns[:2]) == ["bext", "bsca"]
        assert not (tmp_path / "bulk_bulk.csv").exists()

    def test_unsupported_format(self, result, tmp_path):
        with pytest.raises(ValueError, match="Unsupported format"):
            OutputFormatter().save(result, tmp_path / "result.nc", format="netcdf")


@pytest.fixture(scope="module")
def numpy_result():
    return mie_derivs_ln(np.int64(1), np.float64(0.5), np.float64(1.5),
                         np.float64(2.0), 1.5 + 0.01j,
                         cos_angles=np.array([-1.0, 1.0]), diagnostics=True)


class TestNumpyScalarInputs:
    """Results built from numpy scalars export like those from Python floats."""

    def test_yaml_output(self, numpy_result, tmp_path):
        path = OutputFormatter().save(numpy_result, tmp_path / "result.yaml", format="yaml")

        with open(path) as f:
            data = yaml.safe_load(f)

        assert data["parameters"]["number_density"] == 1.0
        assert data["parameters"]["median_radius"] == 0.5
        assert np.isclose(data["coefficients"]["bext"], numpy_result.bext)

    def test_json_output(self, numpy_result, tmp_path):
        path = OutputFormatter().save(numpy_result, tmp_path / "result.json", format="json")

        with open(path) as f:
            data = json.load(f)

        assert data["parameters"]["wavenumber"] == 2.0
        assert data["diagnostics"]["point_count"] == numpy_result.diagnostics.point_count

    def test_parameters_are_builtin_floats(self, numpy_result):
        params = result_to_dict(numpy_result)["parameters"]
        assert all(type(value) is float for value in params.values())


class TestCommandLine:
    """End-to-end runs through the CLI entry point."""

    def test_prints_summary(self, capsys):
        assert main(SMALL_RUN) == 0

        out = capsys.readouterr().out
        assert "Bext" in out
        assert "Bsca" in out
        assert "Single scatter albedo" in out

    def test_prints_angles_and_diagnostics(self, capsys):
        assert main(SMALL_RUN + ["--angles=-1,0,1", "--diagnostics"]) == 0

        out = capsys.readouterr().out
        assert "cos(theta)" in out
        assert "Quadrature points: 200" in out

    @pytest.mark.parametrize("fmt", ["json", "yaml", "csv"])
    def test_writes_output_file(self, tmp_path, fmt):
        output = tmp_path / f"run.{fmt}"

        assert main(SMALL_RUN + ["--n-angles", "5", "-o", str(output), "-f", fmt]) == 0
        assert output.exists()

    def test_config_file_with_override(self, tmp_path):
        """Command-line values override the configuration file."""
        config_path = tmp_path / "run.yaml"
        config_path.write_text(yaml.safe_dump({
            "distribution": {"median_radius": 0.2, "spread": 1.3, "wavenumber": 1.0},
            "output": {"format": "json"},
        }))
        output = tmp_path / "run.json"

        assert main(["-c", str(config_path), "--n", "3", "-o", str(output)]) == 0

        data = json.loads(output.read_text())
        assert data["parameters"]["number_density"] == 3.0
        assert data["parameters"]["median_radius"] == 0.2

    def test_invalid_spread(self):
        """Spread not greater than one is rejected."""
        assert main(["--rm", "0.2", "--s", "0.9", "--wavenumber", "1"]) == 1

    def test_missing_config_file(self, tmp_path):
        assert main(["-c", str(tmp_path / "missing.yaml")]) == 1

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "lognormal-mie" in capsys.readouterr().out
