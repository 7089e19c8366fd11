"""
Output formatter for exporting Mie derivative results.

Supports multiple output formats:
- JSON: Full structured output with metadata
- YAML: Same structure as JSON
- CSV: Per-angle intensity table plus a bulk-coefficient table
"""

import json
import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import numpy as np
import pandas as pd
import yaml

from lognormal_mie import __version__
from lognormal_mie.core.engine import MieDerivativesResult

logger = logging.getLogger(__name__)

BULK_FIELDS = (
    "bext", "bsca", "dbext_dn", "dbext_drm", "dbext_ds",
    "dbsca_dn", "dbsca_drm", "dbsca_ds",
)


def _to_builtin(value):
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (np.floating, np.integer, np.bool_)):
        return value.item()
    return value


def result_to_dict(result: MieDerivativesResult) -> Dict[str, Any]:
    """Convert a result into nested dictionaries of plain Python values.

    Args:
        result: Engine result

    Returns:
        Dictionary with "parameters", "coefficients", "bulk" and, when
        present, "intensity" and "diagnostics" sections
    """
    params = result.params
    m = complex(params.refractive_index)

    data = {
        "parameters": {
            "number_density": float(params.n),
            "median_radius": float(params.rm),
            "spread": float(params.s),
            "wavenumber": float(params.wavenumber),
            "refractive_index_real": m.real,
            "refractive_index_imag": m.imag,
        },
        "coefficients": {name: getattr(result, name) for name in BULK_FIELDS},
        "bulk": asdict(result.bulk),
    }

    if result.intensity is not None:
        intensity = asdict(result.intensity)
        intensity["phase_function"] = result.intensity.phase_function(
            result.bsca, params.wavenumber
        )
        data["intensity"] = {k: _to_builtin(v) for k, v in intensity.items()}

    if result.diagnostics is not None:
        data["diagnostics"] = {
            k: _to_builtin(v) for k, v in asdict(result.diagnostics).items()
        }

    return data


class OutputFormatter:
    """Formatter for exporting results to various formats.

    Example:
        >>> formatter = OutputFormatter()
        >>> formatter.save(result, "output.json", format="json")
        >>> formatter.save(result, "output.csv", format="csv")
    """

    def save(
        self,
        result: MieDerivativesResult,
        output_path: str,
        format: str = "json",
        **kwargs,
    ) -> str:
        """Save a result to file.

        Args:
            result: Engine result
            output_path: Output file path
            format: Output format (json, yaml, csv)
            **kwargs: Additional format-specific options

        Returns:
            Path to saved file

        Raises:
            ValueError: If format is not supported
        """
        format = format.lower()

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if format == "json":
            return self._save_json(result, output_path, **kwargs)
        elif format in ("yaml", "yml"):
            return self._save_yaml(result, output_path)
        elif format == "csv":
            return self._save_csv(result, output_path, **kwargs)
        else:
            raise ValueError(f"Unsupported format: {format}")

    @staticmethod
    def _document(result: MieDerivativesResult) -> Dict[str, Any]:
        return {
            "metadata": {
                "format_version": "1.0",
                "created": datetime.now().isoformat(),
                "software": "lognormal-mie",
                "version": __version__,
            },
            **result_to_dict(result),
        }

    def _save_json(
        self,
        result: MieDerivativesResult,
        output_path: Path,
        indent: int = 2,
        **kwargs,
    ) -> str:
        with open(output_path, 'w') as f:
            json.dump(self._document(result), f, indent=indent)

        logger.info(f"Saved JSON output to {output_path}")
        return str(output_path)

    def _save_yaml(self, result: MieDerivativesResult, output_path: Path) -> str:
        with open(output_path, 'w') as f:
            yaml.safe_dump(self._document(result), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved YAML output to {output_path}")
        return str(output_path)

    def _save_csv(
        self,
        result: MieDerivativesResult,
        output_path: Path,
        delimiter: str = ",",
        **kwargs,
    ) -> str:
        """Save bulk coefficients and, if present, the per-angle table.

        The bulk table goes to ``<stem>_bulk.csv`` next to ``output_path``
        when intensities are present, otherwise to ``output_path`` itself.
        """
        bulk = {name: [getattr(result, name)] for name in BULK_FIELDS}
        bulk.update({name: [value] for name, value in asdict(result.bulk).items()})
        bulk_df = pd.DataFrame(bulk)

        if result.intensity is None:
            bulk_df.to_csv(output_path, index=False, sep=delimiter)
            logger.info(f"Saved CSV output to {output_path}")
            return str(output_path)

        intensity = result.intensity
        df = pd.DataFrame({
            "cos_angle": intensity.cos_angles,
            "angle_deg": np.degrees(np.arccos(intensity.cos_angles)),
            "i1": intensity.i1,
            "i2": intensity.i2,
            "di1_dn": intensity.di1_dn,
            "di1_drm": intensity.di1_drm,
            "di1_ds": intensity.di1_ds,
            "di2_dn": intensity.di2_dn,
            "di2_drm": intensity.di2_drm,
            "di2_ds": intensity.di2_ds,
            "phase_function": intensity.phase_function(result.bsca, result.params.wavenumber),
        })
        df.to_csv(output_path, index=False, sep=delimiter)

        bulk_path = output_path.with_name(f"{output_path.stem}_bulk.csv")
        bulk_df.to_csv(bulk_path, index=False, sep=delimiter)

        logger.info(f"Saved CSV output to {output_path} and {bulk_path}")
        return str(output_path)
