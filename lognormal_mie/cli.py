"""
Command-line interface for lognormal-mie.

Computes bulk Mie coefficients and their derivatives for a log-normal
size distribution, from command-line arguments or a YAML/JSON
configuration file.
"""

import argparse
import logging
import sys
from typing import List, Optional

from lognormal_mie import __version__


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_config(args: argparse.Namespace):
    """Build a MieDerivsConfig from a config file and/or CLI arguments.

    Values given on the command line override those from the file.
    """
    from lognormal_mie.config import MieDerivsConfig, load_config

    config = load_config(args.config) if args.config else MieDerivsConfig()

    dist = config.distribution
    overrides = {
        "number_density": args.n,
        "median_radius": args.rm,
        "spread": args.s,
        "wavenumber": args.wavenumber,
        "refractive_index_real": args.m_real,
        "refractive_index_imag": args.m_imag,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(dist, name, value)

    if args.angles:
        config.angles.cos_angles = [float(mu) for mu in args.angles.split(",")]
    if args.n_angles is not None:
        config.angles.n_angles = args.n_angles
    if args.npts is not None:
        config.quadrature.npts = args.npts
    if args.diagnostics:
        config.output.diagnostics = True
    if args.output:
        config.output.output_path = args.output
    if args.format:
        config.output.format = args.format

    return config


def run(args: argparse.Namespace) -> int:
    """Run one log-normal Mie derivative calculation."""
    from lognormal_mie.core import LogNormalMieEngine
    from lognormal_mie.utils import OutputFormatter

    config = build_config(args)

    errors = config.validate()
    if errors:
        for error in errors:
            logging.error(f"Configuration error: {error}")
        return 1

    engine = LogNormalMieEngine.from_config(config.quadrature)
    result = engine.compute(
        config.distribution.to_params(),
        cos_angles=config.angles.resolve(),
        npts=config.quadrature.npts,
        diagnostics=config.output.diagnostics,
    )

    if config.output.output_path:
        output_path = OutputFormatter().save(
            result, config.output.output_path, format=config.output.format
        )
        print(f"Results saved to: {output_path}")
        return 0

    print("\nLog-normal Mie results:")
    print(f"  Bext: {result.bext:.6e}   dN: {result.dbext_dn:.6e}   "
          f"dRm: {result.dbext_drm:.6e}   dS: {result.dbext_ds:.6e}")
    print(f"  Bsca: {result.bsca:.6e}   dN: {result.dbsca_dn:.6e}   "
          f"dRm: {result.dbsca_drm:.6e}   dS: {result.dbsca_ds:.6e}")
    print(f"  Single scatter albedo: {result.bulk.single_scatter_albedo:.6f}")
    print(f"  Asymmetry parameter: {result.bulk.asymmetry:.6f}")

    if result.intensity is not None:
        print("\n  cos(theta)        i1            i2")
        for mu, i1, i2 in zip(result.intensity.cos_angles, result.intensity.i1,
                              result.intensity.i2):
            print(f"  {mu:10.5f}  {i1:12.6e}  {i2:12.6e}")

    if result.diagnostics is not None:
        info = result.diagnostics
        print(f"\n  Quadrature points: {info.point_count}")
        print(f"  Size parameter range: {info.min_size_parameter:.4f} - "
              f"{info.max_size_parameter:.4f}")
        if info.truncated:
            print("  Upper radius bound was truncated")

    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mie coefficients and derivatives for log-normal particle distributions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Extinction and scattering for N=1, Rm=0.5 um, S=1.5 at 500 nm
    lognormal-mie --n 1 --rm 0.5 --s 1.5 --wavenumber 2 --m-real 1.5 --m-imag 0.01

    # Add intensity functions at three angles and save as JSON
    lognormal-mie -c run.yaml --angles=-1,0,1 -o result.json
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"lognormal-mie {__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to YAML or JSON configuration file",
    )

    # Distribution options
    parser.add_argument("--n", type=float, help="Number density N")
    parser.add_argument("--rm", type=float, help="Median radius Rm")
    parser.add_argument("--s", type=float, help="Geometric spread S (> 1)")
    parser.add_argument(
        "--wavenumber",
        type=float,
        help="Wavenumber 1/lambda, in the reciprocal of the radius unit",
    )
    parser.add_argument("--m-real", type=float, help="Real part of the refractive index")
    parser.add_argument("--m-imag", type=float, help="Imaginary part of the refractive index")

    # Angle and quadrature options
    parser.add_argument(
        "--angles",
        type=str,
        help="Comma-separated cosines of scattering angles (e.g., -1,0,1)",
    )
    parser.add_argument(
        "--n-angles",
        type=int,
        help="Number of evenly spaced scattering angles from 0 to 180 degrees",
    )
    parser.add_argument("--npts", type=int, help="Number of quadrature points")
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Report quadrature point count and size parameter range",
    )

    # Output options
    parser.add_argument("-o", "--output", type=str, help="Output file path")
    parser.add_argument(
        "-f", "--format",
        type=str,
        choices=["json", "yaml", "csv"],
        help="Output format",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = create_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return run(args)
    except Exception as e:
        logging.exception(f"Calculation failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
