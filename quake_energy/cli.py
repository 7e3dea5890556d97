"""
Command line entry point.

    python -m quake_energy --outdir figures -v
    python -m quake_energy --input catalog.csv --no-basemap

Downloads (or loads) the catalog, derives energy, renders the five figures and
prints the energy-share comparison.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import matplotlib

from . import plots
from .api import CatalogAPI, CatalogError, split_windows
from .constants import BASE_URL, DEFAULT_BBOX, DEFAULT_WINDOWS, TILE_PROVIDER, TILE_ZOOM
from .dataset import EarthquakeDataset
from .logger import configure_logging, get_logger, verbosity_to_level
from .report import energy_report, format_report, report_frame

logger = get_logger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="quake-energy",
        description="Map a regional earthquake catalog and chart its cumulative energy release.",
    )
    src = parser.add_argument_group("catalog")
    src.add_argument("--input", type=Path, help="read a catalog CSV instead of downloading")
    src.add_argument("--base-url", default=BASE_URL, help="FDSN event service host")
    src.add_argument("--start", help="start of the period (default: built-in windows)")
    src.add_argument("--end", help="end of the period")
    src.add_argument("--windows", type=int, default=8, help="number of windows to split --start..--end into")
    src.add_argument("--bbox", type=float, nargs=4, default=list(DEFAULT_BBOX),
                     metavar=("MIN_LAT", "MIN_LON", "MAX_LAT", "MAX_LON"))
    src.add_argument("--min-magnitude", type=float, default=None)
    src.add_argument("--save", type=Path, help="write the downloaded catalog (with energy) to this CSV")

    out = parser.add_argument_group("output")
    out.add_argument("--outdir", type=Path, default=Path("figures"))
    out.add_argument("--format", default="png", help="figure file format")
    out.add_argument("--no-basemap", action="store_true", help="skip the map tile download")
    out.add_argument("--provider", default=TILE_PROVIDER, help="xyzservices tile provider name")
    out.add_argument("--zoom", type=int, default=TILE_ZOOM)
    out.add_argument("-v", "--verbose", action="count", default=0)

    args = parser.parse_args(argv)
    if (args.start is None) != (args.end is None):
        parser.error("--start and --end must be given together")
    return args


def load_dataset(args: argparse.Namespace) -> EarthquakeDataset:
    if args.input is not None:
        logger.info("Reading %s", args.input)
        return EarthquakeDataset.from_csv(str(args.input))

    windows = DEFAULT_WINDOWS
    if args.start is not None:
        windows = split_windows(args.start, args.end, args.windows)
    with CatalogAPI(base_url=args.base_url) as api:
        frame = api.fetch_windows(windows, bbox=tuple(args.bbox), min_magnitude=args.min_magnitude)
    return EarthquakeDataset.from_frame(frame)


def run(args: argparse.Namespace) -> int:
    bbox = tuple(args.bbox)
    ds = (load_dataset(args)
            .filter_by_bbox(bbox)
            .drop_missing_magnitude()
            .convert_energy()
            .cumulative_energy())
    if len(ds) == 0:
        logger.error("No events in the selected period and region")
        return 1

    if args.save is not None:
        ds.save(str(args.save))

    df = ds.to_dataframe()
    yearly = ds.aggregate_yearly(fill_empty_years=True)
    map_kw = dict(basemap=not args.no_basemap, provider=args.provider, zoom=args.zoom)

    args.outdir.mkdir(parents=True, exist_ok=True)
    figures = {
        "density_map": plots.density_map(df, bbox, **map_kw),
        "binned_magnitude_map": plots.binned_magnitude_map(df, bbox, **map_kw),
        "point_map": plots.point_map(df, bbox, **map_kw),
        "cumulative_energy": plots.cumulative_energy_line(df),
        "yearly_energy": plots.yearly_energy_bars(yearly),
    }
    for name, fig in figures.items():
        plots.save_figure(fig, args.outdir / f"{name}.{args.format}")

    report = energy_report(ds)
    report_frame(report).to_csv(args.outdir / "energy_report.csv", index=False)
    print(format_report(report))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    matplotlib.use("Agg")
    configure_logging(verbosity_to_level(args.verbose))
    try:
        return run(args)
    except (CatalogError, ValueError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
