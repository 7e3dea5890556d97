"""Energy-share comparisons printed at the end of an analysis run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from .dataset import EarthquakeDataset


@dataclass
class EnergyReport:
    total_energy_J: float
    event_count: int
    top_magnitudes: List[float] = field(default_factory=list)
    top_energies_J: List[float] = field(default_factory=list)
    largest_share: float = float("nan")   # E(largest) / E(total)
    top_ratio: float = float("nan")       # E(largest) / E(second largest)
    peak_year: Optional[int] = None
    peak_year_share: float = float("nan")


def energy_report(ds: EarthquakeDataset, n_top: int = 2, energy_col: str = "energy_J") -> EnergyReport:
    """
    Summarise how concentrated the energy release is.

    A handful of large events dominate the total, because energy grows ~31.6x per
    magnitude unit. `largest_share` and `top_ratio` make that explicit.
    """
    if energy_col not in ds.to_dataframe().columns:
        ds.convert_energy(out_col=energy_col)
    df = ds.to_dataframe()
    total = ds.total_energy(energy_col)

    top = ds.largest_events(max(n_top, 2))
    energies = [float(e) for e in top[energy_col]]
    report = EnergyReport(
        total_energy_J=total,
        event_count=len(df),
        top_magnitudes=[float(m) for m in top["magnitude"]][:n_top],
        top_energies_J=energies[:n_top],
    )
    if energies and total > 0:
        report.largest_share = energies[0] / total
    if len(energies) >= 2 and energies[1] > 0:
        report.top_ratio = energies[0] / energies[1]

    yearly = ds.aggregate_yearly(energy_col=energy_col)
    if not yearly.empty and yearly["energy_J"].sum() > 0:
        peak = yearly.loc[yearly["energy_frac"].idxmax()]
        report.peak_year = int(peak["year"])
        report.peak_year_share = float(peak["energy_frac"])
    return report


def format_report(report: EnergyReport) -> str:
    """Human-readable lines for the console."""
    lines = [
        f"Events: {report.event_count:,}",
        f"Total energy: {report.total_energy_J:.3e} J",
    ]
    for i, (m, e) in enumerate(zip(report.top_magnitudes, report.top_energies_J), start=1):
        lines.append(f"  #{i}: M{m:.2f}  {e:.3e} J")
    lines.append(f"Largest event / total energy: {_fmt(report.largest_share)}")
    lines.append(f"Largest / second largest energy: {_fmt(report.top_ratio, pct=False)}")
    if report.peak_year is not None:
        lines.append(f"Peak year {report.peak_year}: {report.peak_year_share:.1%} of total")
    return "\n".join(lines)


def _fmt(x: float, pct: bool = True) -> str:
    if x is None or (isinstance(x, float) and np.isnan(x)):
        return "n/a"
    return f"{x:.2%}" if pct else f"{x:.3f}"


def report_frame(report: EnergyReport) -> pd.DataFrame:
    """Single-row frame, handy for saving next to the figures."""
    return pd.DataFrame([{
        "event_count": report.event_count,
        "total_energy_J": report.total_energy_J,
        "largest_share": report.largest_share,
        "top_ratio": report.top_ratio,
        "peak_year": report.peak_year,
        "peak_year_share": report.peak_year_share,
    }])
