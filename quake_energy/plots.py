"""
Static figures: three epicentre maps over a tile base map and two energy charts.

Every function builds and returns an independent matplotlib Figure; nothing is
shown or written until `save_figure`. Map functions expect the canonical columns
produced by `EarthquakeDataset`, the energy charts the columns added by
`cumulative_energy()` / `aggregate_yearly()`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import contextily as ctx
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import LogNorm
from matplotlib.figure import Figure
from matplotlib.ticker import PercentFormatter

from .constants import DEFAULT_BBOX, TILE_PROVIDER, TILE_ZOOM
from .energy import energy_to_magnitude
from .logger import get_logger

BBox = Tuple[float, float, float, float]

logger = get_logger("plots")


# ---------- Base map ----------
def resolve_provider(name: str):
    """Look up an xyzservices tile provider by name, e.g. "CartoDB.Positron"."""
    return ctx.providers.query_name(name)


def add_basemap(ax, provider: str = TILE_PROVIDER, zoom: int = TILE_ZOOM) -> None:
    """
    Draw tiles under the data of `ax`, whose limits must already be set in lon/lat.

    One tile request set is made at the fixed `zoom`; contextily reprojects the
    tiles to EPSG:4326.
    """
    logger.debug("Fetching %s tiles at zoom %d", provider, zoom)
    ctx.add_basemap(
        ax,
        crs="EPSG:4326",
        source=resolve_provider(provider),
        zoom=zoom,
        attribution_size=6,
        zorder=0,
    )


def _map_axes(bbox: BBox, title: str):
    min_lat, min_lon, max_lat, max_lon = bbox
    fig, ax = plt.subplots(figsize=(12, 6.5))
    ax.set_xlim(min_lon, max_lon)
    ax.set_ylim(min_lat, max_lat)
    ax.set_xlabel("Longitude (°)")
    ax.set_ylabel("Latitude (°)")
    ax.set_title(title, fontsize=13, fontweight="bold")
    ax.set_aspect("equal")
    return fig, ax


def _epicentres(df: pd.DataFrame) -> pd.DataFrame:
    pts = df.dropna(subset=["latitude", "longitude"])
    if pts.empty:
        raise ValueError("No events with coordinates to plot")
    return pts


def _finish_map(ax, basemap: bool, provider: str, zoom: int) -> None:
    if basemap:
        add_basemap(ax, provider=provider, zoom=zoom)


# ---------- Maps ----------
def density_map(
    df: pd.DataFrame,
    bbox: BBox = DEFAULT_BBOX,
    *,
    bins: int = 120,
    cmap: str = "inferno",
    basemap: bool = True,
    provider: str = TILE_PROVIDER,
    zoom: int = TILE_ZOOM,
) -> Figure:
    """Epicentre counts on a lon/lat grid, log colour scale, empty cells transparent."""
    pts = _epicentres(df)
    min_lat, min_lon, max_lat, max_lon = bbox
    extent = [[min_lon, max_lon], [min_lat, max_lat]]
    counts, _, _ = np.histogram2d(pts["longitude"], pts["latitude"], bins=bins, range=extent)
    fig, ax = _map_axes(bbox, f"Earthquake density ({len(pts):,} events)")
    h = ax.hist2d(
        pts["longitude"], pts["latitude"],
        bins=bins,
        range=extent,
        cmap=cmap,
        norm=LogNorm(vmin=1, vmax=max(10.0, counts.max())),
        cmin=1,
        alpha=0.75,
        zorder=2,
    )
    cbar = fig.colorbar(h[3], ax=ax, shrink=0.8, pad=0.02)
    cbar.set_label("Events per cell (log scale)")
    _finish_map(ax, basemap, provider, zoom)
    return fig


def binned_magnitude_map(
    df: pd.DataFrame,
    bbox: BBox = DEFAULT_BBOX,
    *,
    gridsize: int = 60,
    cmap: str = "YlOrRd",
    basemap: bool = True,
    provider: str = TILE_PROVIDER,
    zoom: int = TILE_ZOOM,
) -> Figure:
    """Hexagonal bins coloured by the largest magnitude recorded in each bin."""
    pts = _epicentres(df).dropna(subset=["magnitude"])
    if pts.empty:
        raise ValueError("No events with magnitude to plot")
    min_lat, min_lon, max_lat, max_lon = bbox
    fig, ax = _map_axes(bbox, "Largest magnitude per bin")
    hb = ax.hexbin(
        pts["longitude"], pts["latitude"],
        C=pts["magnitude"],
        reduce_C_function=np.max,
        gridsize=gridsize,
        extent=(min_lon, max_lon, min_lat, max_lat),
        cmap=cmap,
        alpha=0.8,
        linewidths=0.1,
        zorder=2,
    )
    cbar = fig.colorbar(hb, ax=ax, shrink=0.8, pad=0.02)
    cbar.set_label("Max magnitude")
    _finish_map(ax, basemap, provider, zoom)
    return fig


def point_map(
    df: pd.DataFrame,
    bbox: BBox = DEFAULT_BBOX,
    *,
    cmap: str = "viridis",
    basemap: bool = True,
    provider: str = TILE_PROVIDER,
    zoom: int = TILE_ZOOM,
) -> Figure:
    """One marker per event; size and colour grow with magnitude, largest drawn on top."""
    pts = _epicentres(df).dropna(subset=["magnitude"]).sort_values("magnitude")
    if pts.empty:
        raise ValueError("No events with magnitude to plot")
    fig, ax = _map_axes(bbox, "Earthquake epicentres")
    sc = ax.scatter(
        pts["longitude"], pts["latitude"],
        s=marker_size(pts["magnitude"]),
        c=pts["magnitude"],
        cmap=cmap,
        alpha=0.6,
        edgecolors="k",
        linewidths=0.2,
        zorder=2,
    )
    cbar = fig.colorbar(sc, ax=ax, shrink=0.8, pad=0.02)
    cbar.set_label("Magnitude")
    _finish_map(ax, basemap, provider, zoom)
    return fig


def marker_size(magnitude) -> np.ndarray:
    """Marker area in points^2: tripled per magnitude unit, never below 1."""
    m = np.asarray(magnitude, dtype=float)
    return np.maximum(np.power(3.0, m) / 10.0, 1.0)


# ---------- Energy charts ----------
def cumulative_energy_line(df: pd.DataFrame, *, title: Optional[str] = None) -> Figure:
    """Step line of ``energy_cum_frac`` over origin time."""
    if "energy_cum_frac" not in df.columns:
        raise ValueError("Run EarthquakeDataset.cumulative_energy() first")
    data = df.dropna(subset=["time"])
    t = data["time"]
    if getattr(t.dt, "tz", None) is not None:
        t = t.dt.tz_localize(None)

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.step(t.to_numpy(), data["energy_cum_frac"].to_numpy(), where="post", color="firebrick", lw=1.5)
    ax.set_ylim(0, 1.02)
    ax.yaxis.set_major_formatter(PercentFormatter(1.0))
    ax.set_xlabel("Origin time")
    ax.set_ylabel("Cumulative share of energy")
    ax.set_title(title or "Cumulative seismic energy release", fontsize=13, fontweight="bold")
    ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)
    return fig


def yearly_energy_bars(
    yearly: pd.DataFrame,
    *,
    log_scale: bool = False,
    title: Optional[str] = None,
) -> Figure:
    """
    Bars of each year's share of total energy with the cumulative share as a step
    line on a second axis. `yearly` is the output of `aggregate_yearly()`.
    """
    if yearly.empty:
        raise ValueError("No yearly data to plot")

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.bar(yearly["year"], yearly["energy_frac"], width=0.8, color="steelblue", label="Yearly share")
    if log_scale:
        ax.set_yscale("log")
    else:
        ax.yaxis.set_major_formatter(PercentFormatter(1.0))
    ax.set_xlabel("Year")
    ax.set_ylabel("Share of total energy")

    ax2 = ax.twinx()
    ax2.step(yearly["year"], yearly["energy_cum_frac"], where="mid", color="firebrick", lw=1.5,
             label="Cumulative share")
    ax2.set_ylim(0, 1.02)
    ax2.yaxis.set_major_formatter(PercentFormatter(1.0))
    ax2.set_ylabel("Cumulative share")

    peak = yearly.loc[yearly["energy_frac"].idxmax()]
    # a year's release expressed as the magnitude of one event of equal energy
    peak_mag = energy_to_magnitude(peak["energy_J"])
    ax.annotate(
        f"{int(peak['year'])}: {peak['energy_frac']:.1%} (≈ M{peak_mag:.1f})",
        xy=(peak["year"], peak["energy_frac"]),
        xytext=(0, 6), textcoords="offset points", ha="center", fontsize=9,
    )
    ax.set_title(title or "Seismic energy released per year", fontsize=13, fontweight="bold")
    ax.grid(True, axis="y", alpha=0.3, linestyle="--", linewidth=0.5)
    return fig


def save_figure(fig: Figure, path: str | Path, dpi: int = 150) -> Path:
    """Write `fig` to `path` (format from the suffix), creating folders, then close it."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info("Saved %s", out)
    return out
