"""
quake_energy
Download a regional earthquake catalog, map it and chart its cumulative seismic energy.
"""

__version__ = "0.1.0"

from .api import CatalogAPI, CatalogError, split_windows
from .dataset import EarthquakeDataset
from .energy import cumulative_fraction, energy_ratio, magnitude_to_energy, yearly_energy

__all__ = [
    "CatalogAPI",
    "CatalogError",
    "EarthquakeDataset",
    "cumulative_fraction",
    "energy_ratio",
    "magnitude_to_energy",
    "split_windows",
    "yearly_energy",
]
