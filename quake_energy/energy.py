"""
Magnitude/energy arithmetic.

Radiated seismic energy is estimated with the Gutenberg-Richter relation

    log10(E[J]) = a + b * M      (a=4.8, b=1.5)

so one magnitude unit is ~31.6x more energy and two units are 1000x.
"""

from __future__ import annotations

from typing import Union

import numpy as np
import pandas as pd

from .constants import ENERGY_A, ENERGY_B

ArrayLike = Union[float, int, np.ndarray, pd.Series, list]


def magnitude_to_energy(m: ArrayLike, a: float = ENERGY_A, b: float = ENERGY_B):
    """
    Energy in joules for magnitude `m`.

    Scalars give a float; Series keep their index; other array-likes give an ndarray.
    NaN magnitudes give NaN energy.

    Examples
    --------
    >>> f"{magnitude_to_energy(7.5):.4g}"
    '1.122e+16'
    """
    if isinstance(m, pd.Series):
        mag = pd.to_numeric(m, errors="coerce")
        return np.power(10.0, a + b * mag)
    if np.ndim(m) == 0:
        return float(np.power(10.0, a + b * float(m)))
    return np.power(10.0, a + b * np.asarray(m, dtype=float))


def energy_to_magnitude(e: ArrayLike, a: float = ENERGY_A, b: float = ENERGY_B):
    """Inverse of `magnitude_to_energy`."""
    if isinstance(e, pd.Series):
        return (np.log10(pd.to_numeric(e, errors="coerce")) - a) / b
    if np.ndim(e) == 0:
        return float((np.log10(float(e)) - a) / b)
    return (np.log10(np.asarray(e, dtype=float)) - a) / b


def energy_ratio(m1: float, m2: float, b: float = ENERGY_B) -> float:
    """E(m1) / E(m2); the intercept cancels out."""
    return float(10.0 ** (b * (float(m1) - float(m2))))


def cumulative_fraction(values: ArrayLike) -> pd.Series:
    """
    Running sum of `values` divided by its final value.

    The input order is kept (sort by time beforehand). NaN counts as zero.
    The result is non-decreasing for non-negative input and its last element is
    exactly 1.0, because the divisor is the last running sum rather than an
    independently computed total.

    Raises
    ------
    ValueError
        If the values sum to zero (nothing to normalise by).
    """
    s = values if isinstance(values, pd.Series) else pd.Series(values, dtype=float)
    s = pd.to_numeric(s, errors="coerce").fillna(0.0)
    if s.empty:
        return s.astype(float)
    if (s < 0).any():
        raise ValueError("cumulative_fraction expects non-negative values")
    running = s.cumsum()
    total = running.iloc[-1]
    if total == 0:
        raise ValueError("Cannot normalise: values sum to zero")
    return running / total


def yearly_energy(times: pd.Series, energy: pd.Series) -> pd.Series:
    """
    Sum `energy` per calendar year of `times`, in chronological order.

    Returns a Series indexed by integer year, named ``energy_J``.
    """
    t = pd.Series(pd.to_datetime(times))
    e = pd.Series(pd.to_numeric(np.asarray(energy), errors="coerce"), index=t.index).fillna(0.0)
    out = e.groupby(t.dt.year).sum().sort_index()
    out.index = out.index.astype(int)
    out.index.name = "year"
    out.name = "energy_J"
    return out
