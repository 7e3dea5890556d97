from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple

import numpy as np
import pandas as pd

from .constants import CANONICAL_FIELDS, DEFAULT_TZ, ENERGY_A, ENERGY_B
from .energy import cumulative_fraction, magnitude_to_energy, yearly_energy
from .logger import get_logger

# Source column aliases, first match wins
_ALIASES: Dict[str, Tuple[str, ...]] = {
    "event_id": ("event_id", "id", "eventid", "eventID", "eventId"),
    "time": ("time", "date", "datetime", "eventDate", "origintime"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lon", "lng"),
    "depth_km": ("depth_km", "depth"),
    "magnitude": ("magnitude", "mag"),
    "mag_type": ("mag_type", "magType", "type"),
    "location": ("location", "place", "title"),
    "network": ("network", "net"),
    "updated": ("updated", "lastupdatedate", "lastUpdate"),
}


class EarthquakeDataset:
    """
    Container over catalog events with DataFrame utilities.

    Key features:
    - Normalize raw columns to a canonical schema (columns always exist, may be null).
    - Client-side filters (date/magnitude/depth/bbox).
    - Energy conversion: E[J] = 10 ^ (a + b * M), defaults a=4.8, b=1.5.
    - Cumulative energy fraction over time and per calendar year.
    - Single save() for CSV/JSON.

    Filters and transforms replace the internal frame and return ``self``.

    Examples
    --------
    >>> ds = EarthquakeDataset.from_frame(api.fetch_windows())
    >>> (ds.drop_missing_magnitude()
    ...    .convert_energy()
    ...    .cumulative_energy()
    ...    .to_dataframe())
    """

    def __init__(self, frame: Optional[pd.DataFrame] = None, tz: str = DEFAULT_TZ) -> None:
        self._logger = get_logger("dataset")
        self._raw = frame if frame is not None else pd.DataFrame()
        self.tz = tz
        self._df: Optional[pd.DataFrame] = None  # built lazily

    # ------------- Constructors -------------
    @classmethod
    def from_records(cls, records: List[Dict[str, Any]], tz: str = DEFAULT_TZ) -> "EarthquakeDataset":
        """Create dataset from a list of dict records."""
        return cls(pd.DataFrame(records or []), tz=tz)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, tz: str = DEFAULT_TZ) -> "EarthquakeDataset":
        """Create dataset from a DataFrame as served (e.g. by `CatalogAPI`)."""
        return cls(frame, tz=tz)

    @classmethod
    def from_csv(cls, path: str, tz: str = DEFAULT_TZ) -> "EarthquakeDataset":
        """Create dataset from a catalog CSV on disk."""
        return cls(pd.read_csv(path), tz=tz)

    # ------------- Core -------------
    def to_dataframe(self) -> pd.DataFrame:
        """
        Return the internal DataFrame, building it once from the raw frame.

        - Renames known aliases to canonical columns; canonical columns always exist.
        - Parses 'time' to tz-aware timestamps in `self.tz`.
        - Casts numeric fields to float.
        """
        if self._df is not None:
            return self._df

        df = self._normalize_columns(self._raw)

        for col in ("latitude", "longitude", "depth_km", "magnitude"):
            df[col] = pd.to_numeric(df[col], errors="coerce")

        for col in ("time", "updated"):
            t = pd.to_datetime(df[col], errors="coerce", utc=True)
            df[col] = t.dt.tz_convert(self.tz)

        other_cols = [c for c in df.columns if c not in CANONICAL_FIELDS]
        df = df[CANONICAL_FIELDS + other_cols].reset_index(drop=True)

        self._df = df
        return self._df

    def __len__(self) -> int:
        return len(self.to_dataframe())

    def save(self, path: str, *, fmt: Literal["csv", "json"] = "csv", **kwargs) -> "EarthquakeDataset":
        """
        Save the current DataFrame to disk.

        Parameters
        ----------
        path : str
            File path.
        fmt : {'csv','json'}
            Output format.
        kwargs :
            Passed to pandas writer. For JSON, defaults to orient='records', date_format='iso'.
        """
        df = self.to_dataframe().copy()
        if fmt == "csv":
            df.to_csv(path, index=False, encoding=kwargs.pop("encoding", "utf-8"), **kwargs)
        elif fmt == "json":
            kwargs.setdefault("orient", "records")
            kwargs.setdefault("date_format", "iso")
            kwargs.setdefault("force_ascii", False)
            df.to_json(path, **kwargs)
        else:
            raise ValueError("fmt must be 'csv' or 'json'")
        return self

    # ------------- Filters (in-place; chainable) -------------
    def filter_by_date(
        self,
        *,
        start: Optional[str | pd.Timestamp] = None,
        end: Optional[str | pd.Timestamp] = None,
    ) -> "EarthquakeDataset":
        """
        Keep rows within [start, end] (inclusive). Naive bounds are taken in `self.tz`.

        Examples
        --------
        >>> ds.filter_by_date(start="2023-02-06", end="2023-02-28 23:59:59")
        """
        df = self.to_dataframe()
        t = df["time"]
        if start is not None:
            df = df[t >= self._as_tz(start)]
        if end is not None:
            df = df[df["time"] <= self._as_tz(end)]
        self._df = df
        return self

    def filter_by_magnitude(
        self,
        *,
        min_mag: Optional[float] = None,
        max_mag: Optional[float] = None,
    ) -> "EarthquakeDataset":
        """Keep rows where magnitude is within [min_mag, max_mag]."""
        df = self.to_dataframe()
        if min_mag is not None:
            df = df[df["magnitude"] >= float(min_mag)]
        if max_mag is not None:
            df = df[df["magnitude"] <= float(max_mag)]
        self._df = df
        return self

    def filter_by_depth(
        self,
        *,
        min_depth_km: Optional[float] = None,
        max_depth_km: Optional[float] = None,
    ) -> "EarthquakeDataset":
        """Keep rows where depth_km is within [min_depth_km, max_depth_km]."""
        df = self.to_dataframe()
        if min_depth_km is not None:
            df = df[df["depth_km"] >= float(min_depth_km)]
        if max_depth_km is not None:
            df = df[df["depth_km"] <= float(max_depth_km)]
        self._df = df
        return self

    def filter_by_bbox(self, bbox: Tuple[float, float, float, float]) -> "EarthquakeDataset":
        """Keep rows inside (min_lat, min_lon, max_lat, max_lon), edges included."""
        min_lat, min_lon, max_lat, max_lon = bbox
        df = self.to_dataframe()
        inside = (
            df["latitude"].between(min_lat, max_lat)
            & df["longitude"].between(min_lon, max_lon)
        )
        self._df = df[inside]
        return self

    def drop_missing_magnitude(self) -> "EarthquakeDataset":
        """Drop rows without a usable magnitude or origin time."""
        df = self.to_dataframe()
        bad = df["magnitude"].isna() | df["time"].isna()
        if bad.any():
            self._logger.warning("Dropping %d rows without magnitude or time", int(bad.sum()))
        self._df = df[~bad]
        return self

    # ------------- Energy -------------
    def convert_energy(
        self,
        *,
        a: float = ENERGY_A,
        b: float = ENERGY_B,
        out_col: str = "energy_J",
    ) -> "EarthquakeDataset":
        """
        Compute energy per event:

            log10(E[J]) = a + b * M   →   E = 10 ** (a + b*M)

        Rows with NaN magnitude produce NaN energy.
        """
        df = self.to_dataframe().copy()
        df[out_col] = magnitude_to_energy(df["magnitude"], a=a, b=b)
        self._df = df
        return self

    def cumulative_energy(self, *, energy_col: str = "energy_J") -> "EarthquakeDataset":
        """
        Sort by time and add ``energy_cum_J`` and ``energy_cum_frac``.

        The sort is stable: events with identical timestamps keep their incoming
        order. Rows without an origin time are dropped (they have no place on
        the timeline), so the total matches `aggregate_yearly`. The fraction ends
        at exactly 1.0. Computes energy with the default coefficients if
        `energy_col` is missing.
        """
        if energy_col not in self.to_dataframe().columns:
            self.convert_energy(out_col=energy_col)
        df = self.to_dataframe()
        undated = df["time"].isna()
        if undated.any():
            self._logger.warning("Dropping %d rows without origin time", int(undated.sum()))
            df = df[~undated]
        df = df.sort_values("time", kind="mergesort").reset_index(drop=True)
        energy = df[energy_col].fillna(0.0)
        df["energy_cum_J"] = energy.cumsum()
        df["energy_cum_frac"] = cumulative_fraction(energy).to_numpy()
        self._df = df
        return self

    def total_energy(self, energy_col: str = "energy_J") -> float:
        """Sum of per-event energy in joules (NaN ignored)."""
        df = self.to_dataframe()
        if energy_col not in df.columns:
            return float(np.nansum(magnitude_to_energy(df["magnitude"])))
        return float(df[energy_col].sum(skipna=True))

    def largest_events(self, n: int = 2) -> pd.DataFrame:
        """The `n` events with the largest magnitude, largest first."""
        df = self.to_dataframe()
        return df.dropna(subset=["magnitude"]).nlargest(n, "magnitude", keep="first")

    # ------------- Yearly aggregation -------------
    def aggregate_yearly(
        self,
        *,
        energy_col: str = "energy_J",
        fill_empty_years: bool = False,
    ) -> pd.DataFrame:
        """
        Aggregate events by calendar year (in `self.tz`).

        Returns one row per year with columns ``year, energy_J, event_count,
        max_magnitude, energy_frac, energy_cum_frac``. ``energy_frac`` is the share of
        the grand total released that year, ``energy_cum_frac`` its running sum,
        ending at exactly 1.0. The per-year energies sum to the row-level total.
        Both shares are NaN when no event has a magnitude.

        fill_empty_years=True → years without events are included with
        energy_J=0.0, event_count=0, max_magnitude=NaN.

        Unlike the filters this does not change the dataset.

        Examples
        --------
        >>> ds.convert_energy().aggregate_yearly(fill_empty_years=True)
        """
        df = self.to_dataframe()
        if energy_col not in df.columns:
            df = df.assign(**{energy_col: magnitude_to_energy(df["magnitude"])})
        df = df[df["time"].notna()]

        columns = ["year", "energy_J", "event_count", "max_magnitude", "energy_frac", "energy_cum_frac"]
        if df.empty:
            return pd.DataFrame(columns=columns)

        grp = df.groupby(df["time"].dt.year)
        out = grp.agg(
            event_count=("time", "size"),
            max_magnitude=("magnitude", "max"),
        )
        out.index = out.index.astype(int)
        out["energy_J"] = yearly_energy(df["time"], df[energy_col])
        out = out.sort_index()

        if fill_empty_years:
            full = pd.RangeIndex(out.index.min(), out.index.max() + 1)
            out = out.reindex(full)
            out["energy_J"] = out["energy_J"].fillna(0.0)
            out["event_count"] = out["event_count"].fillna(0).astype(int)

        out = out.rename_axis("year").reset_index()
        total = out["energy_J"].sum()
        out["energy_frac"] = out["energy_J"] / total if total else np.nan
        if total:
            out["energy_cum_frac"] = cumulative_fraction(out["energy_J"]).to_numpy()
        else:
            out["energy_cum_frac"] = np.nan
        return out[columns]

    # ------------- Helpers -------------
    def _as_tz(self, ts: str | pd.Timestamp) -> pd.Timestamp:
        t = pd.Timestamp(ts)
        if t.tzinfo is None:
            return t.tz_localize(self.tz)
        return t.tz_convert(self.tz)

    @staticmethod
    def _normalize_columns(raw: pd.DataFrame) -> pd.DataFrame:
        """Map heterogeneous catalog column names to our canonical schema."""
        out = pd.DataFrame(index=raw.index)
        used = set()
        for canon, names in _ALIASES.items():
            for n in names:
                if n in raw.columns:
                    out[canon] = raw[n]
                    used.add(n)
                    break
            else:
                out[canon] = np.nan
        for c in raw.columns:
            if c not in used and c not in out.columns:
                out[c] = raw[c]
        return out
