from __future__ import annotations

import datetime as _dt
import io
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

import httpx
import pandas as pd

from .constants import (
    BASE_URL, API_ROOT, ENDPOINT_QUERY, ENDPOINT_COUNT,
    DEFAULT_BBOX, DEFAULT_TIMEOUT, DEFAULT_WINDOWS, MAX_ROWS_PER_QUERY,
)
from .logger import get_logger

# Types
BBox = Tuple[float, float, float, float]          # (min_lat, min_lon, max_lat, max_lon)
Window = Tuple[str, str]                          # (start, end) ISO strings
DateLike = Union[str, _dt.datetime, _dt.date]
OrderBy = Literal["time", "time-asc", "magnitude", "magnitude-asc"]


class CatalogError(RuntimeError):
    """The event service could not be reached or returned an unusable response."""


class CatalogAPI:
    """
    Client for an FDSN 'event' web service that returns CSV.

    This class encapsulates HTTP concerns (base URL, timeouts) and exposes
    a few methods to retrieve earthquake catalogs as DataFrames. Column
    normalisation and energy conversion happen in `EarthquakeDataset`.

    Notes
    -----
    - Times are sent and interpreted as UTC.
    - The USGS service caps a single query at 20000 events; long spans are
      fetched as several windows with `fetch_windows`.

    Parameters
    ----------
    base_url : str, optional
        Service host, e.g. "https://earthquake.usgs.gov". Any FDSN-compliant
        provider that supports ``format=csv`` works.
    timeout : float, optional
        HTTP timeout in seconds.
    client : httpx.Client, optional
        An existing httpx client. If not provided, one is created lazily and
        closed by `close()`.

    Examples
    --------
    >>> with CatalogAPI() as api:
    ...     df = api.fetch_windows()          # the eight default windows
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._logger = get_logger("api")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._client = client
        self._owns_client = client is None

    # ---------- Lifecycle ----------
    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={
                    "Accept": "text/csv, text/plain, */*",
                    "User-Agent": "quake-energy/0.1",
                },
            )
            self._owns_client = True
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP client if we created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "CatalogAPI":
        self._ensure_client()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------- URL helpers ----------
    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}{API_ROOT}{endpoint}"

    # ---------- Input helpers ----------
    @staticmethod
    def _to_iso8601(dt: DateLike) -> str:
        """
        Convert input into an ISO8601 string without timezone suffix, in UTC.

        Strings are passed through untouched. Dates become midnight, naive
        datetimes are taken as UTC and aware ones are converted to UTC.
        """
        if isinstance(dt, str):
            return dt
        if isinstance(dt, _dt.date) and not isinstance(dt, _dt.datetime):
            dt = _dt.datetime.combine(dt, _dt.time(0, 0, 0))
        if isinstance(dt, _dt.datetime):
            if dt.tzinfo is not None:
                dt = dt.astimezone(_dt.timezone.utc)
            return dt.strftime("%Y-%m-%dT%H:%M:%S")
        raise TypeError(f"Unsupported dt type: {type(dt)!r}")

    @staticmethod
    def _validate_bbox(bbox: BBox) -> None:
        min_lat, min_lon, max_lat, max_lon = bbox
        if not (-90.0 <= min_lat <= 90.0 and -90.0 <= max_lat <= 90.0):
            raise ValueError("Latitude must be in [-90, 90].")
        if not (-180.0 <= min_lon <= 180.0 and -180.0 <= max_lon <= 180.0):
            raise ValueError("Longitude must be in [-180, 180].")
        if max_lat <= min_lat or max_lon <= min_lon:
            raise ValueError("Invalid bbox: require max_lat>min_lat and max_lon>min_lon.")

    @staticmethod
    def _validate_windows(windows: Sequence[Window]) -> List[Tuple[pd.Timestamp, pd.Timestamp]]:
        """Windows must be non-empty, ordered and must not overlap (touching is fine)."""
        if not windows:
            raise ValueError("At least one (start, end) window is required.")
        parsed = []
        for start, end in windows:
            s, e = pd.Timestamp(start), pd.Timestamp(end)
            if e <= s:
                raise ValueError(f"Window end must be after start: {start}..{end}")
            parsed.append((s, e))
        for (_, prev_end), (next_start, _) in zip(parsed, parsed[1:]):
            if next_start < prev_end:
                raise ValueError(
                    f"Windows overlap or are out of order: {prev_end} > {next_start}"
                )
        return parsed

    def _query_params(
        self,
        start: DateLike,
        end: DateLike,
        bbox: Optional[BBox],
        min_magnitude: Optional[float],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "starttime": self._to_iso8601(start),
            "endtime": self._to_iso8601(end),
        }
        if bbox is not None:
            self._validate_bbox(bbox)
            min_lat, min_lon, max_lat, max_lon = bbox
            params.update({
                "minlatitude": min_lat,
                "maxlatitude": max_lat,
                "minlongitude": min_lon,
                "maxlongitude": max_lon,
            })
        if min_magnitude is not None:
            params["minmagnitude"] = float(min_magnitude)
        return params

    # ---------- HTTP helper ----------
    def _get_text(self, url: str, params: Dict[str, Any]) -> str:
        client = self._ensure_client()
        self._logger.debug("GET %s params=%s", url, params)
        try:
            resp = client.get(url, params=params)
        except httpx.RequestError as e:
            raise CatalogError(f"Catalog request error: {e!r}") from e

        if resp.status_code == 204:
            return ""
        if resp.status_code != 200:
            raise CatalogError(
                f"Catalog HTTP {resp.status_code}: {resp.text[:300]}"
            )
        return resp.text

    # ---------- Public API ----------
    def fetch_csv(
        self,
        start: DateLike,
        end: DateLike,
        *,
        bbox: Optional[BBox] = None,
        min_magnitude: Optional[float] = None,
        orderby: OrderBy = "time-asc",
        limit: Optional[int] = None,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> pd.DataFrame:
        """
        Fetch the events of one time window as a DataFrame.

        Parameters
        ----------
        start, end : str | datetime | date
            Window bounds, formatted as "YYYY-MM-DDTHH:MM:SS" (UTC).
        bbox : tuple(min_lat, min_lon, max_lat, max_lon), optional
            Rectangular spatial filter.
        min_magnitude : float, optional
            Server-side magnitude cut.
        orderby : {'time','time-asc','magnitude','magnitude-asc'}
            Sort order as supported by the service.
        limit : int, optional
            Maximum number of rows.
        extra_params : dict, optional
            Raw query params, they take precedence over the above.

        Returns
        -------
        pandas.DataFrame
            Columns as served (``time, latitude, longitude, depth, mag, ...``).
            An empty window gives an empty frame.
        """
        params = self._query_params(start, end, bbox, min_magnitude)
        params["format"] = "csv"
        params["orderby"] = orderby
        if limit is not None:
            params["limit"] = int(limit)
        if extra_params:
            params.update(extra_params)

        text = self._get_text(self._url(ENDPOINT_QUERY), params)
        if not text.strip():
            df = pd.DataFrame()
        else:
            try:
                df = pd.read_csv(io.StringIO(text))
            except (pd.errors.ParserError, ValueError) as e:
                raise CatalogError(f"Catalog returned unparseable CSV: {text[:300]}") from e

        self._logger.info(
            "Fetched %d events for window %s..%s",
            len(df), params["starttime"], params["endtime"],
        )
        if len(df) >= MAX_ROWS_PER_QUERY:
            self._logger.warning(
                "Window %s..%s hit the %d-row service cap; split it further",
                params["starttime"], params["endtime"], MAX_ROWS_PER_QUERY,
            )
        return df

    def count(
        self,
        start: DateLike,
        end: DateLike,
        *,
        bbox: Optional[BBox] = None,
        min_magnitude: Optional[float] = None,
    ) -> int:
        """Number of events the service holds for a window, without downloading them."""
        params = self._query_params(start, end, bbox, min_magnitude)
        text = self._get_text(self._url(ENDPOINT_COUNT), params).strip()
        try:
            return int(text)
        except ValueError as e:
            raise CatalogError(f"Catalog returned a non-integer count: {text[:300]}") from e

    def fetch_windows(
        self,
        windows: Sequence[Window] = DEFAULT_WINDOWS,
        *,
        bbox: Optional[BBox] = DEFAULT_BBOX,
        **kwargs: Any,
    ) -> pd.DataFrame:
        """
        Fetch several windows in order and concatenate them.

        Windows must not overlap. An event that sits exactly on a shared
        boundary can be served by both neighbours; such repeats (same ``id``)
        are kept once. Every other row is kept as served.

        Examples
        --------
        >>> api.fetch_windows(split_windows("2020-01-01", "2024-01-01", 4), min_magnitude=3)
        """
        self._validate_windows(windows)
        frames = [self.fetch_csv(s, e, bbox=bbox, **kwargs) for s, e in windows]
        frames = [f for f in frames if not f.empty]
        if not frames:
            return pd.DataFrame()

        df = pd.concat(frames, ignore_index=True)
        if "id" in df.columns:
            dup = df.duplicated(subset="id", keep="first")
            if dup.any():
                self._logger.warning(
                    "Dropping %d events served by two adjacent windows", int(dup.sum())
                )
                df = df[~dup].reset_index(drop=True)
        self._logger.info("Concatenated %d windows into %d events", len(windows), len(df))
        return df


def split_windows(start: DateLike, end: DateLike, n: int) -> List[Window]:
    """
    Split [start, end) into `n` equal, contiguous windows.

    >>> split_windows("2020-01-01", "2020-01-03", 2)
    [('2020-01-01T00:00:00', '2020-01-02T00:00:00'), ('2020-01-02T00:00:00', '2020-01-03T00:00:00')]
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    s = pd.Timestamp(CatalogAPI._to_iso8601(start))
    e = pd.Timestamp(CatalogAPI._to_iso8601(end))
    if e <= s:
        raise ValueError("end must be after start")
    edges = [s + (e - s) * i / n for i in range(n + 1)]
    edges[-1] = e
    fmt = "%Y-%m-%dT%H:%M:%S"
    return [(a.strftime(fmt), b.strftime(fmt)) for a, b in zip(edges, edges[1:])]
