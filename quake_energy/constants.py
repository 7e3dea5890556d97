"""Library-wide constants and defaults."""

# USGS FDSN event web service
BASE_URL = "https://earthquake.usgs.gov"
API_ROOT = "/fdsnws/event/1"

# Endpoints we target
ENDPOINT_QUERY = "/query"
ENDPOINT_COUNT = "/count"

# The service refuses queries matching more than this many events, which is why
# a long time span is fetched as several windows.
MAX_ROWS_PER_QUERY = 20000

DEFAULT_TIMEOUT = 60.0  # seconds

# Time / timezone used for parsing and calendar-year grouping
DEFAULT_TZ = "UTC"

# (min_lat, min_lon, max_lat, max_lon): Türkiye and its surroundings
DEFAULT_BBOX = (35.8, 25.6, 42.2, 44.8)

# Contiguous, non-overlapping [start, end) windows
DEFAULT_WINDOWS = [
    ("1900-01-01", "1970-01-01"),
    ("1970-01-01", "1990-01-01"),
    ("1990-01-01", "2000-01-01"),
    ("2000-01-01", "2010-01-01"),
    ("2010-01-01", "2015-01-01"),
    ("2015-01-01", "2020-01-01"),
    ("2020-01-01", "2023-02-01"),
    ("2023-02-01", "2024-01-01"),
]

# log10(E[J]) = ENERGY_A + ENERGY_B * M
ENERGY_A = 4.8
ENERGY_B = 1.5

# Base map tiles (xyzservices provider name) and the zoom they are fetched at
TILE_PROVIDER = "CartoDB.Positron"
TILE_ZOOM = 6

# Canonical column names we deliver in DataFrames (present even if null)
CANONICAL_FIELDS = [
    "event_id",
    "time",              # tz-aware
    "latitude",
    "longitude",
    "depth_km",
    "magnitude",
    "mag_type",
    "location",          # human readable
    "network",
    "updated",
]
