import httpx
import matplotlib
import pandas as pd
import pytest

matplotlib.use("Agg")

from quake_energy.api import CatalogAPI
from quake_energy.dataset import EarthquakeDataset

from .sample_data import ROWS, csv_text


@pytest.fixture
def catalog_csv():
    return csv_text(ROWS)


@pytest.fixture
def catalog_frame(catalog_csv, tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text(catalog_csv)
    return pd.read_csv(path)


@pytest.fixture
def dataset(catalog_frame):
    return EarthquakeDataset.from_frame(catalog_frame)


@pytest.fixture
def make_api():
    """Build a CatalogAPI whose HTTP layer is a handler function."""
    created = []

    def _make(handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        api = CatalogAPI(client=client)
        created.append(client)
        return api

    yield _make
    for c in created:
        c.close()
