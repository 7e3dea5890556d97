import datetime as dt

import httpx
import pytest

from quake_energy.api import CatalogAPI, CatalogError, split_windows
from quake_energy.constants import DEFAULT_WINDOWS

from .sample_data import ROWS, csv_text


def test_fetch_csv_sends_fdsn_params(make_api, catalog_csv):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, text=catalog_csv)

    api = make_api(handler)
    df = api.fetch_csv(
        "2020-01-01", dt.date(2024, 1, 1),
        bbox=(35.8, 25.6, 42.2, 44.8),
        min_magnitude=4,
    )

    assert len(df) == len(ROWS)
    assert {"time", "latitude", "longitude", "mag", "id"} <= set(df.columns)
    assert seen["path"] == "/fdsnws/event/1/query"
    p = seen["params"]
    assert p["format"] == "csv"
    assert p["starttime"] == "2020-01-01"
    assert p["endtime"] == "2024-01-01T00:00:00"
    assert p["minlatitude"] == "35.8"
    assert p["maxlongitude"] == "44.8"
    assert p["minmagnitude"] == "4.0"
    assert p["orderby"] == "time-asc"


def test_fetch_csv_empty_window(make_api):
    api = make_api(lambda request: httpx.Response(204))
    assert api.fetch_csv("2020-01-01", "2020-01-02").empty


def test_fetch_csv_http_error(make_api):
    api = make_api(lambda request: httpx.Response(400, text="Bad Request: bad starttime"))
    with pytest.raises(CatalogError, match="HTTP 400"):
        api.fetch_csv("nope", "2020-01-02")


def test_fetch_csv_transport_error(make_api):
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    api = make_api(handler)
    with pytest.raises(CatalogError) as info:
        api.fetch_csv("2020-01-01", "2020-01-02")
    assert isinstance(info.value.__cause__, httpx.ConnectError)


def test_count(make_api):
    api = make_api(lambda request: httpx.Response(200, text="1234\n"))
    assert api.count("2020-01-01", "2021-01-01") == 1234


def test_count_garbage(make_api):
    api = make_api(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(CatalogError):
        api.count("2020-01-01", "2021-01-01")


def test_invalid_bbox(make_api):
    api = make_api(lambda request: httpx.Response(200, text=""))
    with pytest.raises(ValueError):
        api.fetch_csv("2020-01-01", "2020-01-02", bbox=(42.0, 25.0, 36.0, 44.0))
    with pytest.raises(ValueError):
        api.fetch_csv("2020-01-01", "2020-01-02", bbox=(36.0, 25.0, 42.0, 200.0))


def test_fetch_windows_keeps_every_row_once(make_api):
    # one row per default window, keyed by starttime, with a distinct id each
    by_start = {
        start: ROWS[i % len(ROWS)].replace(",us,us", f",us,w{i}us")
        for i, (start, _) in enumerate(DEFAULT_WINDOWS)
    }
    calls = []

    def handler(request):
        start = request.url.params["starttime"]
        calls.append(start)
        return httpx.Response(200, text=csv_text([by_start[start]]))

    api = make_api(handler)
    df = api.fetch_windows()

    assert calls == [s for s, _ in DEFAULT_WINDOWS]
    assert len(df) == len(DEFAULT_WINDOWS)
    assert df["id"].is_unique
    assert list(df.index) == list(range(len(DEFAULT_WINDOWS)))


def test_fetch_windows_drops_boundary_repeat(make_api):
    def handler(request):
        # ROWS[1] sits on the shared boundary and is served by both windows
        if request.url.params["starttime"] == "2020-01-01":
            return httpx.Response(200, text=csv_text([ROWS[0], ROWS[1]]))
        return httpx.Response(200, text=csv_text([ROWS[1], ROWS[2]]))

    api = make_api(handler)
    df = api.fetch_windows([("2020-01-01", "2020-10-30T11:51:27"), ("2020-10-30T11:51:27", "2022-01-01")])
    assert len(df) == 3
    assert df["id"].tolist() == ["us60007ewc", "us7000c7y0", "us7000e1aa"]


def test_fetch_windows_all_empty(make_api):
    api = make_api(lambda request: httpx.Response(204))
    assert api.fetch_windows([("2020-01-01", "2020-02-01")]).empty


@pytest.mark.parametrize("windows", [
    [],
    [("2020-02-01", "2020-01-01")],
    [("2020-01-01", "2020-03-01"), ("2020-02-01", "2020-04-01")],
])
def test_fetch_windows_rejects_bad_windows(make_api, windows):
    api = make_api(lambda request: httpx.Response(200, text=""))
    with pytest.raises(ValueError):
        api.fetch_windows(windows)


def test_split_windows_contiguous():
    w = split_windows("2000-01-01", "2024-01-01", 8)
    assert len(w) == 8
    assert w[0][0] == "2000-01-01T00:00:00"
    assert w[-1][1] == "2024-01-01T00:00:00"
    for (_, end), (start, _) in zip(w, w[1:]):
        assert end == start
    CatalogAPI._validate_windows(w)


def test_split_windows_invalid():
    with pytest.raises(ValueError):
        split_windows("2000-01-01", "2024-01-01", 0)
    with pytest.raises(ValueError):
        split_windows("2024-01-01", "2000-01-01", 2)


def test_to_iso8601_converts_aware_datetimes_to_utc():
    t = dt.datetime(2023, 2, 6, 4, 17, 34, tzinfo=dt.timezone(dt.timedelta(hours=3)))
    assert CatalogAPI._to_iso8601(t) == "2023-02-06T01:17:34"
    with pytest.raises(TypeError):
        CatalogAPI._to_iso8601(12345)


def test_context_manager_leaves_injected_client_open():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
    with CatalogAPI(client=client) as api:
        api.fetch_csv("2020-01-01", "2020-01-02")
    assert not client.is_closed
    client.close()
