import math

import pytest

from quake_energy.dataset import EarthquakeDataset
from quake_energy.energy import magnitude_to_energy
from quake_energy.report import energy_report, format_report, report_frame


def test_energy_report(dataset):
    report = energy_report(dataset)
    total = sum(magnitude_to_energy(m) for m in [6.7, 7.0, 4.2, 7.8, 7.5, 6.3])

    assert report.event_count == 6
    assert report.total_energy_J == pytest.approx(total)
    assert report.top_magnitudes == [7.8, 7.5]
    assert report.largest_share == pytest.approx(magnitude_to_energy(7.8) / total)
    assert report.top_ratio == pytest.approx(10 ** 0.45)
    assert report.peak_year == 2023
    assert 0.5 < report.peak_year_share < 1.0


def test_single_event_has_no_ratio():
    ds = EarthquakeDataset.from_records([{"time": "2020-01-01T00:00:00Z", "mag": 6.0}])
    report = energy_report(ds)
    assert report.largest_share == pytest.approx(1.0)
    assert math.isnan(report.top_ratio)
    assert "Largest / second largest energy: n/a" in format_report(report)


def test_format_report_lines(dataset):
    text = format_report(energy_report(dataset))
    assert "Events: 6" in text
    assert "#1: M7.80" in text
    assert "Largest event / total energy:" in text
    assert "Largest / second largest energy: 2.818" in text
    assert "Peak year 2023" in text


def test_report_frame(dataset):
    frame = report_frame(energy_report(dataset))
    assert frame.shape[0] == 1
    assert frame.loc[0, "peak_year"] == 2023


def test_report_without_magnitudes():
    ds = EarthquakeDataset.from_records([{"time": "2020-01-01T00:00:00Z", "mag": None}])
    report = energy_report(ds)
    assert report.event_count == 1
    assert report.total_energy_J == 0.0
    assert report.top_magnitudes == []
    assert math.isnan(report.largest_share)
    assert math.isnan(report.top_ratio)
    assert report.peak_year is None
    assert "Largest event / total energy: n/a" in format_report(report)
