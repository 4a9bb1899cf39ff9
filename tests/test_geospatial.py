import pytest

from delivery_routing.config import Settings
from delivery_routing.exceptions import InvalidInput
from delivery_routing.models.domain import Coordinate
from delivery_routing.services.geospatial import (
    BoundingBox,
    estimate_duration_s,
    haversine_m,
    interpolate,
    road_distance_estimate_m,
)


def test_haversine_one_degree_of_latitude():
    distance = haversine_m(Coordinate(lat=0.0, lng=0.0), Coordinate(lat=1.0, lng=0.0))

    assert distance == pytest.approx(111_195, rel=1e-3)


def test_road_estimate_and_duration():
    a, b = Coordinate(lat=35.80, lng=10.62), Coordinate(lat=35.85, lng=10.60)

    assert road_distance_estimate_m(a, b, 1.3) == pytest.approx(haversine_m(a, b) * 1.3)
    assert estimate_duration_s(30_000.0, 30.0) == pytest.approx(3600.0)


def test_interpolate_excludes_endpoints():
    points = interpolate(Coordinate(lat=0.0, lng=0.0), Coordinate(lat=6.0, lng=6.0), 5)

    assert [point.lat for point in points] == pytest.approx([1.0, 2.0, 3.0, 4.0, 5.0])


def test_bounding_box_includes_edges():
    bounds = BoundingBox(south=35.7, west=10.5, north=35.95, east=10.7)

    assert bounds.contains(Coordinate(lat=35.7, lng=10.6))
    assert bounds.contains(Coordinate(lat=35.8, lng=10.6))
    assert not bounds.contains(Coordinate(lat=36.8, lng=10.18))
    assert bounds.as_viewbox() == "10.5,35.7,10.7,35.95"


@pytest.mark.parametrize("lat, lng", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5)])
def test_coordinate_range_is_validated(lat, lng):
    with pytest.raises(InvalidInput):
        Coordinate(lat=lat, lng=lng)


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("DR_ROAD_FACTOR", "1.5")
    monkeypatch.setenv("DR_OSRM_BASE_URL", "http://localhost:5000/")
    monkeypatch.setenv("DR_PHOTON_BASE_URL", "")
    monkeypatch.setenv("DR_LANDMARK_KEYWORDS", '["medina:medina", "souk"]')

    configured = Settings(_env_file=None)

    assert configured.road_factor == 1.5
    assert configured.osrm_base_url == "http://localhost:5000"
    assert configured.photon_base_url is None
    assert configured.landmark_keywords == ("medina:medina", "souk")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("medina:medina,souk", ("medina:medina", "souk")),
        (" souk ", ("souk",)),
        ("", ()),
    ],
)
def test_settings_accept_comma_separated_landmarks(monkeypatch, raw, expected):
    monkeypatch.setenv("DR_LANDMARK_KEYWORDS", raw)

    assert Settings(_env_file=None).landmark_keywords == expected
