import pytest

from visodom.geodesy import UTMCoordinate, ll_to_utm, utm_letter_designator, utm_to_ll


@pytest.mark.parametrize(
    "latitude,letter",
    [
        (84.0, "X"),
        (72.0, "X"),
        (71.9, "W"),
        (0.0, "N"),
        (-0.1, "M"),
        (-80.0, "C"),
        (-80.1, "Z"),
        (84.1, "Z"),
    ],
)
def test_letter_designator(latitude, letter):
    assert utm_letter_designator(latitude) == letter


def test_equator_on_central_meridian():
    coord = ll_to_utm(0.0, 3.0)
    assert coord.zone == "31N"
    assert coord.easting == pytest.approx(500000.0)
    assert coord.northing == pytest.approx(0.0, abs=1e-6)


def test_norway_special_zone():
    assert ll_to_utm(60.0, 5.0).zone == "32V"


def test_svalbard_special_zone():
    assert ll_to_utm(75.0, 10.0).zone == "33X"


def test_southern_hemisphere_offset():
    coord = ll_to_utm(-10.0, 20.0)
    assert coord.zone.endswith("L")
    assert 0.0 < coord.northing < 10000000.0


@pytest.mark.parametrize(
    "latitude,longitude",
    [(47.3769, 8.5417), (-33.8688, 151.2093), (1.0, -75.5), (61.0, 7.0), (-70.0, -100.0)],
)
def test_round_trip(latitude, longitude):
    coord = ll_to_utm(latitude, longitude)
    assert isinstance(coord, UTMCoordinate)
    lat, lon = utm_to_ll(coord.northing, coord.easting, coord.zone)
    assert lat == pytest.approx(latitude, abs=1e-6)
    assert lon == pytest.approx(longitude, abs=1e-6)


def test_invalid_zone():
    with pytest.raises(ValueError):
        utm_to_ll(0.0, 500000.0, "north")