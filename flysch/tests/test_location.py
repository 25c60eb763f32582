from types import SimpleNamespace

import pytest

from flysch.geo.location import (
    SERIALIZERS,
    GeoPoint,
    LocationEncoding,
    classify_encoding,
    normalize,
    to_ewkb_hex,
    to_wkt,
)

# San Francisco as a PostGIS geography column returns it.
SF_EWKB = "0101000020E610000050FC1873D79A5EC0D0D556EC2FE34240"
DAYTONA_EWKB = "0101000020E6100000EC2FBB270F4354C0386744696F303D40"


def test_ewkb_decodes_little_endian_point():
    point = normalize(SF_EWKB)
    assert point is not None
    assert point.lat == pytest.approx(37.7749)
    assert point.lng == pytest.approx(-122.4194)


def test_ewkb_lowercase_and_padded():
    point = normalize("  " + DAYTONA_EWKB.lower() + "\n")
    assert point is not None
    assert point.lat == pytest.approx(29.1892)
    assert point.lng == pytest.approx(-81.0478)


def test_short_ewkb_does_not_fall_through_to_wkt():
    # Matches the EWKB shape but is too short to carry both coordinates.
    raw = "01" + "0" * 40
    assert classify_encoding(raw) is LocationEncoding.EWKB
    assert normalize(raw) is None


def test_ewkb_out_of_range_coordinates_rejected():
    # lat decodes to 1.0e300
    raw = "0101000020E610000050FC1873D79A5EC0" + "9C7500883CE4377E"
    assert normalize(raw) is None


def test_geojson_is_lng_lat():
    point = normalize({"type": "Point", "coordinates": [-122.4194, 37.7749]})
    assert point == GeoPoint(lat=37.7749, lng=-122.4194)


def test_geojson_non_numeric_coordinates():
    assert normalize({"type": "Point", "coordinates": ["west", "north"]}) is None


def test_geojson_other_geometry_is_unknown():
    raw = {"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [1, 0], [0, 0]]]}
    assert classify_encoding(raw) is None
    assert normalize(raw) is None


def test_object_form():
    assert normalize({"lat": 37.7749, "lng": -122.4194}) == GeoPoint(lat=37.7749, lng=-122.4194)


def test_object_form_from_attributes():
    point = normalize(SimpleNamespace(lat="40.7128", lng="-74.006"))
    assert point == GeoPoint(lat=40.7128, lng=-74.006)


def test_object_out_of_range():
    assert normalize({"lat": 95, "lng": 0}) is None
    assert normalize({"lat": 0, "lng": -181}) is None


def test_object_takes_priority_over_geojson():
    raw = {"lat": 1.0, "lng": 2.0, "type": "Point", "coordinates": [50.0, 60.0]}
    assert classify_encoding(raw) is LocationEncoding.OBJECT
    assert normalize(raw) == GeoPoint(lat=1.0, lng=2.0)


def test_wkt_point():
    point = normalize("POINT(-122.4194 37.7749)")
    assert point == GeoPoint(lat=37.7749, lng=-122.4194)


def test_wkt_with_srid_prefix():
    point = normalize("SRID=4326;POINT(-81.0478 29.1892)")
    assert point == GeoPoint(lat=29.1892, lng=-81.0478)


def test_wkt_bare_number_pair():
    point = normalize("-122.4194 37.7749")
    assert point == GeoPoint(lat=37.7749, lng=-122.4194)


def test_wkt_without_numbers():
    assert classify_encoding("somewhere sunny") is LocationEncoding.WKT
    assert normalize("somewhere sunny") is None


def test_array_is_lng_lat():
    assert normalize([-122.4194, 37.7749]) == GeoPoint(lat=37.7749, lng=-122.4194)
    assert normalize((-122.4194, 37.7749)) == GeoPoint(lat=37.7749, lng=-122.4194)


def test_array_too_short():
    assert classify_encoding([1.0]) is None
    assert normalize([1.0]) is None


@pytest.mark.parametrize("raw", [None, "", "   ", True, 42, 3.14, b"\x01\x01", {}, {"lat": 1.0}])
def test_unsupported_inputs_return_none(raw):
    assert normalize(raw) is None


def test_non_finite_rejected():
    assert normalize({"lat": float("nan"), "lng": 0}) is None
    assert normalize([float("inf"), 0]) is None


def test_geopoint_passes_through():
    point = GeoPoint(lat=1.5, lng=2.5)
    assert normalize(point) is point


def test_to_ewkb_hex_matches_database_output():
    point = normalize({"lat": 37.7749, "lng": -122.4194})
    assert to_ewkb_hex(point) == SF_EWKB


def test_to_wkt():
    point = GeoPoint(lat=37.7749, lng=-122.4194)
    assert to_wkt(point) == "SRID=4326;POINT(-122.4194 37.7749)"
    assert to_wkt(point, srid=None) == "POINT(-122.4194 37.7749)"


@pytest.mark.parametrize("encoding", list(LocationEncoding))
def test_every_encoding_reads_back_its_own_output(encoding):
    point = GeoPoint(lat=-33.8688, lng=151.2093)
    raw = SERIALIZERS[encoding](point)
    assert classify_encoding(raw) is encoding
    assert normalize(raw) == point
