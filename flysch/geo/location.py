from __future__ import annotations

import logging
import math
import re
import struct
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

EWKB_PATTERN = re.compile(r"^01[0-9A-Fa-f]{40,}$")
EWKB_MIN_LENGTH = 50  # 1 endian + 4 type + 4 SRID + 8 X + 8 Y bytes, as hex

_SRID_PREFIX = re.compile(r"^SRID=\d+;", re.IGNORECASE)
_WKT_POINT = re.compile(r"POINT\s*\(\s*([-+\d.eE]+)\s+([-+\d.eE]+)\s*\)", re.IGNORECASE)
_TWO_NUMBERS = re.compile(r"([-+]?[\d.]+(?:[eE][-+]?\d+)?)[,\s]+([-+]?[\d.]+(?:[eE][-+]?\d+)?)")

DEFAULT_SRID = 4326
# Little-endian Point with the EWKB SRID flag set (0x20000001).
_EWKB_POINT_TYPE = "01000020"


class GeoPoint(BaseModel):
    """Canonical coordinate pair."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class LocationEncoding(str, Enum):
    OBJECT = "object"
    GEOJSON = "geojson"
    EWKB = "ewkb"
    WKT = "wkt"
    ARRAY = "array"


def _sample(raw: Any, limit: int = 50) -> str:
    return repr(raw)[:limit]


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _point(lat: Any, lng: Any) -> GeoPoint | None:
    lat_f = _to_float(lat)
    lng_f = _to_float(lng)
    if lat_f is None or lng_f is None:
        return None
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0):
        return None
    return GeoPoint(lat=lat_f, lng=lng_f)


def _has_lat_lng(raw: Any) -> bool:
    if isinstance(raw, Mapping):
        return "lat" in raw and "lng" in raw
    return hasattr(raw, "lat") and hasattr(raw, "lng")


def classify_encoding(raw: Any) -> LocationEncoding | None:
    """Return which wire encoding ``raw`` is shaped like, probing in priority order."""
    if raw is None or isinstance(raw, (bool, int, float, bytes)):
        return None
    if _has_lat_lng(raw):
        return LocationEncoding.OBJECT
    if isinstance(raw, Mapping):
        coords = raw.get("coordinates")
        if raw.get("type") == "Point" and isinstance(coords, (list, tuple)) and len(coords) >= 2:
            return LocationEncoding.GEOJSON
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if EWKB_PATTERN.match(text):
            return LocationEncoding.EWKB
        return LocationEncoding.WKT
    if isinstance(raw, (list, tuple)) and len(raw) >= 2:
        return LocationEncoding.ARRAY
    return None


def _parse_object(raw: Any) -> GeoPoint | None:
    if isinstance(raw, Mapping):
        return _point(raw["lat"], raw["lng"])
    return _point(raw.lat, raw.lng)


def _parse_geojson(raw: Mapping) -> GeoPoint | None:
    # GeoJSON is [lng, lat], the reverse of the object form.
    lng, lat = raw["coordinates"][0], raw["coordinates"][1]
    return _point(lat, lng)


def _hex_to_double(hex_str: str) -> float:
    return struct.unpack("<d", bytes.fromhex(hex_str))[0]


def _parse_ewkb(raw: str) -> GeoPoint | None:
    text = raw.strip()
    if len(text) < EWKB_MIN_LENGTH:
        logger.debug("EWKB string too short (%d chars): %s", len(text), _sample(text))
        return None
    x_hex = text[18:34]
    y_hex = text[34:50]
    try:
        lng = _hex_to_double(x_hex)
        lat = _hex_to_double(y_hex)
    except (ValueError, struct.error):
        logger.debug("Error parsing EWKB: %s", _sample(text), exc_info=True)
        return None
    return _point(lat, lng)


def _parse_wkt(raw: str) -> GeoPoint | None:
    text = _SRID_PREFIX.sub("", raw.strip())
    match = _WKT_POINT.search(text)
    if match is None:
        match = _TWO_NUMBERS.search(text)
    if match is None:
        return None
    lng, lat = match.group(1), match.group(2)
    return _point(lat, lng)


def _parse_array(raw: list | tuple) -> GeoPoint | None:
    return _point(raw[1], raw[0])


_PARSERS = {
    LocationEncoding.OBJECT: _parse_object,
    LocationEncoding.GEOJSON: _parse_geojson,
    LocationEncoding.EWKB: _parse_ewkb,
    LocationEncoding.WKT: _parse_wkt,
    LocationEncoding.ARRAY: _parse_array,
}


def normalize(raw: Any) -> GeoPoint | None:
    """
    Resolve any supported location encoding into a ``GeoPoint``.

    The first encoding whose shape matches decides the outcome; a value that
    fails validation inside that branch yields ``None`` rather than falling
    through to another format. Never raises.
    """
    if isinstance(raw, GeoPoint):
        return raw

    encoding = classify_encoding(raw)
    if encoding is None:
        if raw not in (None, ""):
            logger.debug("Unknown location format: %s %s", type(raw).__name__, _sample(raw))
        return None

    try:
        point = _PARSERS[encoding](raw)
    except (KeyError, IndexError, TypeError, AttributeError):
        logger.debug("Failed to parse %s location: %s", encoding.value, _sample(raw), exc_info=True)
        return None

    if point is None:
        logger.debug("Invalid coordinates in %s location: %s", encoding.value, _sample(raw))
    return point


# ── Serializers ──────────────────────────────────────────────────────────


def to_object(point: GeoPoint) -> dict[str, float]:
    return {"lat": point.lat, "lng": point.lng}


def to_geojson(point: GeoPoint) -> dict[str, Any]:
    return {"type": "Point", "coordinates": [point.lng, point.lat]}


def to_wkt(point: GeoPoint, srid: int | None = DEFAULT_SRID) -> str:
    body = f"POINT({point.lng!r} {point.lat!r})"
    return f"SRID={srid};{body}" if srid is not None else body


def to_ewkb_hex(point: GeoPoint, srid: int = DEFAULT_SRID) -> str:
    """Encode as little-endian EWKB hex, the way a geography column returns it."""
    payload = struct.pack("<I", srid) + struct.pack("<dd", point.lng, point.lat)
    return ("01" + _EWKB_POINT_TYPE + payload.hex()).upper()


def to_array(point: GeoPoint) -> list[float]:
    return [point.lng, point.lat]


SERIALIZERS = {
    LocationEncoding.OBJECT: to_object,
    LocationEncoding.GEOJSON: to_geojson,
    LocationEncoding.EWKB: to_ewkb_hex,
    LocationEncoding.WKT: to_wkt,
    LocationEncoding.ARRAY: to_array,
}
