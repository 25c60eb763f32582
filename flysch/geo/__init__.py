"""
Geospatial normalization layer.

Responsibilities:
- Resolve store location payloads (object, GeoJSON, WKT, EWKB hex, array)
  into a single canonical GeoPoint.
- Compute great-circle distances between normalized points.
"""
