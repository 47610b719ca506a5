# backend/bucktrax/services/geo/distance.py
from __future__ import annotations

import json
from math import asin, cos, radians, sin, sqrt
from typing import NamedTuple, Union

from pyproj import CRS, Transformer
from shapely.geometry import shape
from shapely.ops import transform

EARTH_RADIUS_M = 6371000.0


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


def haversine_m(lon1, lat1, lon2, lat2) -> float:
    dlon, dlat = radians(lon2 - lon1), radians(lat2 - lat1)
    a = sin(dlat/2)**2 + cos(radians(lat1))*cos(radians(lat2))*sin(dlon/2)**2
    return 2 * EARTH_RADIUS_M * asin(sqrt(a))


def distance_m(a, b) -> float:
    """Great-circle distance between two objects carrying latitude/longitude."""
    return haversine_m(a.longitude, a.latitude, b.longitude, b.latitude)


def detour_m(start, waypoint, end) -> float:
    """Extra distance from visiting waypoint on the way from start to end."""
    return distance_m(start, waypoint) + distance_m(waypoint, end) - distance_m(start, end)


def _local_aeqd(lon: float, lat: float) -> tuple[Transformer, Transformer]:
    src_crs = CRS.from_epsg(4326)
    dst_crs = CRS.from_proj4(f"+proj=aeqd +lat_0={lat} +lon_0={lon} +datum=WGS84 +units=m +no_defs")
    fwd = Transformer.from_crs(src_crs, dst_crs, always_xy=True)
    inv = Transformer.from_crs(dst_crs, src_crs, always_xy=True)
    return fwd, inv


def feature_centroid(geometry: Union[str, dict]) -> GeoPoint:
    """Centroid of a GeoJSON geometry (EPSG:4326).

    Points are returned as-is. Lines and polygons are projected to an azimuthal
    equidistant CRS centred on their bounding box so the centroid is computed in
    metres rather than degrees.
    """
    if isinstance(geometry, str):
        geometry = json.loads(geometry)
    geom = shape(geometry)
    if geom.is_empty:
        raise ValueError("empty geometry has no centroid")
    if geom.geom_type == "Point":
        return GeoPoint(latitude=geom.y, longitude=geom.x)

    minx, miny, maxx, maxy = geom.bounds
    fwd, inv = _local_aeqd((minx + maxx) / 2, (miny + maxy) / 2)
    projected = transform(fwd.transform, geom)
    c = transform(inv.transform, projected.centroid)
    return GeoPoint(latitude=c.y, longitude=c.x)
