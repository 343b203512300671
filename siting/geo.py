"""
Geographic helpers: bounding boxes, great-circle projection and boundary
containment.

All coordinates are (longitude, latitude) pairs in WGS84 decimal degrees.
"""

import math
import logging
import random
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

from shapely.geometry import Point, shape
from shapely.prepared import prep

from siting.models import Coordinates

log = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0


# ═══════════════════════════════════════════════════════════════════════════
# BOUNDING BOX
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class BoundingBox:
    """Geographic bounding box in decimal degrees."""
    min_longitude: float  # Western edge
    max_longitude: float  # Eastern edge
    min_latitude: float   # Southern edge
    max_latitude: float   # Northern edge

    def contains(self, lng: float, lat: float) -> bool:
        """Check if a point is inside this bounding box."""
        return (self.min_latitude <= lat <= self.max_latitude and
                self.min_longitude <= lng <= self.max_longitude)

    def random_point(self, rng: random.Random) -> Coordinates:
        """Uniform random coordinate inside the box."""
        lng = self.min_longitude + rng.random() * (self.max_longitude - self.min_longitude)
        lat = self.min_latitude + rng.random() * (self.max_latitude - self.min_latitude)
        return (lng, lat)

    def to_dict(self) -> Dict:
        return asdict(self)


# Approximate extent of the United Kingdom
UK_BOUNDS = BoundingBox(
    min_longitude=-8.5,
    max_longitude=2.0,
    min_latitude=49.5,
    max_latitude=61.0,
)


# ═══════════════════════════════════════════════════════════════════════════
# GREAT-CIRCLE MATH
# ═══════════════════════════════════════════════════════════════════════════
def destination_point(origin: Coordinates, distance_m: float, bearing_deg: float) -> Coordinates:
    """
    Project a point `distance_m` meters from `origin` along `bearing_deg`
    (clockwise from north) on a spherical earth.
    """
    lng1 = math.radians(origin[0])
    lat1 = math.radians(origin[1])
    brng = math.radians(bearing_deg)
    angular = distance_m / EARTH_RADIUS_M

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular) +
        math.cos(lat1) * math.sin(angular) * math.cos(brng)
    )
    lng2 = lng1 + math.atan2(
        math.sin(brng) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2)
    )
    return (math.degrees(lng2), math.degrees(lat2))


def haversine_m(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two coordinates in meters."""
    lat1, lat2 = math.radians(a[1]), math.radians(b[1])
    d_lat = lat2 - lat1
    d_lng = math.radians(b[0] - a[0])

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


# ═══════════════════════════════════════════════════════════════════════════
# BOUNDARY CONTAINMENT
# ═══════════════════════════════════════════════════════════════════════════
class BoundaryIndex:
    """
    Point-in-polygon lookups against a GeoJSON FeatureCollection of
    administrative boundaries.

    Features without a usable polygon geometry are skipped.
    """

    def __init__(self, boundaries: Optional[Dict]):
        self._geometries = []
        features = (boundaries or {}).get("features", []) if isinstance(boundaries, dict) else []

        for feature in features:
            geometry = feature.get("geometry") if isinstance(feature, dict) else None
            if not geometry or geometry.get("type") not in ("Polygon", "MultiPolygon"):
                continue
            try:
                self._geometries.append(prep(shape(geometry)))
            except Exception as e:
                log.warning(f"Skipping unreadable boundary geometry: {e}")

        log.debug(f"BoundaryIndex built with {len(self._geometries)} polygons")

    def __len__(self) -> int:
        return len(self._geometries)

    def contains(self, coordinates: Coordinates) -> bool:
        """True if the point lies inside (or on the edge of) any boundary polygon."""
        point = Point(coordinates[0], coordinates[1])
        return any(geom.covers(point) for geom in self._geometries)


def boundary_from_bbox(bbox: BoundingBox, name: str = "extent") -> Dict:
    """A single-feature FeatureCollection covering a bounding box."""
    ring: List[List[float]] = [
        [bbox.min_longitude, bbox.min_latitude],
        [bbox.max_longitude, bbox.min_latitude],
        [bbox.max_longitude, bbox.max_latitude],
        [bbox.min_longitude, bbox.max_latitude],
        [bbox.min_longitude, bbox.min_latitude],
    ]
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": name},
                "geometry": {"type": "Polygon", "coordinates": [ring]},
            }
        ],
    }
