"""
Result exporters: CSV, GeoJSON and JSON.
"""

import csv
import json
import logging
from typing import Any, Dict, List

import pandas as pd

from siting.models import AnalysisResult, Site

log = logging.getLogger(__name__)

# Column heading -> accessor, in output order
CSV_COLUMNS = [
    ("Rank", lambda s: s.rank),
    ("Site ID", lambda s: s.id),
    ("Longitude", lambda s: s.longitude),
    ("Latitude", lambda s: s.latitude),
    ("Area (ha)", lambda s: s.properties.area),
    ("Total Score", lambda s: _fixed(s.score)),
    ("Environmental Score", lambda s: _fixed(s.scores.environmental if s.scores else None)),
    ("Infrastructure Score", lambda s: _fixed(s.scores.infrastructure if s.scores else None)),
    ("Economic Score", lambda s: _fixed(s.scores.economic if s.scores else None)),
    ("Social Score", lambda s: _fixed(s.scores.social if s.scores else None)),
    ("Soil Type", lambda s: s.properties.soil_type),
    ("Land Use", lambda s: s.properties.land_use),
    ("Elevation", lambda s: s.properties.elevation),
    ("Slope", lambda s: s.properties.slope),
    ("Flood Risk", lambda s: s.properties.flood_risk),
    ("Road Distance (m)", lambda s: s.properties.road_distance),
    ("Grid Distance (m)", lambda s: s.properties.grid_distance),
    ("Gas Distance (m)", lambda s: s.properties.gas_distance),
    ("Residential Distance (m)", lambda s: s.properties.residential_distance),
    ("Land Cost (£/ha)", lambda s: s.properties.land_cost),
    ("Development Cost (£)", lambda s: s.properties.development_cost),
]


def _fixed(value) -> str:
    return f"{value:.2f}" if value is not None else ""


def to_csv(sites: List[Site]) -> str:
    """
    One row per site, every field quoted, scores to two decimals.

    Returns an empty string when there are no sites.
    """
    if not sites:
        return ""

    rows = [{name: get(site) for name, get in CSV_COLUMNS} for site in sites]
    df = pd.DataFrame(rows, columns=[name for name, _ in CSV_COLUMNS])
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def to_geojson(sites: List[Site]) -> Dict[str, Any]:
    """FeatureCollection of Point features; properties carry id, score and all site properties."""
    features = []
    for site in sites:
        properties = {"id": site.id, "score": site.score}
        properties.update(site.properties.to_dict())
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [site.longitude, site.latitude]},
            "properties": properties,
        })
    return {"type": "FeatureCollection", "features": features}


def to_json(result: AnalysisResult) -> str:
    return json.dumps(result.to_dict(), indent=2)
