"""
Reference Data Loader - existing AD plant locations and boundary polygons.

Sources can be a local GeoJSON/JSON file or an http(s) URL. With no source
configured the loader serves built-in placeholder data: one operational
plant in the East Midlands and a boundary covering the UK extent.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from siting.errors import ReferenceDataError
from siting.geo import UK_BOUNDS, boundary_from_bbox
from siting.models import PlantLocation

log = logging.getLogger(__name__)

PLACEHOLDER_PLANTS = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {
                "name": "Sample AD Plant",
                "developer": "Sample Developer Ltd",
                "technology": "Anaerobic Digestion",
                "status": "Operational",
                "capacity": "50,000 tonnes/year",
                "feedstock": "Food waste, agricultural waste",
                "energy_output": "2.5 MW",
            },
            "geometry": {"type": "Point", "coordinates": [-1.95, 53.05]},
        }
    ],
}


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def parse_plants(data: Any) -> List[PlantLocation]:
    """
    Accepts a FeatureCollection of Point features or a list of
    {"coordinates": [lng, lat], ...} records. Unusable entries are skipped.
    """
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        records = []
        for feature in data.get("features", []):
            geometry = feature.get("geometry") or {}
            if geometry.get("type") != "Point":
                continue
            properties = dict(feature.get("properties") or {})
            records.append({"coordinates": geometry.get("coordinates"), **properties})
    elif isinstance(data, list):
        records = data
    else:
        raise ReferenceDataError("AD plant data must be a FeatureCollection or a list of records")

    plants = []
    for record in records:
        try:
            lng, lat = record["coordinates"][:2]
            properties = {k: v for k, v in record.items() if k != "coordinates"}
            plants.append(PlantLocation(
                coordinates=(float(lng), float(lat)),
                name=str(properties.get("name", "")),
                properties=properties,
            ))
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"Skipping AD plant record without usable coordinates: {e}")
    return plants


def parse_boundaries(data: Any) -> Dict:
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise ReferenceDataError("Boundary data must be a GeoJSON FeatureCollection")
    return data


class ReferenceDataLoader:
    """
    Loads and caches the reference datasets a site analysis needs.

    Usage:
        loader = ReferenceDataLoader(plants_source="data/ad_plants.geojson")
        plants = loader.get_ad_plant_locations()
        boundaries = loader.get_boundaries()
    """

    def __init__(
        self,
        plants_source: Optional[str] = None,
        boundaries_source: Optional[str] = None,
        timeout: float = 10.0
    ):
        self.plants_source = plants_source
        self.boundaries_source = boundaries_source
        self.timeout = timeout
        self.session = requests.Session()
        self._plants: Optional[List[PlantLocation]] = None
        self._boundaries: Optional[Dict] = None

    def get_ad_plant_locations(self) -> List[PlantLocation]:
        if self._plants is None:
            if self.plants_source:
                self._plants = parse_plants(self._read(self.plants_source))
            else:
                self._plants = parse_plants(PLACEHOLDER_PLANTS)
            log.info(f"Loaded {len(self._plants)} AD plant locations")
        return self._plants

    def get_boundaries(self) -> Dict:
        if self._boundaries is None:
            if self.boundaries_source:
                self._boundaries = parse_boundaries(self._read(self.boundaries_source))
            else:
                self._boundaries = boundary_from_bbox(UK_BOUNDS, name="United Kingdom")
            log.info(f"Loaded {len(self._boundaries.get('features', []))} boundary features")
        return self._boundaries

    def is_data_ready(self) -> bool:
        return self._plants is not None and self._boundaries is not None

    def clear_cache(self):
        self._plants = None
        self._boundaries = None

    def _read(self, source: str) -> Any:
        """
        Raises:
            ReferenceDataError: the source could not be read or is not JSON
        """
        try:
            if is_url(source):
                return self._fetch_json(source)
            with open(Path(source), "r") as f:
                return json.load(f)
        except (requests.RequestException, OSError, ValueError) as e:
            log.error(f"Failed to read reference data from {source}: {e}")
            raise ReferenceDataError(f"Could not read {source}: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _fetch_json(self, url: str) -> Any:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


# Singleton
_loader: Optional[ReferenceDataLoader] = None


def get_reference_loader() -> ReferenceDataLoader:
    """Get singleton reference data loader (placeholder data)."""
    global _loader
    if _loader is None:
        _loader = ReferenceDataLoader()
    return _loader
