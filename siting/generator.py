"""
Candidate Generator

Builds the population of candidate sites for one analysis. Most candidates
are placed 5-20 km from an existing AD plant; the rest are drawn uniformly
from the UK bounding box. Attribute synthesis is delegated to the
SitePropertySynthesizer.
"""

import time
import logging
import random
from typing import Dict, List, Optional, Sequence

from siting.geo import UK_BOUNDS, BoundaryIndex, destination_point
from siting.models import Coordinates, PlantLocation, Site
from siting.settings import EngineSettings
from siting.synthesizer import SitePropertySynthesizer

log = logging.getLogger(__name__)


class CandidateGenerator:
    """
    Generates candidate sites around reference plants and across the UK.

    Output length is at most `target_count`: candidates whose synthesis
    fails (or that fall outside the boundaries when enforcement is on)
    are dropped, not replaced.
    """

    def __init__(
        self,
        synthesizer: Optional[SitePropertySynthesizer] = None,
        settings: Optional[EngineSettings] = None,
        rng: Optional[random.Random] = None
    ):
        self.rng = rng or random.Random()
        self.synthesizer = synthesizer or SitePropertySynthesizer(self.rng)
        self.settings = settings or EngineSettings()

    def generate(
        self,
        reference_points: Sequence[PlantLocation],
        boundaries: Optional[Dict] = None,
        min_area: Optional[float] = None,
        max_area: Optional[float] = None,
        target_count: Optional[int] = None
    ) -> List[Site]:
        """
        Generate up to `target_count` candidate sites.

        Args:
            reference_points: Existing AD plants to cluster candidates around
            boundaries: Boundary FeatureCollection; only consulted when
                settings.enforce_boundaries is True
            min_area / max_area: Area bounds handed to the synthesizer (hectares)
            target_count: Number of candidates to attempt
        """
        min_area = self.settings.default_min_area if min_area is None else min_area
        max_area = self.settings.default_max_area if max_area is None else max_area
        target_count = self.settings.default_target_count if target_count is None else target_count

        boundary_index = None
        if self.settings.enforce_boundaries:
            boundary_index = BoundaryIndex(boundaries)
            if not len(boundary_index):
                log.warning("Boundary enforcement requested but no polygons available; not enforcing")
                boundary_index = None

        batch = int(time.time() * 1000)
        sites = []
        outside = 0

        for i in range(target_count):
            site = self.generate_site(reference_points, min_area, max_area, f"site_{batch}_{i}")
            if site is None:
                continue
            if boundary_index is not None and not boundary_index.contains(site.coordinates):
                outside += 1
                continue
            sites.append(site)

        if outside:
            log.info(f"Dropped {outside} candidates outside the analysis boundaries")
        log.info(f"Generated {len(sites)}/{target_count} candidate sites")
        return sites

    def generate_site(
        self,
        reference_points: Sequence[PlantLocation],
        min_area: float,
        max_area: float,
        site_id: str
    ) -> Optional[Site]:
        """Create one candidate. Returns None if anything goes wrong."""
        try:
            coordinates = self.pick_coordinates(reference_points)
            properties = self.synthesizer.synthesize(coordinates, min_area, max_area)
            return Site(id=site_id, coordinates=coordinates, properties=properties)
        except Exception as e:
            log.warning(f"Error generating site {site_id}: {e}")
            return None

    def pick_coordinates(self, reference_points: Sequence[PlantLocation]) -> Coordinates:
        """Near a random reference plant with probability p, otherwise anywhere in the UK."""
        if reference_points and self.rng.random() < self.settings.near_reference_probability:
            reference = reference_points[self.rng.randrange(len(reference_points))]
            return self.nearby_coordinates(reference.coordinates)
        return UK_BOUNDS.random_point(self.rng)

    def nearby_coordinates(self, origin: Coordinates) -> Coordinates:
        low = self.settings.near_reference_min_distance_m
        high = self.settings.near_reference_max_distance_m
        distance = low + self.rng.random() * (high - low)
        bearing = self.rng.random() * 360
        return destination_point(origin, distance, bearing)
