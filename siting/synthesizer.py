"""
Site Property Synthesizer

Produces plausible UK land attributes for a coordinate. Values are random,
but banded by latitude (a coarse Scotland / Northern England / Southern
England proxy) so the population of candidates has realistic geography.

Distances are independent draws per category. They are NOT derived from the
coordinate, so a site's distances say nothing about its true surroundings.
"""

import logging
import random
from typing import Optional, Sequence, TypeVar

from siting.models import Coordinates, SiteProperties

log = logging.getLogger(__name__)

T = TypeVar("T")

# UK soil distribution
SOIL_TYPES = ["Clay", "Silt", "Sandy", "Loamy", "Peaty", "Chalky"]
SOIL_WEIGHTS = [0.3, 0.2, 0.2, 0.15, 0.1, 0.05]

# UK land use distribution
LAND_USES = ["Agricultural", "Pasture", "Forest", "Wetland", "Brownfield", "Greenfield"]
LAND_USE_WEIGHTS = [0.4, 0.25, 0.2, 0.1, 0.03, 0.02]

# (min, span) for each independent distance draw, meters
DISTANCE_RANGES = {
    "road_distance": (500, 3000),
    "grid_distance": (3000, 12000),
    "gas_distance": (2000, 8000),
    "residential_distance": (800, 2000),
    "protected_area_distance": (1500, 5000),
    "conservation_area_distance": (2500, 5000),
}


def weighted_choice(items: Sequence[T], weights: Sequence[float], rng: random.Random) -> T:
    """
    Pick one item with probability proportional to its weight.

    A single uniform draw is walked down the cumulative weights; the last
    item absorbs any floating point remainder.
    """
    remaining = rng.random() * sum(weights)
    for item, weight in zip(items, weights):
        remaining -= weight
        if remaining <= 0:
            return item
    return items[-1]


class SitePropertySynthesizer:
    """
    Generates SiteProperties for candidate coordinates.

    Usage:
        synth = SitePropertySynthesizer(rng=random.Random(42))
        props = synth.synthesize((-1.95, 53.05))
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def synthesize(
        self,
        coordinates: Coordinates,
        min_area: float = 2.0,
        max_area: float = 50.0
    ) -> SiteProperties:
        """
        Build the full attribute record for one coordinate.

        Args:
            coordinates: (longitude, latitude)
            min_area: Lower bound of the small-site tier (hectares)
            max_area: Generated areas never exceed this value (hectares)
        """
        elevation = self.elevation(coordinates)
        land_cost = self.land_cost(coordinates)

        props = SiteProperties(
            area=self.area(min_area, max_area),
            soil_type=self.soil_type(),
            land_use=self.land_use(),
            elevation=elevation,
            slope=self.slope(elevation),
            flood_risk=self.flood_risk(coordinates),
            biodiversity=self.biodiversity(coordinates),
            water_availability=self.water_availability(coordinates),
            land_cost=land_cost,
            development_cost=self.development_cost(land_cost),
        )
        for name, (low, span) in DISTANCE_RANGES.items():
            setattr(props, name, low + self.rng.random() * span)
        return props

    # ─── Size ──────────────────────────────────────────────────────────────
    def area(self, min_area: float = 2.0, max_area: float = 50.0) -> float:
        """
        Right-skewed: 60% small (min..min+8 ha), 30% medium (10-30), 10% large (30-50).

        A draw above max_area is replaced by a uniform draw in
        [min_area, max_area].
        """
        tier = self.rng.random()
        if tier < 0.6:
            value = min_area + self.rng.random() * 8
        elif tier < 0.9:
            value = 10 + self.rng.random() * 20
        else:
            value = 30 + self.rng.random() * 20

        if value > max_area:
            value = min_area + self.rng.random() * max(0.0, max_area - min_area)
        return value

    # ─── Categorical ───────────────────────────────────────────────────────
    def soil_type(self) -> str:
        return weighted_choice(SOIL_TYPES, SOIL_WEIGHTS, self.rng)

    def land_use(self) -> str:
        return weighted_choice(LAND_USES, LAND_USE_WEIGHTS, self.rng)

    # ─── Terrain ───────────────────────────────────────────────────────────
    def elevation(self, coordinates: Coordinates) -> float:
        lat = coordinates[1]
        if lat > 56:
            return 100 + self.rng.random() * 1200   # Scotland
        elif lat > 52:
            return 50 + self.rng.random() * 800     # Northern England
        return 10 + self.rng.random() * 400         # Southern England

    def slope(self, elevation: float) -> float:
        """Higher ground gets a wider (steeper) slope range, in degrees."""
        if elevation > 500:
            return 5 + self.rng.random() * 25
        elif elevation > 200:
            return 2 + self.rng.random() * 15
        return 1 + self.rng.random() * 8

    # ─── Environmental indices (0-10) ──────────────────────────────────────
    def flood_risk(self, coordinates: Coordinates) -> float:
        lng, lat = coordinates
        if abs(lng) < 1.5 and lat < 52:
            return 3 + self.rng.random() * 7    # South East
        elif abs(lng) < 2.5 and lat < 54:
            return 2 + self.rng.random() * 6    # Central England
        return 1 + self.rng.random() * 4

    def biodiversity(self, coordinates: Coordinates) -> float:
        lat = coordinates[1]
        if lat > 55:
            return 6 + self.rng.random() * 4
        elif lat > 52:
            return 4 + self.rng.random() * 4
        return 2 + self.rng.random() * 4

    def water_availability(self, coordinates: Coordinates) -> float:
        lat = coordinates[1]
        if lat > 55:
            return 7 + self.rng.random() * 3
        elif lat > 52:
            return 5 + self.rng.random() * 3
        return 3 + self.rng.random() * 4

    # ─── Costs ─────────────────────────────────────────────────────────────
    def land_cost(self, coordinates: Coordinates) -> float:
        """GBP per hectare. Scotland cheapest, Southern England dearest."""
        lat = coordinates[1]
        if lat > 55:
            return 5000 + self.rng.random() * 15000
        elif lat > 52:
            return 8000 + self.rng.random() * 22000
        return 15000 + self.rng.random() * 35000

    def development_cost(self, land_cost: float) -> float:
        """Typically 3-5x the land cost."""
        return land_cost * (3 + self.rng.random() * 2)
