"""
Constraint Filtering

Two layers sit in front of the scorer:

1. Hard constraints (`apply_constraints`): planning, environmental and
   infrastructure thresholds. A site failing any single check is removed.
2. User filters:
   - `ConstraintSet.apply_user_filters` tightens thresholds for the
     constraint pass. It only ever raises a min or lowers a max.
   - `apply_advanced_filters` is a one-off range filter over an existing
     candidate list that leaves the constraint set alone.
"""

import re
import logging
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from siting.models import Site
from siting.scoring import soil_quality_score

log = logging.getLogger(__name__)


def canonical_key(key: str) -> str:
    """'minDistanceFromAONB' -> 'min_distance_from_aonb'; snake_case passes through."""
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key).lower()


# ═══════════════════════════════════════════════════════════════════════════
# CONSTRAINT SET
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class ConstraintSet:
    """
    Named min/max thresholds (realistic UK values).

    Distances are meters, slope degrees, area hectares, indices 1-10.
    """

    # Environmental
    min_distance_from_residential: float = 500
    max_distance_from_residential: float = 10000
    min_distance_from_road: float = 100
    max_distance_from_road: float = 5000
    min_distance_from_water: float = 100
    max_distance_from_water: float = 10000
    min_distance_from_protected_area: float = 1000
    max_distance_from_protected_area: float = 5000
    max_slope: float = 15
    min_area: float = 2
    max_area: float = 100

    # Infrastructure
    min_distance_from_grid: float = 1000
    max_distance_from_grid: float = 20000
    min_distance_from_gas: float = 1000
    max_distance_from_gas: float = 15000

    # Planning
    min_distance_from_conservation_area: float = 1000
    max_distance_from_conservation_area: float = 10000
    min_distance_from_aonb: float = 2000
    max_distance_from_aonb: float = 10000
    min_distance_from_sssi: float = 1000
    max_distance_from_sssi: float = 10000
    min_distance_from_national_park: float = 3000
    max_distance_from_national_park: float = 15000

    # Site quality
    min_elevation: float = 0
    max_elevation: float = 500
    min_soil_quality: float = 1
    max_soil_quality: float = 10
    min_biodiversity: float = 1
    max_biodiversity: float = 10
    max_flood_risk: float = 5
    min_water_availability: float = 1
    max_water_availability: float = 10

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConstraintSet":
        names = {f.name for f in fields(cls)}
        values = {canonical_key(k): v for k, v in data.items()}
        return cls(**{k: v for k, v in values.items() if k in names})

    def apply_user_filters(self, user_filters: Optional[Dict[str, Any]]) -> Tuple["ConstraintSet", Dict[str, Any]]:
        """
        Merge user filters into a new, tightened constraint set.

        For keys that name an existing constraint:
        - min_* keys raise the bound to max(current, value)
        - max_* keys lower the bound to min(current, value)
        - anything else is overwritten
        Unknown keys are ignored.

        Returns:
            (tightened ConstraintSet, dict of the filters that were applied)
        """
        names = {f.name for f in fields(self)}
        updates: Dict[str, Any] = {}
        applied: Dict[str, Any] = {}

        for key, value in (user_filters or {}).items():
            name = canonical_key(key)
            if name not in names or value is None:
                continue

            current = updates.get(name, getattr(self, name))
            if name.startswith("min"):
                updates[name] = max(current, value)
            elif name.startswith("max"):
                updates[name] = min(current, value)
            else:
                updates[name] = value
            applied[name] = value

        if applied:
            log.info(f"Applied user filters: {applied}")
        return replace(self, **updates), applied


# ═══════════════════════════════════════════════════════════════════════════
# HARD CONSTRAINTS
# ═══════════════════════════════════════════════════════════════════════════
def violations(site: Site, constraints: ConstraintSet) -> List[str]:
    """Names of the constraints this site breaks (empty if it passes)."""
    p = site.properties
    c = constraints
    failed = []

    if p.area < c.min_area or p.area > c.max_area:
        failed.append("area")
    if p.slope > c.max_slope:
        failed.append("slope")
    if p.residential_distance < c.min_distance_from_residential:
        failed.append("residential_distance")
    if p.road_distance > c.max_distance_from_road:
        failed.append("road_distance")
    if p.protected_area_distance < c.min_distance_from_protected_area:
        failed.append("protected_area_distance")
    if p.conservation_area_distance < c.min_distance_from_conservation_area:
        failed.append("conservation_area_distance")
    if p.grid_distance < c.min_distance_from_grid or p.grid_distance > c.max_distance_from_grid:
        failed.append("grid_distance")
    if p.gas_distance < c.min_distance_from_gas or p.gas_distance > c.max_distance_from_gas:
        failed.append("gas_distance")

    return failed


def passes_constraints(site: Site, constraints: ConstraintSet) -> bool:
    return not violations(site, constraints)


def apply_constraints(sites: List[Site], constraints: ConstraintSet) -> List[Site]:
    """Keep only sites that satisfy every hard constraint."""
    kept = [site for site in sites if passes_constraints(site, constraints)]
    log.info(f"Applied constraints: {len(kept)}/{len(sites)} sites remain")
    return kept


# ═══════════════════════════════════════════════════════════════════════════
# ADVANCED (POST) FILTERS
# ═══════════════════════════════════════════════════════════════════════════
# filter key -> (property accessor, "min" or "max")
ADVANCED_FILTERS = {
    "min_area": (lambda p: p.area, "min"),
    "max_area": (lambda p: p.area, "max"),
    "min_distance_from_road": (lambda p: p.road_distance, "min"),
    "max_distance_from_road": (lambda p: p.road_distance, "max"),
    "min_distance_from_grid": (lambda p: p.grid_distance, "min"),
    "max_distance_from_grid": (lambda p: p.grid_distance, "max"),
    "min_distance_from_gas": (lambda p: p.gas_distance, "min"),
    "max_distance_from_gas": (lambda p: p.gas_distance, "max"),
    "max_slope": (lambda p: p.slope, "max"),
    "min_soil_quality": (lambda p: soil_quality_score(p.soil_type), "min"),
    "max_flood_risk": (lambda p: p.flood_risk, "max"),
    "min_water_availability": (lambda p: p.water_availability, "min"),
    "min_elevation": (lambda p: p.elevation, "min"),
    "max_elevation": (lambda p: p.elevation, "max"),
}


def apply_advanced_filters(sites: List[Site], filters: Optional[Dict[str, Any]]) -> List[Site]:
    """
    Inclusive range checks over site properties.

    Filters that are absent or None are skipped; a value of 0 is a real bound.
    """
    if not filters:
        return list(sites)

    active = []
    for key, value in filters.items():
        name = canonical_key(key)
        if value is None or name not in ADVANCED_FILTERS:
            continue
        accessor, kind = ADVANCED_FILTERS[name]
        active.append((accessor, kind, value))

    def keep(site: Site) -> bool:
        for accessor, kind, bound in active:
            value = accessor(site.properties)
            if kind == "min" and value < bound:
                return False
            if kind == "max" and value > bound:
                return False
        return True

    kept = [site for site in sites if keep(site)]
    log.info(f"Applied advanced filters: {len(kept)}/{len(sites)} sites remain")
    return kept
