"""
MCDA Scoring Module

Hierarchical weighted scoring of candidate AD sites:
- Each sub-criterion produces a raw 0-10 score from site properties
- Group score = Σ(sub-score × sub-criterion weight)
- Total score = Σ(group score × group weight)

Since weights sum to 1.0 at both levels, group scores and the total stay on
the 0-10 scale. Suitability bands are defined on the normalized 0-1 scale
(total / 10).
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from siting.criteria import CriteriaTree, default_criteria
from siting.models import Site, SiteProperties, SiteScores, normalize_score

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# LOOKUP TABLES & STEP FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════
SOIL_QUALITY = {
    "Clay": 8,
    "Silt": 7,
    "Loamy": 9,
    "Sandy": 6,
    "Peaty": 4,
    "Chalky": 5,
}
UNKNOWN_SOIL_QUALITY = 5

# (upper bound inclusive, score) pairs, checked in order; final value is the fallback
ROAD_ACCESS_STEPS = ([(500, 10), (1000, 9), (2000, 7), (3000, 5)], 3)
GRID_CONNECTION_STEPS = ([(5000, 10), (10000, 8), (15000, 6)], 4)
GAS_CONNECTION_STEPS = ([(2000, 10), (5000, 8), (10000, 6)], 4)
LAND_COST_STEPS = ([(10000, 10), (20000, 8), (30000, 6), (40000, 4)], 2)
DEVELOPMENT_COST_STEPS = ([(50000, 10), (100000, 8), (150000, 6), (200000, 4)], 2)

# Bands on the normalized (0-1) scale, highest first
SUITABILITY_BANDS = [
    (0.8, "Excellent"),
    (0.6, "Good"),
    (0.4, "Fair"),
    (0.0, "Poor"),
]


def _num(value) -> float:
    """Missing values score as 0."""
    return value if value is not None else 0


def step_score(value: float, steps) -> float:
    """Descending step function: the first breakpoint >= value wins."""
    breakpoints, fallback = steps
    for upper, score in breakpoints:
        if value <= upper:
            return score
    return fallback


def soil_quality_score(soil_type: Optional[str]) -> float:
    return SOIL_QUALITY.get(soil_type, UNKNOWN_SOIL_QUALITY)


def suitability_band(score: float) -> str:
    """Bucket a 0-10 total score into Excellent / Good / Fair / Poor."""
    normalized = normalize_score(score)
    for threshold, label in SUITABILITY_BANDS:
        if normalized >= threshold:
            return label
    return SUITABILITY_BANDS[-1][1]


# ═══════════════════════════════════════════════════════════════════════════
# SUB-CRITERION SCORES
# ═══════════════════════════════════════════════════════════════════════════
def flood_risk_score(flood_risk: float) -> float:
    """Inverted: lower risk scores higher."""
    return max(0, 10 - _num(flood_risk))


def water_supply_score(water_availability: float) -> float:
    return min(10, _num(water_availability))


def operational_cost_score(props: SiteProperties) -> float:
    score = 7
    if _num(props.grid_distance) > 10000:
        score -= 2
    if _num(props.gas_distance) > 5000:
        score -= 1
    if _num(props.road_distance) > 2000:
        score -= 1
    return max(1, score)


def revenue_potential_score(props: SiteProperties) -> float:
    score = 6
    if _num(props.area) > 20:
        score += 2
    if _num(props.water_availability) > 7:
        score += 1
    if _num(props.biodiversity) > 7:
        score += 1
    return min(10, score)


def community_acceptance_score(props: SiteProperties) -> float:
    score = 6
    if _num(props.residential_distance) > 2000:
        score += 2
    if _num(props.protected_area_distance) > 3000:
        score += 1
    if _num(props.conservation_area_distance) > 4000:
        score += 1
    return min(10, score)


def job_creation_score(area: float) -> float:
    """Larger sites employ more people."""
    area = _num(area)
    if area > 30:
        return 10
    if area > 20:
        return 8
    if area > 10:
        return 6
    if area > 5:
        return 4
    return 2


def local_benefits_score(props: SiteProperties) -> float:
    score = 6
    if _num(props.area) > 15:
        score += 2
    if _num(props.water_availability) > 6:
        score += 1
    if _num(props.biodiversity) > 6:
        score += 1
    return min(10, score)


# Raw sub-score extractors per group
SUB_SCORERS: Dict[str, Dict[str, Callable[[SiteProperties], float]]] = {
    "environmental": {
        "soil_quality": lambda p: soil_quality_score(p.soil_type),
        "water_availability": lambda p: min(10, _num(p.water_availability)),
        "biodiversity": lambda p: _num(p.biodiversity),
        "flood_risk": lambda p: flood_risk_score(p.flood_risk),
    },
    "infrastructure": {
        "road_access": lambda p: step_score(_num(p.road_distance), ROAD_ACCESS_STEPS),
        "grid_connection": lambda p: step_score(_num(p.grid_distance), GRID_CONNECTION_STEPS),
        "gas_connection": lambda p: step_score(_num(p.gas_distance), GAS_CONNECTION_STEPS),
        "water_supply": lambda p: water_supply_score(p.water_availability),
    },
    "economic": {
        "land_cost": lambda p: step_score(_num(p.land_cost), LAND_COST_STEPS),
        "development_cost": lambda p: step_score(_num(p.development_cost), DEVELOPMENT_COST_STEPS),
        "operational_cost": operational_cost_score,
        "revenue_potential": revenue_potential_score,
    },
    "social": {
        "community_acceptance": community_acceptance_score,
        "job_creation": lambda p: job_creation_score(p.area),
        "local_benefits": local_benefits_score,
    },
}


# ═══════════════════════════════════════════════════════════════════════════
# MCDA SCORER
# ═══════════════════════════════════════════════════════════════════════════
class MCDAScorer:
    """
    Multi-Criteria Decision Analysis scorer.

    Scoring has no randomness: the same properties and weights always give
    the same scores.
    """

    def __init__(self, criteria: Optional[CriteriaTree] = None):
        self.criteria = (criteria or default_criteria()).validate()

    def sub_scores(self, props: SiteProperties) -> Dict[str, Dict[str, float]]:
        """Raw 0-10 sub-criterion scores, grouped."""
        return {
            group: {name: fn(props) for name, fn in scorers.items()}
            for group, scorers in SUB_SCORERS.items()
        }

    def group_score(self, group_name: str, sub_scores: Dict[str, float]) -> float:
        """Σ(sub-score × weight). Sub-scores with no configured weight are ignored."""
        group = self.criteria[group_name]
        total = 0.0
        for name, value in sub_scores.items():
            config = group.sub_criteria.get(name)
            if config is not None:
                total += value * config.weight
        return total

    def score_properties(self, props: SiteProperties) -> SiteScores:
        raw = self.sub_scores(props)
        groups = {name: self.group_score(name, raw[name]) for name in SUB_SCORERS}
        total = sum(groups[name] * self.criteria[name].weight for name in groups)
        return SiteScores(total=total, **groups)

    def score_site(self, site: Site) -> Site:
        scores = self.score_properties(site.properties)
        return replace(site, scores=scores, score=scores.total)

    def score_sites(self, sites: List[Site]) -> List[Site]:
        """Return scored copies of `sites`, in the same order."""
        scored = [self.score_site(site) for site in sites]
        log.info(f"Scored {len(scored)} sites")
        return scored
