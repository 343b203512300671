"""
Criteria Tree

The two-level weight hierarchy used by the MCDA scorer: four criteria groups
(environmental, infrastructure, economic, social), each holding weighted
sub-criteria. Group weights sum to 1.0 and so do the sub-criterion weights
inside each group, which keeps every score on the same 0-10 scale.
"""

import copy
import math
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple

log = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-9


@dataclass
class SubCriterion:
    """A single scored attribute inside a criteria group."""
    weight: float
    min: float = 0.0
    max: float = 10.0

    def to_dict(self) -> Dict:
        return {"weight": self.weight, "min": self.min, "max": self.max}


@dataclass
class CriterionGroup:
    """A top-level criteria group and its sub-criteria."""
    name: str
    weight: float
    sub_criteria: Dict[str, SubCriterion] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "weight": self.weight,
            "sub_criteria": {k: v.to_dict() for k, v in self.sub_criteria.items()},
        }


@dataclass
class CriteriaTree:
    """Read-only weight configuration for scoring."""
    groups: Dict[str, CriterionGroup]

    def __getitem__(self, name: str) -> CriterionGroup:
        return self.groups[name]

    def __iter__(self) -> Iterator[Tuple[str, CriterionGroup]]:
        return iter(self.groups.items())

    def validate(self) -> "CriteriaTree":
        """
        Check that group weights, and sub-criterion weights within each
        group, each sum to 1.0.

        Raises:
            ValueError: if any level does not sum to 1.0
        """
        group_total = sum(g.weight for g in self.groups.values())
        if not math.isclose(group_total, 1.0, abs_tol=WEIGHT_TOLERANCE):
            raise ValueError(f"Criteria group weights sum to {group_total}, expected 1.0")

        for name, group in self.groups.items():
            sub_total = sum(s.weight for s in group.sub_criteria.values())
            if not math.isclose(sub_total, 1.0, abs_tol=WEIGHT_TOLERANCE):
                raise ValueError(f"Sub-criteria of '{name}' sum to {sub_total}, expected 1.0")
        return self

    def copy(self) -> "CriteriaTree":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict:
        return {name: group.to_dict() for name, group in self.groups.items()}


def _group(name: str, weight: float, **sub_weights: float) -> CriterionGroup:
    return CriterionGroup(
        name=name,
        weight=weight,
        sub_criteria={k: SubCriterion(weight=w) for k, w in sub_weights.items()},
    )


# ═══════════════════════════════════════════════════════════════════════════
# DEFAULT CRITERIA
# ═══════════════════════════════════════════════════════════════════════════
DEFAULT_CRITERIA = CriteriaTree(groups={
    "environmental": _group(
        "environmental", 0.35,
        soil_quality=0.4,
        water_availability=0.3,
        biodiversity=0.2,
        flood_risk=0.1,
    ),
    "infrastructure": _group(
        "infrastructure", 0.25,
        road_access=0.4,
        grid_connection=0.3,
        gas_connection=0.2,
        water_supply=0.1,
    ),
    "economic": _group(
        "economic", 0.25,
        land_cost=0.4,
        development_cost=0.3,
        operational_cost=0.2,
        revenue_potential=0.1,
    ),
    "social": _group(
        "social", 0.15,
        community_acceptance=0.5,
        job_creation=0.3,
        local_benefits=0.2,
    ),
}).validate()


def default_criteria() -> CriteriaTree:
    """A private copy of the default criteria tree."""
    return DEFAULT_CRITERIA.copy()
