"""
Core data models for the AD site finder.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

# (longitude, latitude) in WGS84 decimal degrees
Coordinates = Tuple[float, float]


MAX_SCORE = 10.0


def normalize_score(total: float) -> float:
    """0-10 total -> 0-1, the scale suitability bands are defined on."""
    return total / MAX_SCORE


class ProcessingMethod(Enum):
    """How an analysis result was produced."""
    WORKER = "Worker"
    MAIN_THREAD = "MainThread"


@dataclass
class SiteProperties:
    """
    Synthesized physical, geospatial and cost attributes of a candidate parcel.

    Distances are in meters, area in hectares, land cost in GBP per hectare
    and development cost in GBP. The 0-10 indices follow the convention
    noted on each field.
    """
    area: float = 0.0
    soil_type: str = "Unknown"
    land_use: str = "Unknown"
    elevation: float = 0.0
    slope: float = 0.0                       # degrees
    flood_risk: float = 0.0                  # 0-10, higher = worse
    biodiversity: float = 0.0                # 0-10, higher = better
    water_availability: float = 0.0          # 0-10
    road_distance: float = 0.0
    grid_distance: float = 0.0
    gas_distance: float = 0.0
    residential_distance: float = 0.0
    protected_area_distance: float = 0.0
    conservation_area_distance: float = 0.0
    land_cost: float = 0.0
    development_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteProperties":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class SiteScores:
    """Group scores and weighted total, all on the 0-10 scale."""
    environmental: float
    infrastructure: float
    economic: float
    social: float
    total: float

    @property
    def normalized(self) -> float:
        """Total rescaled to 0-1, the scale used for suitability bands."""
        return normalize_score(self.total)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class Site:
    """
    A candidate AD plant site.

    Scoring and ranking produce new Site instances (see dataclasses.replace)
    rather than editing an existing one.
    """
    id: str
    coordinates: Coordinates
    properties: SiteProperties
    scores: Optional[SiteScores] = None
    score: Optional[float] = None
    rank: Optional[int] = None

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "coordinates": list(self.coordinates),
            "properties": self.properties.to_dict(),
            "scores": self.scores.to_dict() if self.scores else None,
            "score": self.score,
            "rank": self.rank,
        }


@dataclass
class PlantLocation:
    """An existing AD plant used as a reference point for candidate generation."""
    coordinates: Coordinates
    name: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AnalysisSummary:
    """Trimmed record of one analysis, kept in the bounded history."""
    id: str
    date: str
    filters: Dict[str, Any]
    results: int
    total_analyzed: int
    processing_method: ProcessingMethod

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["processing_method"] = self.processing_method.value
        return data


@dataclass
class AnalysisResult:
    """
    Snapshot of a completed site suitability analysis.

    Attributes:
        total_analyzed: Candidates generated before any filtering
        suitable_sites: Candidates that survived filtering and were scored
        results: Ranked sites, best first
        constraints: The (possibly tightened) ConstraintSet that was applied
        criteria: The CriteriaTree used for scoring
        applied_filters: User filters that were recognised and applied
        options: Generation options the analysis ran with
        analysis_date: ISO timestamp
        processing_method: Worker or MainThread
    """
    total_analyzed: int
    suitable_sites: int
    results: List[Site]
    constraints: Any
    criteria: Any
    applied_filters: Dict[str, Any]
    options: Dict[str, Any]
    processing_method: ProcessingMethod
    analysis_date: str = field(default_factory=lambda: datetime.now().isoformat())

    def summary(self, analysis_id: str) -> AnalysisSummary:
        return AnalysisSummary(
            id=analysis_id,
            date=self.analysis_date,
            filters=dict(self.applied_filters),
            results=self.suitable_sites,
            total_analyzed=self.total_analyzed,
            processing_method=self.processing_method,
        )

    def score_statistics(self) -> Dict[str, Any]:
        """Distribution of total scores across the ranked sites."""
        from siting.scoring import suitability_band

        if not self.results:
            return {"count": 0, "bands": {}}

        scores = np.array([site.score or 0.0 for site in self.results], dtype=float)
        bands: Dict[str, int] = {}
        for value in scores:
            band = suitability_band(float(value))
            bands[band] = bands.get(band, 0) + 1

        return {
            "count": int(scores.size),
            "mean": float(np.mean(scores)),
            "median": float(np.median(scores)),
            "min": float(np.min(scores)),
            "max": float(np.max(scores)),
            "bands": bands,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_analyzed": self.total_analyzed,
            "suitable_sites": self.suitable_sites,
            "analysis_date": self.analysis_date,
            "constraints": self.constraints.to_dict() if hasattr(self.constraints, "to_dict") else self.constraints,
            "criteria": self.criteria.to_dict() if hasattr(self.criteria, "to_dict") else self.criteria,
            "options": self.options,
            "applied_filters": self.applied_filters,
            "results": [site.to_dict() for site in self.results],
            "processing_method": self.processing_method.value,
        }
