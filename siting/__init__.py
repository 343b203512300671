"""
Site finding engine for anaerobic digestion (AD) plants.
Contains data models, candidate generation, filtering, MCDA scoring and the
analysis controller.
"""

from siting.models import (
    Site,
    SiteProperties,
    SiteScores,
    PlantLocation,
    AnalysisResult,
    AnalysisSummary,
    ProcessingMethod,
)
from siting.settings import EngineSettings
from siting.synthesizer import SitePropertySynthesizer
from siting.generator import CandidateGenerator
from siting.constraints import ConstraintSet, apply_constraints, apply_advanced_filters
from siting.criteria import CriteriaTree, CriterionGroup, SubCriterion, default_criteria
from siting.scoring import MCDAScorer, suitability_band
from siting.ranking import rank_sites, AnalysisHistory
from siting.worker import WorkerPool, WorkerTask, WorkerMessage
from siting.filter_store import KeyValueStore, SavedFilterStore, SavedFilter
from siting.engine import SiteFinder, AnalysisOptions, FilterRecommendation

__all__ = [
    # Models
    "Site",
    "SiteProperties",
    "SiteScores",
    "PlantLocation",
    "AnalysisResult",
    "AnalysisSummary",
    "ProcessingMethod",
    "EngineSettings",
    # Pipeline
    "SitePropertySynthesizer",
    "CandidateGenerator",
    "ConstraintSet",
    "apply_constraints",
    "apply_advanced_filters",
    "CriteriaTree",
    "CriterionGroup",
    "SubCriterion",
    "default_criteria",
    "MCDAScorer",
    "suitability_band",
    "rank_sites",
    "AnalysisHistory",
    # Execution
    "WorkerPool",
    "WorkerTask",
    "WorkerMessage",
    "KeyValueStore",
    "SavedFilterStore",
    "SavedFilter",
    "SiteFinder",
    "AnalysisOptions",
    "FilterRecommendation",
]
