"""
Site Finder Engine

Runs a site suitability analysis end to end:

    reference data → generate → hard constraints → user filters → score → rank

The heavy part runs on the background "siteAnalysis" worker when one is
registered and idle. If the worker is missing, busy, errors out or does not
answer within the timeout, the same pipeline runs on the calling thread.
Callers always get a result unless the inputs themselves are missing.
"""

import json
import time
import random
import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from siting import export
from siting.constraints import ConstraintSet
from siting.criteria import CriteriaTree, default_criteria
from siting.errors import (
    MissingReferenceDataError,
    NoAnalysisResultError,
    UnsupportedExportFormatError,
)
from siting.filter_store import KeyValueStore, SavedFilter, SavedFilterStore
from siting.models import AnalysisResult, AnalysisSummary, PlantLocation, ProcessingMethod, Site
from siting.ranking import AnalysisHistory, rank_sites
from siting.settings import EngineSettings
from siting.worker import (
    ANALYZE_SITES,
    SITE_ANALYSIS,
    MessageType,
    SiteAnalysisOutput,
    SiteAnalysisPayload,
    WorkerPool,
    analyze_sites,
)

log = logging.getLogger(__name__)


class ReferenceDataProvider(Protocol):
    """Supplies the upstream datasets an analysis needs."""

    def get_ad_plant_locations(self) -> Optional[List[PlantLocation]]: ...

    def get_boundaries(self) -> Optional[Dict]: ...


class EngineState:
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class AnalysisOptions:
    """
    Per-call analysis options. Anything left as None uses the engine default.

    Pass `constraints=previous_result.constraints` to keep tightening from
    where the last analysis left off.
    """
    filters: Dict[str, Any] = field(default_factory=dict)
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    target_count: Optional[int] = None
    constraints: Optional[ConstraintSet] = None

    def generation_options(self) -> Dict[str, Any]:
        return {
            "min_area": self.min_area,
            "max_area": self.max_area,
            "target_count": self.target_count,
        }


@dataclass
class FilterRecommendation:
    type: str
    message: str
    suggested_range: Tuple[float, float]


class SiteFinder:
    """
    AD plant site suitability analysis engine.

    Usage:
        finder = SiteFinder(get_reference_loader())
        result = finder.find_suitable_sites(AnalysisOptions(filters={"max_slope": 8}))
        print(result.results[0].score, result.processing_method)
    """

    def __init__(
        self,
        reference_data: ReferenceDataProvider,
        settings: Optional[EngineSettings] = None,
        worker_pool: Optional[WorkerPool] = None,
        criteria: Optional[CriteriaTree] = None,
        constraints: Optional[ConstraintSet] = None,
        filter_store: Optional[SavedFilterStore] = None,
        rng: Optional[random.Random] = None
    ):
        self.reference_data = reference_data
        self.settings = settings or EngineSettings()
        self.criteria = (criteria or default_criteria()).validate()
        self.constraints = constraints or ConstraintSet()
        self.rng = rng or random.Random()

        # Function the background worker runs; same signature as analyze_sites
        self.analysis_task = analyze_sites
        self.worker_pool = worker_pool
        if self.worker_pool is None and self.settings.use_worker:
            self.worker_pool = WorkerPool()
            self.worker_pool.register(SITE_ANALYSIS)

        self.filter_store = filter_store or SavedFilterStore(KeyValueStore(self.settings.store_path))
        self.history = AnalysisHistory(limit=self.settings.history_limit)

        self.state = EngineState.IDLE
        self.analysis_results: Optional[AnalysisResult] = None
        self._current_task_id: Optional[str] = None
        self._lock = threading.Lock()

    # ═══════════════════════════════════════════════════════════════════════
    # ANALYSIS
    # ═══════════════════════════════════════════════════════════════════════
    def find_suitable_sites(self, options: Optional[AnalysisOptions] = None) -> AnalysisResult:
        """
        Run one analysis and return the ranked result.

        Raises:
            MissingReferenceDataError: plant locations or boundaries unavailable
        """
        options = options or AnalysisOptions()
        with self._lock:
            self.state = EngineState.RUNNING
            try:
                plants = self.reference_data.get_ad_plant_locations()
                boundaries = self.reference_data.get_boundaries()
                if plants is None or boundaries is None:
                    raise MissingReferenceDataError("Required data not loaded")

                base = options.constraints or self.constraints
                constraints, applied = base.apply_user_filters(options.filters)

                payload = SiteAnalysisPayload(
                    reference_points=list(plants),
                    boundaries=boundaries,
                    constraints=constraints,
                    criteria=self.criteria.copy(),
                    filters=dict(options.filters or {}),
                    settings=self.settings,
                    min_area=options.min_area,
                    max_area=options.max_area,
                    target_count=options.target_count,
                    seed=self.rng.getrandbits(32),
                )

                output, method = self._run_analysis(payload)
                result = self._assemble_result(output, method, payload, applied, options)
            finally:
                self.state = EngineState.IDLE

        self.history.append(result.summary(f"analysis_{int(time.time() * 1000)}"))
        self.analysis_results = result
        log.info(
            f"Analysis complete ({result.processing_method.value}): "
            f"{result.suitable_sites} suitable of {result.total_analyzed} analyzed"
        )
        return result

    def _run_analysis(self, payload: SiteAnalysisPayload) -> Tuple[SiteAnalysisOutput, ProcessingMethod]:
        if self.worker_pool is not None and self.worker_pool.is_available(SITE_ANALYSIS):
            try:
                output = self._find_sites_with_worker(payload)
                if output is not None:
                    return output, ProcessingMethod.WORKER
            except Exception as e:
                log.warning(f"Worker analysis failed, falling back to main thread: {e}")

        return self._find_sites_on_main_thread(payload), ProcessingMethod.MAIN_THREAD

    def _find_sites_with_worker(self, payload: SiteAnalysisPayload) -> Optional[SiteAnalysisOutput]:
        """
        Offload the analysis and wait for the answer.

        Returns None on a worker error or a timeout, in which case the caller
        falls back.
        """
        task = self.worker_pool.submit(SITE_ANALYSIS, ANALYZE_SITES, self.analysis_task, payload)
        self._current_task_id = task.id
        try:
            # Only this task's own future is read, so a late reply to an
            # earlier, abandoned task can never arrive here.
            message = task.wait(timeout=self.settings.worker_timeout_seconds)
        except FutureTimeoutError:
            log.warning(
                f"Worker task {task.id} timed out after {self.settings.worker_timeout_seconds}s "
                f"(last progress {task.progress_percent}%)"
            )
            task.cancel()
            return None
        finally:
            self._current_task_id = None

        if message.type == MessageType.ERROR:
            log.warning(f"Worker task {task.id} reported an error: {message.error}")
            return None
        return message.results

    def _find_sites_on_main_thread(self, payload: SiteAnalysisPayload) -> SiteAnalysisOutput:
        log.info("Running site analysis on main thread")
        return analyze_sites(payload)

    def _assemble_result(
        self,
        output: SiteAnalysisOutput,
        method: ProcessingMethod,
        payload: SiteAnalysisPayload,
        applied: Dict[str, Any],
        options: AnalysisOptions
    ) -> AnalysisResult:
        ranked = rank_sites(output.scored_sites)
        return AnalysisResult(
            total_analyzed=output.total_analyzed,
            suitable_sites=len(ranked),
            results=ranked,
            constraints=payload.constraints,
            criteria=payload.criteria,
            applied_filters=applied,
            options=options.generation_options(),
            processing_method=method,
        )

    # ═══════════════════════════════════════════════════════════════════════
    # ACCESSORS
    # ═══════════════════════════════════════════════════════════════════════
    def get_analysis_results(self) -> Optional[AnalysisResult]:
        return self.analysis_results

    def get_suitable_sites(self) -> List[Site]:
        return self.analysis_results.results if self.analysis_results else []

    def get_analysis_history(self) -> List[AnalysisSummary]:
        return self.history.entries()

    # ═══════════════════════════════════════════════════════════════════════
    # EXPORT & RECOMMENDATIONS
    # ═══════════════════════════════════════════════════════════════════════
    def export_results(self, format: str = "json") -> str:
        """
        Serialize the latest result as json, csv or geojson.

        Raises:
            NoAnalysisResultError: nothing has been analyzed yet
            UnsupportedExportFormatError: unknown format
        """
        if self.analysis_results is None:
            raise NoAnalysisResultError("No analysis results to export")

        fmt = format.lower()
        if fmt == "json":
            return export.to_json(self.analysis_results)
        if fmt == "csv":
            return export.to_csv(self.analysis_results.results)
        if fmt == "geojson":
            return json.dumps(export.to_geojson(self.analysis_results.results), indent=2)
        raise UnsupportedExportFormatError(f"Unsupported export format: {format}")

    def get_filter_recommendations(self) -> List[FilterRecommendation]:
        """Suggested area and road distance ranges, based on the top 10 sites."""
        if self.analysis_results is None or not self.analysis_results.results:
            return []

        top = self.analysis_results.results[:10]
        avg_area = sum(site.properties.area for site in top) / len(top)
        avg_road = sum(site.properties.road_distance for site in top) / len(top)

        return [
            FilterRecommendation(
                type="area",
                message=f"Optimal land area: {avg_area:.1f} hectares",
                suggested_range=(max(2, avg_area * 0.7), min(100, avg_area * 1.3)),
            ),
            FilterRecommendation(
                type="road_distance",
                message=f"Optimal road distance: {avg_road:.0f}m",
                suggested_range=(max(100, avg_road * 0.8), min(5000, avg_road * 1.2)),
            ),
        ]

    # ═══════════════════════════════════════════════════════════════════════
    # SAVED FILTERS
    # ═══════════════════════════════════════════════════════════════════════
    def save_filter(self, name: str, filter_config: Dict[str, Any]) -> SavedFilter:
        return self.filter_store.save(name, filter_config)

    def load_saved_filters(self) -> Dict[str, SavedFilter]:
        return self.filter_store.load()

    def get_saved_filters(self) -> Dict[str, SavedFilter]:
        return self.filter_store.all()

    def delete_filter(self, name: str) -> bool:
        return self.filter_store.delete(name)

    def clear_saved_filters(self):
        self.filter_store.clear()

    def shutdown(self):
        """Stop the worker pool and close the saved filter store."""
        if self.worker_pool is not None:
            self.worker_pool.shutdown()
        self.filter_store.close()
