"""
Worker - Background execution of site analysis tasks.

The pool:
1. Registers named workers (one single-threaded executor each)
2. Accepts a task for an idle worker and hands back a WorkerTask
3. Reports progress on the task while it runs
4. Resolves the task's future with a WorkerMessage ("complete" or "error")

Each submitted task owns its own future, so a caller only ever sees the
response to the task it submitted.
"""

import uuid
import random
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from siting.constraints import ConstraintSet, apply_advanced_filters, apply_constraints
from siting.criteria import CriteriaTree
from siting.errors import WorkerUnavailableError
from siting.generator import CandidateGenerator
from siting.models import PlantLocation, Site
from siting.scoring import MCDAScorer
from siting.settings import EngineSettings

log = logging.getLogger(__name__)

SITE_ANALYSIS = "siteAnalysis"
ANALYZE_SITES = "ANALYZE_SITES"

ProgressCallback = Callable[[int, str], None]


# ═══════════════════════════════════════════════════════════════════════════
# TASK STATUS & MESSAGES
# ═══════════════════════════════════════════════════════════════════════════
class TaskStatus:
    """Task lifecycle states."""
    PENDING = "pending"        # Submitted, not yet picked up
    RUNNING = "running"        # Currently executing
    COMPLETED = "completed"    # Finished successfully
    FAILED = "failed"          # Raised an error
    CANCELLED = "cancelled"    # Abandoned by the caller


class MessageType:
    """Kinds of response a task can resolve with."""
    COMPLETE = "ANALYSIS_COMPLETE"
    ERROR = "ERROR"


@dataclass
class WorkerMessage:
    """The response to one task, tagged with its correlation ID."""
    task_id: str
    type: str
    results: Any = None
    error: Optional[str] = None


@dataclass
class WorkerTask:
    """
    Handle on a submitted task.

    Attributes:
        id: Correlation ID
        worker_name: Which worker runs it
        task_type: e.g. ANALYZE_SITES
        future: Resolves with the task's WorkerMessage
        status: Current TaskStatus
        progress_percent: How far along (0-100)
        progress_message: Current activity description
    """
    id: str
    worker_name: str
    task_type: str
    future: Optional[Future] = None
    status: str = TaskStatus.PENDING
    submitted_at: str = field(default_factory=lambda: datetime.now().isoformat())
    progress_percent: int = 0
    progress_message: str = "Waiting to start"

    def update_progress(self, percent: int, message: str):
        self.progress_percent = percent
        self.progress_message = message

    def wait(self, timeout: Optional[float] = None) -> WorkerMessage:
        """
        Block until the task responds.

        Raises:
            concurrent.futures.TimeoutError: no response within `timeout` seconds
        """
        return self.future.result(timeout=timeout)

    def cancel(self):
        """Abandon the task. A response that arrives later is never read."""
        self.future.cancel()
        if self.status in (TaskStatus.PENDING, TaskStatus.RUNNING):
            self.status = TaskStatus.CANCELLED


# ═══════════════════════════════════════════════════════════════════════════
# WORKER POOL
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class _WorkerSlot:
    executor: ThreadPoolExecutor
    busy: bool = False
    task_count: int = 0
    last_used: Optional[str] = None


class WorkerPool:
    """
    Named background workers, each running one task at a time.

    Usage:
        pool = WorkerPool()
        pool.register("siteAnalysis")
        if pool.is_available("siteAnalysis"):
            task = pool.submit("siteAnalysis", "ANALYZE_SITES", analyze_sites, payload)
            message = task.wait(timeout=30)
    """

    def __init__(self):
        self._workers: Dict[str, _WorkerSlot] = {}
        self._lock = threading.RLock()

    def register(self, name: str):
        with self._lock:
            if name in self._workers:
                return
            self._workers[name] = _WorkerSlot(
                executor=ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"worker-{name}")
            )
            log.info(f"Worker {name} registered")

    def is_available(self, name: str) -> bool:
        """True if the worker exists and is idle."""
        with self._lock:
            slot = self._workers.get(name)
            return slot is not None and not slot.busy

    def submit(
        self,
        name: str,
        task_type: str,
        fn: Callable[[Any, ProgressCallback], Any],
        payload: Any
    ) -> WorkerTask:
        """
        Run `fn(payload, progress)` on the named worker.

        Raises:
            WorkerUnavailableError: worker not registered or already busy
        """
        with self._lock:
            slot = self._workers.get(name)
            if slot is None:
                raise WorkerUnavailableError(f"Worker {name} not available")
            if slot.busy:
                raise WorkerUnavailableError(f"Worker {name} is busy")

            slot.busy = True
            slot.task_count += 1
            slot.last_used = datetime.now().isoformat()

            task_id = f"task_{uuid.uuid4().hex[:12]}"
            task = WorkerTask(id=task_id, worker_name=name, task_type=task_type)
            task.future = slot.executor.submit(self._run, slot, task, fn, payload)

            def release_if_cancelled(future: Future):
                # A task cancelled before it starts never reaches _run's release
                if future.cancelled():
                    self._release(slot)

            task.future.add_done_callback(release_if_cancelled)

        log.debug(f"Submitted {task_type} task {task_id} to worker {name}")
        return task

    def _run(self, slot: _WorkerSlot, task: WorkerTask, fn, payload) -> WorkerMessage:
        task.status = TaskStatus.RUNNING
        task.update_progress(0, "Starting...")
        try:
            results = fn(payload, task.update_progress)
            if task.status != TaskStatus.CANCELLED:
                task.status = TaskStatus.COMPLETED
                task.update_progress(100, "Completed")
            return WorkerMessage(task.id, MessageType.COMPLETE, results=results)
        except Exception as e:
            log.exception(f"Task {task.id} failed on worker {task.worker_name}")
            if task.status != TaskStatus.CANCELLED:
                task.status = TaskStatus.FAILED
                task.update_progress(task.progress_percent, "Failed")
            return WorkerMessage(task.id, MessageType.ERROR, error=str(e))
        finally:
            self._release(slot)

    def _release(self, slot: _WorkerSlot):
        with self._lock:
            slot.busy = False
            slot.last_used = datetime.now().isoformat()

    def stats(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {
                name: {"busy": slot.busy, "task_count": slot.task_count, "last_used": slot.last_used}
                for name, slot in self._workers.items()
            }

    def shutdown(self, wait: bool = False):
        with self._lock:
            for name, slot in self._workers.items():
                slot.executor.shutdown(wait=wait)
                log.info(f"Worker {name} stopped")
            self._workers.clear()


# ═══════════════════════════════════════════════════════════════════════════
# SITE ANALYSIS TASK
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class SiteAnalysisPayload:
    """Everything one analysis run needs, passed by value to whichever thread runs it."""
    reference_points: List[PlantLocation]
    boundaries: Dict
    constraints: ConstraintSet
    criteria: CriteriaTree
    filters: Dict[str, Any]
    settings: EngineSettings
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    target_count: Optional[int] = None
    seed: Optional[int] = None


@dataclass
class SiteAnalysisOutput:
    total_analyzed: int
    scored_sites: List[Site]


def analyze_sites(payload: SiteAnalysisPayload, progress: Optional[ProgressCallback] = None) -> SiteAnalysisOutput:
    """
    Generate → constrain → post-filter → score.

    The same function runs on the background worker and on the calling
    thread, so both modes produce identical output for the same seed.
    """
    report = progress or (lambda percent, message: None)

    generator = CandidateGenerator(settings=payload.settings, rng=random.Random(payload.seed))
    candidates = generator.generate(
        payload.reference_points,
        payload.boundaries,
        min_area=payload.min_area,
        max_area=payload.max_area,
        target_count=payload.target_count,
    )
    report(10, f"Generated {len(candidates)} candidates")

    constrained = apply_constraints(candidates, payload.constraints)
    filtered = apply_advanced_filters(constrained, payload.filters)
    report(20, f"{len(filtered)} candidates passed filtering")

    scorer = MCDAScorer(payload.criteria)
    interval = max(1, payload.settings.progress_interval)
    scored = []
    for i, site in enumerate(filtered):
        scored.append(scorer.score_site(site))
        if i % interval == 0:
            report(20 + int(80 * i / len(filtered)), f"Scored {i}/{len(filtered)} sites")

    log.info(f"Site analysis scored {len(scored)} of {len(candidates)} candidates")
    return SiteAnalysisOutput(total_analyzed=len(candidates), scored_sites=scored)
