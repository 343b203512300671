import random
import threading
import pytest
from concurrent.futures import TimeoutError as FutureTimeoutError
from siting.constraints import ConstraintSet
from siting.criteria import default_criteria
from siting.errors import WorkerUnavailableError
from siting.models import PlantLocation
from siting.settings import EngineSettings
from siting.worker import (
    ANALYZE_SITES,
    SITE_ANALYSIS,
    MessageType,
    SiteAnalysisPayload,
    TaskStatus,
    WorkerPool,
    analyze_sites,
)


@pytest.fixture
def pool():
    pool = WorkerPool()
    pool.register(SITE_ANALYSIS)
    yield pool
    pool.shutdown(wait=False)


@pytest.fixture
def payload():
    return SiteAnalysisPayload(
        reference_points=[PlantLocation(coordinates=(-1.95, 53.05))],
        boundaries={"type": "FeatureCollection", "features": []},
        constraints=ConstraintSet(),
        criteria=default_criteria(),
        filters={},
        settings=EngineSettings(progress_interval=10),
        target_count=100,
        seed=1234,
    )


def test_unregistered_worker_unavailable():
    pool = WorkerPool()
    assert not pool.is_available(SITE_ANALYSIS)
    with pytest.raises(WorkerUnavailableError):
        pool.submit(SITE_ANALYSIS, ANALYZE_SITES, lambda p, progress: p, None)


def test_submit_and_complete(pool):
    task = pool.submit(SITE_ANALYSIS, ANALYZE_SITES, lambda p, progress: p * 2, 21)
    message = task.wait(timeout=5)

    assert message.task_id == task.id
    assert message.type == MessageType.COMPLETE
    assert message.results == 42
    assert task.status == TaskStatus.COMPLETED
    assert task.progress_percent == 100


def test_error_becomes_error_message(pool):
    def explode(payload, progress):
        raise RuntimeError("bad data")

    message = pool.submit(SITE_ANALYSIS, ANALYZE_SITES, explode, None).wait(timeout=5)
    assert message.type == MessageType.ERROR
    assert "bad data" in message.error
    assert pool.is_available(SITE_ANALYSIS)


def test_busy_while_running_then_released(pool):
    release = threading.Event()

    def blocking(payload, progress):
        release.wait(5)
        return "done"

    task = pool.submit(SITE_ANALYSIS, ANALYZE_SITES, blocking, None)
    assert not pool.is_available(SITE_ANALYSIS)
    with pytest.raises(WorkerUnavailableError):
        pool.submit(SITE_ANALYSIS, ANALYZE_SITES, blocking, None)

    release.set()
    assert task.wait(timeout=5).results == "done"
    assert pool.is_available(SITE_ANALYSIS)
    assert pool.stats()[SITE_ANALYSIS]["task_count"] == 1


def test_wait_times_out(pool):
    release = threading.Event()
    task = pool.submit(SITE_ANALYSIS, ANALYZE_SITES, lambda p, progress: release.wait(5), None)

    with pytest.raises(FutureTimeoutError):
        task.wait(timeout=0.05)
    task.cancel()
    assert task.status == TaskStatus.CANCELLED
    release.set()


def test_analyze_sites_reports_progress(payload):
    updates = []
    output = analyze_sites(payload, lambda percent, message: updates.append(percent))

    assert output.total_analyzed == 100
    assert len(output.scored_sites) <= 100
    assert all(site.score is not None for site in output.scored_sites)
    assert updates[0] == 10
    assert updates == sorted(updates)


def test_analyze_sites_same_seed_same_output(payload):
    first = analyze_sites(payload)
    second = analyze_sites(payload)
    assert [s.properties for s in first.scored_sites] == [s.properties for s in second.scored_sites]
    assert [s.score for s in first.scored_sites] == [s.score for s in second.scored_sites]
