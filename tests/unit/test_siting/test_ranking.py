import pytest
from siting.models import AnalysisSummary, ProcessingMethod, Site, SiteProperties
from siting.ranking import AnalysisHistory, rank_sites


def scored(site_id, score):
    return Site(id=site_id, coordinates=(0.0, 52.0), properties=SiteProperties(), score=score)


def summary(i):
    return AnalysisSummary(
        id=f"analysis_{i}",
        date="2024-01-01T00:00:00",
        filters={},
        results=i,
        total_analyzed=100,
        processing_method=ProcessingMethod.WORKER,
    )


def test_ranks_are_dense_and_ordered():
    ranked = rank_sites([scored("a", 5.0), scored("b", 8.2), scored("c", 6.1), scored("d", 7.0)])

    assert [s.id for s in ranked] == ["b", "d", "c", "a"]
    assert [s.rank for s in ranked] == [1, 2, 3, 4]
    scores = [s.score for s in ranked]
    assert scores == sorted(scores, reverse=True)


def test_ties_keep_input_order():
    ranked = rank_sites([scored("first", 7.0), scored("high", 9.0), scored("second", 7.0), scored("third", 7.0)])
    assert [s.id for s in ranked] == ["high", "first", "second", "third"]
    assert [s.rank for s in ranked] == [1, 2, 3, 4]


def test_rank_does_not_touch_inputs():
    sites = [scored("a", 1.0)]
    rank_sites(sites)
    assert sites[0].rank is None


def test_rank_empty():
    assert rank_sites([]) == []


def test_history_evicts_oldest():
    history = AnalysisHistory(limit=10)
    for i in range(12):
        history.append(summary(i))

    entries = history.entries()
    assert len(history) == 10
    assert entries[0].id == "analysis_2"
    assert entries[-1].id == "analysis_11"


def test_history_clear():
    history = AnalysisHistory(limit=3)
    history.append(summary(1))
    history.clear()
    assert history.entries() == []


def test_history_limit_zero_keeps_nothing():
    history = AnalysisHistory(limit=0)
    history.append(summary(1))
    history.append(summary(2))
    assert len(history) == 0
    assert history.entries() == []


def test_history_rejects_negative_limit():
    with pytest.raises(ValueError):
        AnalysisHistory(limit=-1)
