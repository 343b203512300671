import pytest
from unittest.mock import patch
from siting.criteria import CriteriaTree, default_criteria, _group
from siting.models import Site, SiteProperties, normalize_score
from siting.scoring import (
    GRID_CONNECTION_STEPS,
    ROAD_ACCESS_STEPS,
    MCDAScorer,
    SUB_SCORERS,
    community_acceptance_score,
    job_creation_score,
    operational_cost_score,
    soil_quality_score,
    step_score,
    suitability_band,
)


@pytest.fixture
def props():
    return SiteProperties(
        area=25,
        soil_type="Clay",
        land_use="Agricultural",
        elevation=120,
        slope=4,
        flood_risk=3,
        biodiversity=5,
        water_availability=8,
        road_distance=800,
        grid_distance=12000,
        gas_distance=4000,
        residential_distance=2500,
        protected_area_distance=3500,
        conservation_area_distance=3000,
        land_cost=15000,
        development_cost=60000,
    )


def test_default_weights_sum_to_one():
    tree = default_criteria()
    assert sum(g.weight for _, g in tree) == pytest.approx(1.0)
    for _, group in tree:
        assert sum(s.weight for s in group.sub_criteria.values()) == pytest.approx(1.0)


def test_invalid_weights_rejected():
    tree = default_criteria()
    tree.groups["social"].weight = 0.5
    with pytest.raises(ValueError):
        MCDAScorer(tree)


def test_all_tens_score_exactly_ten():
    """With every sub-score at 10, every group and the total are 10."""
    all_tens = {group: {name: 10 for name in scorers} for group, scorers in SUB_SCORERS.items()}
    scorer = MCDAScorer()

    with patch.object(MCDAScorer, "sub_scores", return_value=all_tens):
        scores = scorer.score_properties(SiteProperties())

    for value in (scores.environmental, scores.infrastructure, scores.economic, scores.social, scores.total):
        assert value == pytest.approx(10.0)
    assert scores.normalized == pytest.approx(1.0)


def test_known_property_scores(props):
    sub = MCDAScorer().sub_scores(props)

    assert sub["environmental"] == {"soil_quality": 8, "water_availability": 8, "biodiversity": 5, "flood_risk": 7}
    assert sub["infrastructure"] == {"road_access": 9, "grid_connection": 6, "gas_connection": 8, "water_supply": 8}
    assert sub["economic"]["land_cost"] == 8
    assert sub["economic"]["development_cost"] == 8
    assert sub["economic"]["operational_cost"] == 5
    assert sub["economic"]["revenue_potential"] == 9
    assert sub["social"] == {"community_acceptance": 9, "job_creation": 8, "local_benefits": 9}


def test_group_and_total_arithmetic(props):
    scores = MCDAScorer().score_properties(props)

    env = 8 * 0.4 + 8 * 0.3 + 5 * 0.2 + 7 * 0.1
    infra = 9 * 0.4 + 6 * 0.3 + 8 * 0.2 + 8 * 0.1
    econ = 8 * 0.4 + 8 * 0.3 + 5 * 0.2 + 9 * 0.1
    social = 9 * 0.5 + 8 * 0.3 + 9 * 0.2
    assert scores.environmental == pytest.approx(env)
    assert scores.infrastructure == pytest.approx(infra)
    assert scores.economic == pytest.approx(econ)
    assert scores.social == pytest.approx(social)
    assert scores.total == pytest.approx(env * 0.35 + infra * 0.25 + econ * 0.25 + social * 0.15)


def test_scoring_is_deterministic(props):
    site = Site(id="s", coordinates=(-1.5, 53.0), properties=props)
    first = MCDAScorer().score_sites([site])[0]
    second = MCDAScorer().score_sites([site])[0]
    assert first.score == second.score
    assert first.scores == second.scores
    assert site.score is None  # input left alone


def test_custom_weights_change_total(props):
    tree = default_criteria()
    tree.groups["environmental"].weight = 1.0
    for name in ("infrastructure", "economic", "social"):
        tree.groups[name].weight = 0.0
    scores = MCDAScorer(tree).score_properties(props)
    assert scores.total == pytest.approx(scores.environmental)


def test_unweighted_sub_scores_are_ignored(props):
    tree = default_criteria()
    tree.groups["social"] = _group("social", 0.15, community_acceptance=1.0)
    scores = MCDAScorer(tree).score_properties(props)
    assert scores.social == pytest.approx(9)


def test_step_functions():
    assert step_score(500, ROAD_ACCESS_STEPS) == 10
    assert step_score(501, ROAD_ACCESS_STEPS) == 9
    assert step_score(3000, ROAD_ACCESS_STEPS) == 5
    assert step_score(3001, ROAD_ACCESS_STEPS) == 3
    assert step_score(15000, GRID_CONNECTION_STEPS) == 6
    assert step_score(15001, GRID_CONNECTION_STEPS) == 4


def test_soil_lookup():
    assert soil_quality_score("Loamy") == 9
    assert soil_quality_score("Peaty") == 4
    assert soil_quality_score("Gravel") == 5


def test_job_creation_steps():
    assert job_creation_score(35) == 10
    assert job_creation_score(25) == 8
    assert job_creation_score(15) == 6
    assert job_creation_score(8) == 4
    assert job_creation_score(3) == 2


def test_operational_cost_floor():
    far = SiteProperties(grid_distance=20000, gas_distance=9000, road_distance=3000)
    assert operational_cost_score(far) == 3
    assert operational_cost_score(SiteProperties()) == 7


def test_community_acceptance_capped():
    remote = SiteProperties(residential_distance=5000, protected_area_distance=5000, conservation_area_distance=6000)
    assert community_acceptance_score(remote) == 10


def test_suitability_bands():
    assert suitability_band(8.0) == "Excellent"
    assert suitability_band(7.99) == "Good"
    assert suitability_band(6.0) == "Good"
    assert suitability_band(4.0) == "Fair"
    assert suitability_band(3.9) == "Poor"
    assert suitability_band(0) == "Poor"


def test_band_uses_normalized_total(props):
    scores = MCDAScorer().score_properties(props)
    assert normalize_score(scores.total) == scores.normalized
    assert suitability_band(scores.total) == suitability_band(scores.normalized * 10)
