import random
import pytest
from siting.constraints import (
    ConstraintSet,
    apply_advanced_filters,
    apply_constraints,
    canonical_key,
    violations,
)
from siting.generator import CandidateGenerator
from siting.models import PlantLocation, Site, SiteProperties


def make_site(site_id, **overrides):
    """A site that passes the default constraints unless overridden."""
    values = dict(
        area=5,
        slope=3,
        soil_type="Loamy",
        elevation=100,
        flood_risk=2,
        water_availability=6,
        road_distance=1000,
        grid_distance=5000,
        gas_distance=3000,
        residential_distance=1500,
        protected_area_distance=3000,
        conservation_area_distance=4000,
    )
    values.update(overrides)
    return Site(id=site_id, coordinates=(-1.5, 53.0), properties=SiteProperties(**values))


@pytest.fixture
def abc_sites():
    return [
        make_site("A", area=5, slope=3),
        make_site("B", area=15, slope=2),
        make_site("C", area=8, slope=9),
    ]


def test_canonical_key():
    assert canonical_key("minArea") == "min_area"
    assert canonical_key("minDistanceFromAONB") == "min_distance_from_aonb"
    assert canonical_key("maxDistanceFromSSSI") == "max_distance_from_sssi"
    assert canonical_key("max_slope") == "max_slope"


def test_three_site_scenario(abc_sites):
    constraints = ConstraintSet(min_area=2, max_area=10, max_slope=5)
    kept = apply_constraints(abc_sites, constraints)
    assert [s.id for s in kept] == ["A"]


def test_violations_name_each_failed_check():
    c = ConstraintSet()
    assert violations(make_site("ok"), c) == []
    assert violations(make_site("x", residential_distance=200), c) == ["residential_distance"]
    assert violations(make_site("x", road_distance=6000), c) == ["road_distance"]
    assert violations(make_site("x", protected_area_distance=500), c) == ["protected_area_distance"]
    assert violations(make_site("x", conservation_area_distance=500), c) == ["conservation_area_distance"]
    assert violations(make_site("x", grid_distance=500), c) == ["grid_distance"]
    assert violations(make_site("x", grid_distance=25000), c) == ["grid_distance"]
    assert violations(make_site("x", gas_distance=16000), c) == ["gas_distance"]
    assert violations(make_site("x", area=1, slope=20), c) == ["area", "slope"]


def test_bounds_are_inclusive():
    c = ConstraintSet(min_area=5, max_area=5, max_slope=3)
    assert violations(make_site("edge", area=5, slope=3), c) == []


def test_constraints_partition_generated_sites():
    """Kept sites are a subset that all pass; every dropped site breaks something."""
    sites = CandidateGenerator(rng=random.Random(11)).generate(
        [PlantLocation(coordinates=(-1.95, 53.05))], target_count=300
    )
    c = ConstraintSet()
    kept = apply_constraints(sites, c)
    kept_ids = {s.id for s in kept}

    assert kept_ids <= {s.id for s in sites}
    for site in sites:
        assert (site.id in kept_ids) == (violations(site, c) == [])


def test_user_filters_tighten_only():
    base = ConstraintSet()
    tightened, applied = base.apply_user_filters({"minArea": 5, "max_slope": 20, "maxDistanceFromRoad": 2000})

    assert tightened.min_area == 5
    assert tightened.max_slope == 15          # never widened
    assert tightened.max_distance_from_road == 2000
    assert applied == {"min_area": 5, "max_slope": 20, "max_distance_from_road": 2000}
    assert base.min_area == 2                 # receiver untouched


def test_user_filters_ratchet_across_calls():
    c = ConstraintSet()
    history = [c]
    for filters in [{"min_area": 4}, {"min_area": 3}, {"max_area": 60}, {"max_area": 80}, {"min_area": 6}]:
        c, _ = c.apply_user_filters(filters)
        history.append(c)

    for before, after in zip(history, history[1:]):
        assert after.min_area >= before.min_area
        assert after.max_area <= before.max_area
    assert c.min_area == 6
    assert c.max_area == 60


def test_user_filters_ignore_unknown_and_none():
    c, applied = ConstraintSet().apply_user_filters({"favourite_colour": 3, "max_slope": None})
    assert c == ConstraintSet()
    assert applied == {}


def test_constraint_set_from_dict_accepts_camel_case():
    c = ConstraintSet.from_dict({"maxSlope": 8, "minDistanceFromAONB": 2500, "bogus": 1})
    assert c.max_slope == 8
    assert c.min_distance_from_aonb == 2500


def test_advanced_filters_ranges():
    sites = [
        make_site("small", area=3, elevation=50),
        make_site("mid", area=12, elevation=150),
        make_site("big", area=40, elevation=300),
    ]
    kept = apply_advanced_filters(sites, {"minArea": 10, "max_elevation": 200})
    assert [s.id for s in kept] == ["mid"]


def test_advanced_filters_zero_is_a_real_bound():
    sites = [make_site("dry", flood_risk=0), make_site("wet", flood_risk=1)]
    assert [s.id for s in apply_advanced_filters(sites, {"max_flood_risk": 0})] == ["dry"]


def test_advanced_filters_skip_none_and_empty():
    sites = [make_site("a"), make_site("b")]
    assert apply_advanced_filters(sites, {"min_area": None}) == sites
    assert apply_advanced_filters(sites, None) == sites


def test_advanced_filters_soil_quality_uses_lookup():
    sites = [make_site("loam", soil_type="Loamy"), make_site("peat", soil_type="Peaty")]
    assert [s.id for s in apply_advanced_filters(sites, {"min_soil_quality": 7})] == ["loam"]
