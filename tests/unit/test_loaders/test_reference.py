import json
import pytest
import requests
from unittest.mock import MagicMock, patch
from loaders.reference import (
    ReferenceDataLoader,
    get_reference_loader,
    parse_boundaries,
    parse_plants,
)
from siting.errors import ReferenceDataError


@pytest.fixture
def plants_file(tmp_path):
    path = tmp_path / "plants.geojson"
    path.write_text(json.dumps({
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"name": "North"}, "geometry": {"type": "Point", "coordinates": [-2.5, 54.0]}},
            {"type": "Feature", "properties": {"name": "Line"}, "geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}},
            {"type": "Feature", "properties": {"name": "South"}, "geometry": {"type": "Point", "coordinates": [-0.5, 51.5]}},
        ],
    }))
    return str(path)


def test_placeholder_data():
    loader = ReferenceDataLoader()
    plants = loader.get_ad_plant_locations()
    boundaries = loader.get_boundaries()

    assert len(plants) == 1
    assert plants[0].coordinates == (-1.95, 53.05)
    assert plants[0].properties["status"] == "Operational"
    assert boundaries["type"] == "FeatureCollection"
    assert loader.is_data_ready()


def test_plants_from_file(plants_file):
    plants = ReferenceDataLoader(plants_source=plants_file).get_ad_plant_locations()
    assert [p.name for p in plants] == ["North", "South"]
    assert plants[1].coordinates == (-0.5, 51.5)


def test_parse_plant_records_list():
    plants = parse_plants([{"coordinates": [-1.0, 52.0], "name": "A"}, {"name": "no coords"}])
    assert len(plants) == 1
    assert plants[0].name == "A"


def test_parse_rejects_other_shapes():
    with pytest.raises(ReferenceDataError):
        parse_plants({"type": "Feature"})
    with pytest.raises(ReferenceDataError):
        parse_boundaries([1, 2, 3])


def test_missing_file_raises(tmp_path):
    loader = ReferenceDataLoader(boundaries_source=str(tmp_path / "nope.geojson"))
    with pytest.raises(ReferenceDataError):
        loader.get_boundaries()


def test_url_source():
    loader = ReferenceDataLoader(boundaries_source="https://example.org/boundaries.geojson")
    loader.session = MagicMock()
    response = MagicMock()
    response.json.return_value = {"type": "FeatureCollection", "features": []}
    loader.session.get.return_value = response

    assert loader.get_boundaries() == {"type": "FeatureCollection", "features": []}
    loader.get_boundaries()
    loader.session.get.assert_called_once()


def test_url_failure_retries_then_raises():
    loader = ReferenceDataLoader(plants_source="https://example.org/plants.json")
    loader.session = MagicMock()
    loader.session.get.side_effect = requests.ConnectionError("offline")

    with patch("time.sleep"):
        with pytest.raises(ReferenceDataError):
            loader.get_ad_plant_locations()
    assert loader.session.get.call_count == 3


def test_clear_cache():
    loader = ReferenceDataLoader()
    loader.get_ad_plant_locations()
    loader.clear_cache()
    assert not loader.is_data_ready()


def test_singleton():
    assert get_reference_loader() is get_reference_loader()
