import pytest
from pydantic import ValidationError

from streetmap.domain.builder import StreetMapBuilder
from streetmap.domain.entities.ways import Link, MiscWayType, RailwayType, RoadType
from streetmap.domain.errors import InvalidGraphState
from streetmap.io import snapshot


@pytest.fixture
def small_map():
    b = StreetMapBuilder(origin_longitude=-0.12, origin_latitude=51.5)
    a = b.add_node((0.0, 0.0), tags={"highway": "traffic_signals"})
    z = b.add_node((50.0, 0.0))
    b.add_road(
        "Strand",
        [(0.0, 0.0), (20.0, 5.0), (50.0, 0.0)],
        [a, None, z],
        road_type=RoadType.MAJOR_ROAD,
        is_one_way=True,
        speed_limit=30,
        link=Link(11, "F"),
        tmc="C01+12345",
    )
    b.add_railway("Tram", [(0.0, 0.0), (50.0, 0.0)], [a, z], railway_type=RailwayType.TRAM)
    b.add_building("Somerset House", [(5, 5), (15, 5), (15, 15), (5, 15)], height=20.0, levels=4)
    b.add_misc_way("Gardens", [(0, 20), (10, 20), (10, 30)], way_type=MiscWayType.LEISURE)
    return b.build()


def test_snapshot_preserves_the_store(small_map, tmp_path):
    path = tmp_path / "map.json"
    snapshot.save(small_map, path)
    loaded = snapshot.load(path)

    assert loaded.roads == small_map.roads
    assert loaded.railways == small_map.railways
    assert loaded.buildings == small_map.buildings
    assert loaded.misc_ways == small_map.misc_ways
    assert loaded.nodes == small_map.nodes
    assert loaded.bounds == small_map.bounds
    assert loaded.origin == small_map.origin
    assert loaded.road_for_link(Link(11, "F")) == 0
    assert loaded.road(0).length() == pytest.approx(small_map.road(0).length())


def test_snapshot_dict_is_plain_data(small_map):
    data = snapshot.to_dict(small_map)
    road = data["roads"][0]
    assert road["road_type"] == "major_road"
    assert road["node_indices"] == [0, None, 1]
    assert data["nodes"][0]["road_refs"] == [[0, 0]]
    assert data["nodes"][0]["tags"] == {"highway": "traffic_signals"}


def test_missing_bounds_are_recomputed(small_map):
    data = snapshot.to_dict(small_map)
    del data["bounds"]
    for r in data["roads"]:
        del r["bounds"]
    loaded = snapshot.from_dict(data)
    assert loaded.roads[0].bounds == small_map.roads[0].bounds
    assert loaded.bounds == small_map.bounds


def test_broken_refs_raise_unless_lenient(small_map):
    data = snapshot.to_dict(small_map)
    data["nodes"][1]["road_refs"] = []
    with pytest.raises(InvalidGraphState) as exc:
        snapshot.from_dict(data)
    assert exc.value.entity == "road" and exc.value.index == 0

    lenient = snapshot.from_dict(data, strict=False)
    assert lenient.nodes[1].road_refs == ()


def test_schema_errors_are_validation_errors(small_map):
    data = snapshot.to_dict(small_map)
    data["roads"][0]["road_type"] = "motorway"
    with pytest.raises(ValidationError):
        snapshot.from_dict(data)
    with pytest.raises(ValidationError):
        snapshot.loads('{"roads": [{"points": [[0, 0]]}]}')
