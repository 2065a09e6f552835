import pytest

from streetmap.domain.builder import StreetMapBuilder
from streetmap.domain.entities.ways import RoadType
from streetmap.domain.store import StreetMap

# ---------- Fixtures


@pytest.fixture
def bent_road_map() -> StreetMap:
    """One road (0,0)->(10,0)->(10,10) with nodes at points 0 and 2 only."""
    b = StreetMapBuilder()
    a = b.add_node((0.0, 0.0))
    c = b.add_node((10.0, 10.0))
    b.add_road("Bent St", [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)], [a, None, c])
    return b.build()


@pytest.fixture
def crossing_map() -> StreetMap:
    """
    A two-way east-west street and a one-way (south->north) street crossing at
    node 1 = (0,0).

        node 3 (0,10)
           ^
    0 -----1----- 2        (-10,0) .. (10,0)
           ^
        node 4 (0,-10)
    """
    b = StreetMapBuilder()
    w = b.add_node((-10.0, 0.0))
    c = b.add_node((0.0, 0.0))
    e = b.add_node((10.0, 0.0))
    n = b.add_node((0.0, 10.0))
    s = b.add_node((0.0, -10.0))
    b.add_road("East-West", [(-10.0, 0.0), (0.0, 0.0), (10.0, 0.0)], [w, c, e])
    b.add_road(
        "Northbound",
        [(0.0, -10.0), (0.0, 0.0), (0.0, 10.0)],
        [s, c, n],
        is_one_way=True,
    )
    return b.build()


@pytest.fixture
def parallel_map() -> StreetMap:
    """Nodes 0=(0,0) and 1=(100,0) joined by one-way streets of length 100 and 150."""
    b = StreetMapBuilder()
    a = b.add_node((0.0, 0.0))
    z = b.add_node((100.0, 0.0))
    b.add_road(
        "Long Detour",
        [(0.0, 0.0), (0.0, 25.0), (100.0, 25.0), (100.0, 0.0)],
        [a, None, None, z],
        road_type=RoadType.STREET,
        is_one_way=True,
    )
    b.add_road(
        "Short Cut",
        [(0.0, 0.0), (100.0, 0.0)],
        [a, z],
        road_type=RoadType.STREET,
        is_one_way=True,
    )
    return b.build()
