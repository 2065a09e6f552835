# tests/app/test_session.py
import heapq

import pytest

from streetmap.app.session import build, open_session
from streetmap.domain.entities.geography import BoundingBox, Point2D
from streetmap.domain.entities.node import Node, RoadRef
from streetmap.domain.entities.ways import Road, RoadType
from streetmap.domain.mechanics.cost import DistanceCostModel, RoadTypeCostModel
from streetmap.domain.store import StreetMap
from streetmap.io.diagnostics import QUERY_FAILED, REF_MISMATCH, QuerySkipped
from streetmap.io.recorder import MemorySink


def _grid(b):
    """3x3 grid, 100 units apart; the middle row is a highway."""
    for y in (0.0, 100.0, 200.0):
        road_type = RoadType.HIGHWAY if y == 100.0 else RoadType.STREET
        b.add_road_through(f"row {y:g}", [(0.0, y), (100.0, y), (200.0, y)], road_type=road_type)
    for x in (0.0, 100.0, 200.0):
        b.add_road_through(f"col {x:g}", [(x, 0.0), (x, 100.0), (x, 200.0)])


def _dijkstra(session, start: int, goal: int) -> tuple[float, list[int]]:
    """Cheapest node sequence using only the per-connection query API."""
    best = {start: 0.0}
    prev: dict[int, int] = {}
    pq = [(0.0, start)]
    while pq:
        d, n = heapq.heappop(pq)
        if n == goal:
            break
        if d > best[n]:
            continue
        for c, cost in session.connection_costs(n, True):
            nd = d + cost
            if nd < best.get(c.node_id, float("inf")):
                best[c.node_id] = nd
                prev[c.node_id] = n
                heapq.heappush(pq, (nd, c.node_id))
    path = [goal]
    while path[-1] != start:
        path.append(prev[path[-1]])
    return best[goal], path[::-1]


def test_build_from_config_dict():
    cfg = {
        "name": "grid",
        "cost": {"kind": "road_type", "profiles": {"highway": {"speed": 110.0}}},
        "projection": {"units_per_meter": 100.0},
    }
    session = build(cfg, _grid, origin=(2.35, 48.85), use_logging=False)
    assert session.config.name == "grid"
    assert isinstance(session.cost_model, RoadTypeCostModel)
    assert len(session.store.roads) == 6 and len(session.store.nodes) == 9
    assert session.report.dropped == {"road": [], "railway": []}
    assert session.diagnostics == []
    ((lon, lat),) = session.to_geographic([Point2D(0.0, 0.0)])
    assert (lon, lat) == pytest.approx((2.35, 48.85))


def test_routing_over_connection_api_prefers_highway():
    session = build(None, _grid, use_logging=False)
    nodes = {n.location: n.id for n in session.store.iter_nodes()}
    start, goal = nodes[Point2D(0.0, 0.0)], nodes[Point2D(200.0, 200.0)]

    cost, path = _dijkstra(session, start, goal)
    locations = [session.store.nodes[n].location for n in path]
    # detours through the middle row since highway cost beats street cost
    assert Point2D(100.0, 100.0) in locations
    assert locations[1] == Point2D(0.0, 100.0)
    assert cost == pytest.approx(100 * 11.0 + 200 * 1.625 + 100 * 11.0)

    # each hop maps back to a road through the shortest-cost query
    for a, z in zip(path, path[1:], strict=False):
        rid, point_index = session.shortest_cost_road(a, z, True)
        assert session.store.roads[rid].node_indices[point_index] == a


def test_distance_cost_config_and_batch_queries():
    session = build({"cost": {"kind": "distance"}}, _grid, use_logging=False)
    assert isinstance(session.cost_model, DistanceCostModel)
    lengths = session.road_lengths()
    assert set(lengths.values()) == {200.0}
    assert len(session.dead_ends()) == 0  # every grid corner joins two roads
    table = session.connection_table(True)
    assert sorted(len(v) for v in table.values()) == [2, 2, 2, 2, 3, 3, 3, 3, 4]


def test_build_diagnostics_reach_the_recorder():
    def load(b):
        b.add_road("open", [(0.0, 0.0), (10.0, 0.0)], [b.add_node((0.0, 0.0)), None])
        b.add_road("bad", [(0.0, 0.0)], [0])

    sink = MemorySink()
    session = build({"log": {"sample_every": 5}}, load, sinks=[sink])
    codes = [d.code for d in sink.events]
    assert codes == ["missing_endpoint_node", "too_few_points"]
    assert session.report.dropped["road"] == [1]
    assert len(session.store.roads) == 1


def _half_broken_store() -> StreetMap:
    pts = (Point2D(0, 0), Point2D(10, 0))
    ok = Road("ok", RoadType.STREET, pts, (0, 1), BoundingBox.from_points(pts))
    nodes = (
        Node(Point2D(0, 0), road_refs=(RoadRef(0, 0),)),
        Node(Point2D(10, 0), road_refs=(RoadRef(0, 1),)),
        # refers to a road that does not exist
        Node(Point2D(5, 5), road_refs=(RoadRef(3, 0),)),
    )
    return StreetMap(roads=(ok,), nodes=nodes)


def test_open_session_reports_and_skips_malformed_nodes():
    sink = MemorySink()
    session = open_session({}, _half_broken_store(), sinks=[sink])
    assert [d.code for d in sink.events] == [REF_MISMATCH]

    assert session.dead_ends() == [0, 1]
    table = session.connection_table(True)
    assert set(table) == {0, 1}
    skipped = [e for e in session.diagnostics if isinstance(e, QuerySkipped)]
    assert {s.query for s in skipped} == {"is_dead_end", "iter_connections"}
    assert all(s.code == QUERY_FAILED and s.action == "skipped" for s in skipped)
    assert all((s.entity, s.index) == ("node", 2) for s in skipped)
    assert skipped[0].error == "InvalidGraphState"
