import pytest

from streetmap.config.models import BuildModel
from streetmap.domain.builder import StreetMapBuilder
from streetmap.domain.entities.geography import BoundingBox, Point2D
from streetmap.domain.entities.node import RailwayRef, RoadRef
from streetmap.domain.entities.ways import RoadType
from streetmap.domain.errors import MalformedEntityError
from streetmap.domain.hooks import NoopBuildHooks
from streetmap.domain.validation import validate_street_map
from streetmap.io.diagnostics import (
    LENGTH_MISMATCH,
    MISSING_ENDPOINT_NODE,
    NODE_OUT_OF_RANGE,
    TOO_FEW_POINTS,
    ZERO_LENGTH_SEGMENT,
    EndpointSynthesized,
)


class _Capture(NoopBuildHooks):
    def __init__(self):
        self.diagnostics = []
        self.errors = []
        self.calls = []

    def build_start(self, **kw):
        self.calls.append(("build_start", kw))

    def build_end(self, **kw):
        self.calls.append(("build_end", kw))

    def diagnostic(self, diag):
        self.diagnostics.append(diag)

    def error(self, *, reason, **kw):
        self.errors.append((reason, kw))


# ---------- Cross references


def test_refs_mirror_node_indices_in_way_order():
    b = StreetMapBuilder()
    a, c, z = b.add_node((0, 0)), b.add_node((10, 0)), b.add_node((20, 0))
    b.add_road("first", [(0, 0), (10, 0)], [a, c])
    b.add_road("second", [(10, 0), (20, 0), (10, 0)], [c, z, c])
    b.add_railway("tracks", [(0, 0), (20, 0)], [a, z])
    smap = b.build()

    assert smap.nodes[c].road_refs == (RoadRef(0, 1), RoadRef(1, 0), RoadRef(1, 2))
    assert smap.nodes[a].railway_refs == (RailwayRef(0, 0),)
    assert smap.nodes[z].railway_refs == (RailwayRef(0, 1),)
    assert validate_street_map(smap) == []


def test_minus_one_marks_a_point_without_node():
    b = StreetMapBuilder()
    a, z = b.add_node((0, 0)), b.add_node((2, 0))
    b.add_road("r", [(0, 0), (1, 0), (2, 0)], [a, -1, z])
    smap = b.build()
    assert smap.roads[0].node_indices == (a, None, z)


def test_road_through_shares_nodes_at_equal_locations():
    b = StreetMapBuilder()
    b.add_road_through("a", [(0, 0), (5, 0)])
    b.add_road_through("b", [(5, 0), (5, 5)], road_type=RoadType.HIGHWAY)
    smap = b.build()
    assert len(smap.nodes) == 3
    shared = smap.roads[0].node_indices[1]
    assert smap.roads[1].node_indices[0] == shared
    assert len(smap.nodes[shared].road_refs) == 2
    assert smap.roads[1].road_type is RoadType.HIGHWAY


# ---------- Endpoint policy


def _open_ended(cfg=None, hooks=None):
    b = StreetMapBuilder(cfg, hooks=hooks)
    mid = b.add_node((5.0, 0.0))
    b.add_road("kept", [(0.0, 0.0), (5.0, 0.0)], [b.add_node((0.0, 0.0)), mid])
    b.add_road("open", [(5.0, 0.0), (10.0, 0.0), (15.0, 0.0)], [mid, None, None])
    return b


def test_missing_endpoint_is_synthesized_by_default():
    hooks = _Capture()
    b = _open_ended(hooks=hooks)
    smap = b.build()

    assert len(smap.roads) == 2
    (nid,) = b.report.synthesized_nodes
    assert smap.roads[1].node_indices[-1] == nid
    assert smap.nodes[nid].location == Point2D(15.0, 0.0)
    assert smap.nodes[nid].tags == {"synthesized": "endpoint"}
    assert smap.nodes[nid].road_refs == (RoadRef(1, 2),)

    (diag,) = hooks.diagnostics
    assert isinstance(diag, EndpointSynthesized)
    assert diag.code == MISSING_ENDPOINT_NODE and diag.action == "synthesized"
    assert (diag.entity, diag.index, diag.point_index, diag.node_id) == ("road", 1, 2, nid)
    assert validate_street_map(smap) == []


def test_missing_endpoint_drop_policy():
    b = _open_ended(BuildModel(endpoint_policy="drop"))
    smap = b.build()
    assert [r.name for r in smap.roads] == ["kept"]
    assert b.report.dropped["road"] == [1]
    assert b.report.road_ids == {0: 0}
    assert b.report.diagnostics[0].action == "dropped"
    # the shared node no longer references the dropped road
    assert smap.nodes[0].road_refs == (RoadRef(0, 1),)


def test_missing_endpoint_error_policy():
    hooks = _Capture()
    b = _open_ended(BuildModel(endpoint_policy="error"), hooks=hooks)
    with pytest.raises(MalformedEntityError) as exc:
        b.build()
    assert exc.value.code == MISSING_ENDPOINT_NODE
    assert (exc.value.entity, exc.value.index) == ("road", 1)
    assert hooks.errors == [(MISSING_ENDPOINT_NODE, {"entity": "road", "index": 1})]


def test_dropped_ways_shift_later_ids():
    b = StreetMapBuilder(BuildModel(endpoint_policy="drop"))
    a, z = b.add_node((0, 0)), b.add_node((1, 0))
    b.add_road("open", [(0, 0), (1, 0)], [a, None])
    b.add_road("closed", [(0, 0), (1, 0)], [a, z])
    smap = b.build()
    assert b.report.road_ids == {1: 0}
    assert smap.road(b.report.road_ids[1]).name == "closed"


# ---------- Malformed ways


@pytest.mark.parametrize(
    "points,node_indices,code",
    [
        ([(0, 0), (1, 0)], [0], LENGTH_MISMATCH),
        ([(0, 0)], [0], TOO_FEW_POINTS),
        ([(0, 0), (1, 0)], [0, 42], NODE_OUT_OF_RANGE),
    ],
)
def test_malformed_way_is_dropped(points, node_indices, code):
    b = StreetMapBuilder()
    b.add_node((0, 0))
    b.add_road("bad", points, node_indices)
    smap = b.build()
    assert smap.roads == ()
    assert b.report.dropped["road"] == [0]
    assert [d.code for d in b.report.diagnostics] == [code]
    assert all(d.action == "dropped" for d in b.report.diagnostics)


def test_malformed_way_error_policy_raises():
    b = StreetMapBuilder(BuildModel(on_malformed="error"))
    b.add_node((0, 0))
    b.add_railway("bad", [(0, 0)], [0, None])
    with pytest.raises(MalformedEntityError) as exc:
        b.build()
    assert exc.value.entity == "railway" and exc.value.index == 0
    assert exc.value.code == TOO_FEW_POINTS
    assert {d.code for d in b.report.diagnostics} == {LENGTH_MISMATCH, TOO_FEW_POINTS}
    assert all(d.action == "rejected" for d in b.report.diagnostics)


def test_zero_length_segment_is_a_warning():
    b = StreetMapBuilder()
    a, c = b.add_node((0, 0)), b.add_node((0, 0))
    b.add_road("stub", [(0, 0), (0, 0)], [a, c])
    smap = b.build()
    assert len(smap.roads) == 1
    (diag,) = b.report.diagnostics
    assert diag.code == ZERO_LENGTH_SEGMENT and diag.severity == "warning"
    assert (diag.point_index_a, diag.point_index_b) == (0, 1)

    quiet = StreetMapBuilder(BuildModel(warn_zero_length=False))
    a, c = quiet.add_node((0, 0)), quiet.add_node((0, 0))
    quiet.add_road("stub", [(0, 0), (0, 0)], [a, c])
    quiet.build()
    assert quiet.report.diagnostics == []


# ---------- Bounds & lifecycle


def test_global_bounds_cover_roads_and_buildings():
    b = StreetMapBuilder()
    b.add_road_through("r", [(0, 0), (10, 5)])
    b.add_building("hall", [(20, 20), (30, 20), (30, 30), (20, 30)], height=12.0, levels=3)
    b.add_misc_way("park", [(-100, -100), (-90, -90)])
    smap = b.build()
    assert smap.bounds == BoundingBox(Point2D(0, 0), Point2D(30, 30))
    assert smap.roads[0].bounds == BoundingBox(Point2D(0, 0), Point2D(10, 5))
    assert smap.buildings[0].levels == 3


def test_explicit_bounds_win():
    b = StreetMapBuilder(BuildModel(compute_bounds=False))
    b.add_road_through("r", [(0, 0), (10, 5)])
    b.bounds = BoundingBox(Point2D(-1, -1), Point2D(1, 1))
    smap = b.build()
    assert smap.bounds == BoundingBox(Point2D(-1, -1), Point2D(1, 1))
    assert smap.roads[0].bounds.is_empty


def test_builder_is_single_use():
    hooks = _Capture()
    b = StreetMapBuilder(hooks=hooks)
    b.add_road_through("r", [(0, 0), (1, 0)])
    b.build()
    assert [name for name, _ in hooks.calls] == ["build_start", "build_end"]
    assert hooks.calls[0][1]["roads"] == 1
    with pytest.raises(RuntimeError):
        b.build()
    with pytest.raises(RuntimeError):
        b.add_node((2, 0))


def test_failed_build_leaves_builder_reusable():
    hooks = _Capture()
    b = _open_ended(BuildModel(endpoint_policy="error"), hooks=hooks)
    with pytest.raises(MalformedEntityError):
        b.build()

    # nothing of the aborted attempt survives except the diagnostic explaining it
    assert b.report.road_ids == {} and b.report.dropped == {"road": [], "railway": []}
    assert b.report.synthesized_nodes == []
    assert [d.code for d in b.report.diagnostics] == [MISSING_ENDPOINT_NODE]
    assert [name for name, _ in hooks.calls] == ["build_start"]

    b.cfg = BuildModel()
    smap = b.build()
    assert b.report.road_ids == {0: 0, 1: 1}
    assert len(b.report.diagnostics) == 1
    # one synthesized terminus, not one per attempt
    assert len(smap.nodes) == 3
    assert smap.roads[1].node_indices == (0, None, 2)
    assert [name for name, _ in hooks.calls] == ["build_start", "build_start", "build_end"]


def test_synthesized_nodes_do_not_touch_pending_input():
    b = _open_ended()
    b.build()
    assert b._ways["road"][1].node_indices == [0, None, None]
