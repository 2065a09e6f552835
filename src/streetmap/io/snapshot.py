# streetmap/io/snapshot.py
"""Plain-data form of a built store: flat arrays plus integer cross-indices."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from streetmap.domain.entities.geography import BoundingBox, Point2D
from streetmap.domain.entities.node import Node, RailwayRef, RoadRef
from streetmap.domain.entities.ways import (
    Building,
    Link,
    MiscWay,
    MiscWayType,
    Railway,
    RailwayType,
    Road,
    RoadType,
)
from streetmap.domain.errors import InvalidGraphState
from streetmap.domain.store import StreetMap
from streetmap.domain.validation import validate_street_map

XY = tuple[float, float]


class BoundsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    min: XY
    max: XY


class LinkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    link_id: int = 0
    link_dir: str = "T"


class NodeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    location: XY
    road_refs: list[tuple[int, int]] = Field(default_factory=list)
    railway_refs: list[tuple[int, int]] = Field(default_factory=list)
    tags: dict[str, str] = Field(default_factory=dict)


class RoadModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = ""
    road_type: RoadType = RoadType.STREET
    points: list[XY]
    node_indices: list[int | None]
    bounds: BoundsModel | None = None
    is_one_way: bool = False
    speed_limit: int = 0
    distance: float = 0.0
    link: LinkModel = LinkModel()
    tmc: str = ""


class RailwayModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = ""
    railway_type: RailwayType = RailwayType.RAIL
    points: list[XY]
    node_indices: list[int | None]
    bounds: BoundsModel | None = None


class BuildingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = ""
    points: list[XY]
    height: float = 0.0
    levels: int = 0
    bounds: BoundsModel | None = None


class MiscWayModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = ""
    category: str = ""
    way_type: MiscWayType = MiscWayType.UNKNOWN
    points: list[XY]
    is_closed: bool = False
    bounds: BoundsModel | None = None


class SnapshotModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    origin: XY = (0.0, 0.0)  # (longitude, latitude)
    bounds: BoundsModel | None = None
    nodes: list[NodeModel] = Field(default_factory=list)
    roads: list[RoadModel] = Field(default_factory=list)
    railways: list[RailwayModel] = Field(default_factory=list)
    buildings: list[BuildingModel] = Field(default_factory=list)
    misc_ways: list[MiscWayModel] = Field(default_factory=list)


# ------------------------------------------------------------------


def _pts(points) -> tuple[Point2D, ...]:
    return tuple(Point2D(float(x), float(y)) for x, y in points)


def _xy(points) -> list[list[float]]:
    return [[p.x, p.y] for p in points]


def _bounds_out(b: BoundingBox) -> dict[str, list[float]]:
    return {"min": [b.min.x, b.min.y], "max": [b.max.x, b.max.y]}


def _bounds_in(b: BoundsModel | None, pts) -> BoundingBox:
    if b is None:
        return BoundingBox.from_points(pts)
    return BoundingBox(Point2D(*b.min), Point2D(*b.max))


def to_dict(smap: StreetMap) -> dict[str, Any]:
    return {
        "origin": [smap.origin_longitude, smap.origin_latitude],
        "bounds": _bounds_out(smap.bounds),
        "nodes": [
            {
                "location": [n.location.x, n.location.y],
                "road_refs": [[r.road_index, r.road_point_index] for r in n.road_refs],
                "railway_refs": [[r.railway_index, r.railway_point_index] for r in n.railway_refs],
                "tags": dict(n.tags),
            }
            for n in smap.nodes
        ],
        "roads": [
            {
                "name": r.name,
                "road_type": r.road_type.value,
                "points": _xy(r.points),
                "node_indices": list(r.node_indices),
                "bounds": _bounds_out(r.bounds),
                "is_one_way": r.is_one_way,
                "speed_limit": r.speed_limit,
                "distance": r.distance,
                "link": {"link_id": r.link.link_id, "link_dir": r.link.link_dir},
                "tmc": r.tmc,
            }
            for r in smap.roads
        ],
        "railways": [
            {
                "name": w.name,
                "railway_type": w.railway_type.value,
                "points": _xy(w.points),
                "node_indices": list(w.node_indices),
                "bounds": _bounds_out(w.bounds),
            }
            for w in smap.railways
        ],
        "buildings": [
            {
                "name": b.name,
                "points": _xy(b.points),
                "height": b.height,
                "levels": b.levels,
                "bounds": _bounds_out(b.bounds),
            }
            for b in smap.buildings
        ],
        "misc_ways": [
            {
                "name": m.name,
                "category": m.category,
                "way_type": m.way_type.value,
                "points": _xy(m.points),
                "is_closed": m.is_closed,
                "bounds": _bounds_out(m.bounds),
            }
            for m in smap.misc_ways
        ],
    }


def from_dict(data: dict[str, Any], *, strict: bool = True) -> StreetMap:
    """Rebuild a store from `to_dict` output.

    With `strict`, the first broken graph invariant raises InvalidGraphState;
    otherwise the store is returned as-is (see app.session.open_session).
    """
    snap = SnapshotModel.model_validate(data)

    roads = []
    for r in snap.roads:
        pts = _pts(r.points)
        roads.append(
            Road(
                name=r.name,
                road_type=r.road_type,
                points=pts,
                node_indices=tuple(r.node_indices),
                bounds=_bounds_in(r.bounds, pts),
                is_one_way=r.is_one_way,
                speed_limit=r.speed_limit,
                distance=r.distance,
                link=Link(r.link.link_id, r.link.link_dir),
                tmc=r.tmc,
            )
        )
    railways = []
    for w in snap.railways:
        pts = _pts(w.points)
        railways.append(
            Railway(w.name, w.railway_type, pts, tuple(w.node_indices), _bounds_in(w.bounds, pts))
        )
    buildings = []
    for b in snap.buildings:
        pts = _pts(b.points)
        buildings.append(
            Building(b.name, pts, _bounds_in(b.bounds, pts), height=b.height, levels=b.levels)
        )
    misc = []
    for m in snap.misc_ways:
        pts = _pts(m.points)
        misc.append(
            MiscWay(m.name, m.category, m.way_type, pts, _bounds_in(m.bounds, pts), m.is_closed)
        )
    nodes = tuple(
        Node(
            location=Point2D(*n.location),
            road_refs=tuple(RoadRef(a, b) for a, b in n.road_refs),
            railway_refs=tuple(RailwayRef(a, b) for a, b in n.railway_refs),
            tags=dict(n.tags),
        )
        for n in snap.nodes
    )

    bounds = _bounds_in(snap.bounds, [])
    if snap.bounds is None:
        for e in (*roads, *buildings):
            bounds = bounds.union(e.bounds)

    smap = StreetMap(
        roads=tuple(roads),
        nodes=nodes,
        railways=tuple(railways),
        buildings=tuple(buildings),
        misc_ways=tuple(misc),
        bounds=bounds,
        origin_longitude=snap.origin[0],
        origin_latitude=snap.origin[1],
    )
    if strict:
        for diag in validate_street_map(smap):
            if diag.severity == "error":
                raise InvalidGraphState(diag.message, entity=diag.entity, index=diag.index)
    return smap


def dumps(smap: StreetMap) -> str:
    return json.dumps(to_dict(smap))


def loads(text: str, *, strict: bool = True) -> StreetMap:
    return from_dict(json.loads(text), strict=strict)


def save(smap: StreetMap, path: str | Path) -> None:
    Path(path).write_text(dumps(smap), encoding="utf-8")


def load(path: str | Path, *, strict: bool = True) -> StreetMap:
    return loads(Path(path).read_text(encoding="utf-8"), strict=strict)
