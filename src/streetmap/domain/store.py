# domain/store.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from streetmap.domain.entities.geography import BoundingBox, Point2D
from streetmap.domain.entities.ids import NodeId, RailwayId, RoadId
from streetmap.domain.entities.node import Node
from streetmap.domain.entities.ways import Building, Link, MiscWay, Railway, Road, Trace
from streetmap.domain.errors import OutOfRange
from streetmap.domain.mechanics.projection import LocalProjection
from streetmap.domain.views import NodeView, RailwayView, RoadView


@dataclass(frozen=True)
class StreetMap:
    """
    A loaded street map: flat, index-addressed arrays of every entity kind.

    Built once (see StreetMapBuilder) and read-only afterwards. Roads and nodes
    cross-reference each other only through integer indices, so any reorder
    or resize would invalidate every handle; stores are never mutated.
    """

    roads: tuple[Road, ...] = ()
    nodes: tuple[Node, ...] = ()
    railways: tuple[Railway, ...] = ()
    buildings: tuple[Building, ...] = ()
    misc_ways: tuple[MiscWay, ...] = ()
    bounds: BoundingBox = field(default_factory=BoundingBox.empty)
    origin_longitude: float = 0.0
    origin_latitude: float = 0.0

    # link -> road id, for roads that carry a traffic link
    _links: dict[Link, RoadId] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        links: dict[Link, RoadId] = {}
        for i, r in enumerate(self.roads):
            if r.link.link_id != 0:
                links.setdefault(r.link, RoadId(i))
        object.__setattr__(self, "_links", links)

    # --------------- handles -----------------------------

    def road(self, road_id: int) -> RoadView:
        self._check("road", road_id, len(self.roads))
        return RoadView(self, RoadId(road_id))

    def node(self, node_id: int) -> NodeView:
        self._check("node", node_id, len(self.nodes))
        return NodeView(self, NodeId(node_id))

    def railway(self, railway_id: int) -> RailwayView:
        self._check("railway", railway_id, len(self.railways))
        return RailwayView(self, RailwayId(railway_id))

    def iter_roads(self) -> Iterable[RoadView]:
        return (RoadView(self, RoadId(i)) for i in range(len(self.roads)))

    def iter_nodes(self) -> Iterable[NodeView]:
        return (NodeView(self, NodeId(i)) for i in range(len(self.nodes)))

    @staticmethod
    def _check(entity: str, idx: int, n: int) -> None:
        if not 0 <= idx < n:
            raise OutOfRange(f"id outside [0, {n - 1}]", entity=entity, index=idx)

    # --------------- geography ---------------------------

    @property
    def origin(self) -> tuple[float, float]:
        return self.origin_longitude, self.origin_latitude

    def projection(self, *, units_per_meter: float = 1.0) -> LocalProjection:
        return LocalProjection(
            self.origin_longitude, self.origin_latitude, units_per_meter=units_per_meter
        )

    def to_geographic(
        self, points: Sequence[Point2D], *, units_per_meter: float = 1.0
    ) -> list[tuple[float, float]]:
        return self.projection(units_per_meter=units_per_meter).to_geographic(points)

    # --------------- traffic links -----------------------

    def road_for_link(self, link: Link) -> RoadId | None:
        return self._links.get(link)

    def resolve_trace(self, trace: Trace) -> list[RoadId]:
        out = []
        for i, link in enumerate(trace.links):
            rid = self._links.get(link)
            if rid is None:
                raise OutOfRange(
                    f"unknown link {link.link_id}/{link.link_dir}", entity="trace_link", index=i
                )
            out.append(rid)
        return out

    def summary(self) -> dict[str, Any]:
        return {
            "roads": len(self.roads),
            "nodes": len(self.nodes),
            "railways": len(self.railways),
            "buildings": len(self.buildings),
            "misc_ways": len(self.misc_ways),
            "bounds_min": tuple(self.bounds.min),
            "bounds_max": tuple(self.bounds.max),
            "origin": self.origin,
        }
