# domain/views.py
"""Lightweight handles over store records; every query indexes back into the store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from streetmap.app.protocols import CostModel
from streetmap.domain.entities.geography import Point2D
from streetmap.domain.entities.ids import NodeId
from streetmap.domain.entities.node import Node
from streetmap.domain.entities.ways import Railway, Road
from streetmap.domain.mechanics import connectivity as conn
from streetmap.domain.mechanics import road_geometry as geo
from streetmap.domain.mechanics.cost import DEFAULT_COST_MODEL

if TYPE_CHECKING:
    from streetmap.domain.store import StreetMap


@dataclass(frozen=True, eq=False)
class _WayView(ABC):
    store: StreetMap
    id: int

    def __eq__(self, other) -> bool:
        return type(other) is type(self) and other.store is self.store and other.id == self.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, id(self.store), self.id))

    @property
    @abstractmethod
    def record(self) -> Road | Railway: ...

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def points(self) -> tuple[Point2D, ...]:
        return self.record.points

    @property
    def node_indices(self) -> tuple[int | None, ...]:
        return self.record.node_indices

    def node_at(self, point_index: int) -> NodeView | None:
        n = self.record.node_indices[point_index]
        return None if n is None else self.store.node(n)

    # -------- geometry

    def length(self) -> float:
        return geo.compute_length(self.record)

    def distance_between(self, point_index_a: int, point_index_b: int) -> float:
        return geo.compute_distance_between_points(self.record, point_index_a, point_index_b)

    def position_of_point(self, point_index: int) -> float:
        return geo.find_position_along_road_for_point(self.record, point_index, index=self.id)

    def location_at(self, position_along_road: float) -> Point2D:
        return geo.make_location_along_road(self.record, position_along_road, index=self.id)

    def node_at_or_earlier(self, point_index: int) -> tuple[NodeView, int]:
        n, i = geo.get_node_at_point_index_or_earlier(self.record, point_index, index=self.id)
        return self.store.node(n), i

    def node_at_or_later(self, point_index: int) -> tuple[NodeView, int]:
        n, i = geo.get_node_at_point_index_or_later(self.record, point_index, index=self.id)
        return self.store.node(n), i

    def earlier_and_later_nodes(self, point_index: int) -> geo.NodeBracket:
        return geo.find_earlier_and_later_nodes(self.record, point_index, index=self.id)

    def earlier_and_later_nodes_for_position(self, position_along_road: float) -> geo.NodeBracket:
        return geo.find_earlier_and_later_nodes_for_position(
            self.record, position_along_road, index=self.id
        )


class RoadView(_WayView):
    @property
    def record(self) -> Road:
        return self.store.roads[self.id]

    @property
    def road_type(self):
        return self.record.road_type

    @property
    def is_one_way(self) -> bool:
        return self.record.is_one_way


class RailwayView(_WayView):
    @property
    def record(self) -> Railway:
        return self.store.railways[self.id]

    @property
    def railway_type(self):
        return self.record.railway_type


@dataclass(frozen=True, eq=False)
class NodeView:
    store: StreetMap
    id: NodeId

    def __eq__(self, other) -> bool:
        return isinstance(other, NodeView) and other.store is self.store and other.id == self.id

    def __hash__(self) -> int:
        return hash(("node", id(self.store), self.id))

    @property
    def record(self) -> Node:
        return self.store.nodes[self.id]

    @property
    def location(self) -> Point2D:
        return self.record.location

    @property
    def road_refs(self):
        return self.record.road_refs

    @property
    def railway_refs(self):
        return self.record.railway_refs

    @property
    def tags(self) -> Mapping[str, str]:
        return self.record.tags

    # -------- pathfinding support

    def is_dead_end(self) -> bool:
        return conn.is_dead_end(self.store, self.id)

    def connection_count(self, traveling_forward: bool) -> int:
        return conn.get_connection_count(self.store, self.id, traveling_forward)

    def connection(self, connection_index: int, traveling_forward: bool) -> conn.Connection:
        return conn.get_connection(self.store, self.id, connection_index, traveling_forward)

    def connections(self, traveling_forward: bool) -> Iterator[conn.Connection]:
        return conn.iter_connections(self.store, self.id, traveling_forward)

    def connection_cost(
        self,
        connection_index: int,
        traveling_forward: bool,
        *,
        cost_model: CostModel = DEFAULT_COST_MODEL,
    ) -> float:
        return conn.get_connection_cost(
            self.store, self.id, connection_index, traveling_forward, cost_model=cost_model
        )

    def shortest_cost_road_to(
        self,
        other: NodeView | int,
        traveling_forward: bool,
        *,
        cost_model: CostModel = DEFAULT_COST_MODEL,
    ) -> tuple[RoadView, int]:
        other_id = other.id if isinstance(other, NodeView) else other
        rid, point_index = conn.get_shortest_cost_road_to_node(
            self.store, self.id, other_id, traveling_forward, cost_model=cost_model
        )
        return self.store.road(rid), point_index
