# domain/mechanics/connectivity.py
"""
Direction-aware node connectivity for pathfinding consumers.

Connections of a node are enumerated in one fixed order, shared by the count,
the lookup and the iterator: road refs in order, and for each ref the
connection towards the road start (backward) before the one towards the road
end (forward). A one-way road only connects in point order, so traveling
forward drops its backward connections and traveling backward drops its
forward ones.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from streetmap.app.protocols import CostModel
from streetmap.domain.entities.ids import NodeId, RoadId
from streetmap.domain.entities.node import RoadRef
from streetmap.domain.entities.ways import Road
from streetmap.domain.errors import InvalidGraphState, OutOfRange
from streetmap.domain.mechanics.cost import DEFAULT_COST_MODEL
from streetmap.domain.mechanics.road_geometry import compute_distance_between_points

if TYPE_CHECKING:
    from streetmap.domain.store import StreetMap


@dataclass(frozen=True)
class Connection:
    node_id: NodeId  # the node reached
    road_id: RoadId  # road the connection runs along
    point_index: int  # where the starting node sits on that road
    connected_point_index: int  # where the reached node sits on that road

    @property
    def is_forward(self) -> bool:
        return self.connected_point_index > self.point_index


def _node(smap: StreetMap, node_id: int):
    if not 0 <= node_id < len(smap.nodes):
        raise OutOfRange(f"id outside [0, {len(smap.nodes) - 1}]", entity="node", index=node_id)
    return smap.nodes[node_id]


def _road(smap: StreetMap, ref: RoadRef, node_id: int) -> Road:
    if not 0 <= ref.road_index < len(smap.roads):
        raise InvalidGraphState(
            f"road ref points at missing road {ref.road_index}", entity="node", index=node_id
        )
    road = smap.roads[ref.road_index]
    if not 0 <= ref.road_point_index < len(road.node_indices):
        raise InvalidGraphState(
            f"road ref point {ref.road_point_index} outside road {ref.road_index}",
            entity="node",
            index=node_id,
        )
    return road


def _directions(road: Road, ref: RoadRef, traveling_forward: bool) -> Iterator[int]:
    """Yield -1 (backward) and/or +1 (forward) for the connections this ref offers."""
    if ref.road_point_index > 0 and (not traveling_forward or not road.is_one_way):
        yield -1
    if ref.road_point_index < len(road.node_indices) - 1 and (
        traveling_forward or not road.is_one_way
    ):
        yield 1


def _scan(road: Road, ref: RoadRef, step: int) -> tuple[int, int]:
    """Nearest (node id, point index) strictly past the ref's point in direction `step`."""
    i = ref.road_point_index + step
    while 0 <= i < len(road.node_indices):
        node = road.node_indices[i]
        if node is not None:
            return node, i
        i += step
    side = "earlier" if step < 0 else "later"
    raise InvalidGraphState(
        f"no {side} node after point {ref.road_point_index}", entity="road", index=ref.road_index
    )


# ------------- queries -----------------------


def is_dead_end(smap: StreetMap, node_id: int) -> bool:
    """True when the node touches exactly one road and sits at one of its ends."""
    node = _node(smap, node_id)
    if len(node.road_refs) != 1:
        return False
    # TODO: also treat a node whose only onward roads are one-way against us as a dead end
    ref = node.road_refs[0]
    road = _road(smap, ref, node_id)
    return ref.road_point_index in (0, len(road.node_indices) - 1)


def get_connection_count(smap: StreetMap, node_id: int, traveling_forward: bool) -> int:
    node = _node(smap, node_id)
    total = 0
    for ref in node.road_refs:
        road = _road(smap, ref, node_id)
        total += sum(1 for _ in _directions(road, ref, traveling_forward))
    return total


def iter_connections(
    smap: StreetMap, node_id: int, traveling_forward: bool
) -> Iterator[Connection]:
    node = _node(smap, node_id)
    for ref in node.road_refs:
        road = _road(smap, ref, node_id)
        for step in _directions(road, ref, traveling_forward):
            other, other_point = _scan(road, ref, step)
            yield Connection(
                node_id=NodeId(other),
                road_id=RoadId(ref.road_index),
                point_index=ref.road_point_index,
                connected_point_index=other_point,
            )


def get_connection(
    smap: StreetMap, node_id: int, connection_index: int, traveling_forward: bool
) -> Connection:
    if connection_index < 0:
        raise OutOfRange(f"connection index {connection_index} < 0", entity="node", index=node_id)
    node = _node(smap, node_id)
    current = 0
    for ref in node.road_refs:
        road = _road(smap, ref, node_id)
        for step in _directions(road, ref, traveling_forward):
            if current == connection_index:
                # only the requested connection is scanned
                other, other_point = _scan(road, ref, step)
                return Connection(
                    node_id=NodeId(other),
                    road_id=RoadId(ref.road_index),
                    point_index=ref.road_point_index,
                    connected_point_index=other_point,
                )
            current += 1
    raise OutOfRange(
        f"connection index {connection_index} outside [0, {current - 1}]",
        entity="node",
        index=node_id,
    )


def connection_cost(smap: StreetMap, conn: Connection, cost_model: CostModel) -> float:
    road = smap.roads[conn.road_id]
    distance = compute_distance_between_points(road, conn.point_index, conn.connected_point_index)
    return cost_model.cost(road, distance)


def get_connection_cost(
    smap: StreetMap,
    node_id: int,
    connection_index: int,
    traveling_forward: bool,
    *,
    cost_model: CostModel = DEFAULT_COST_MODEL,
) -> float:
    conn = get_connection(smap, node_id, connection_index, traveling_forward)
    return connection_cost(smap, conn, cost_model)


def get_shortest_cost_road_to_node(
    smap: StreetMap,
    node_id: int,
    other_node_id: int,
    traveling_forward: bool,
    *,
    cost_model: CostModel = DEFAULT_COST_MODEL,
) -> tuple[RoadId, int]:
    """(road id, point index of `node_id` on it) of the cheapest road to `other_node_id`.

    Costs are only evaluated when more than one road connects the pair; ties
    keep the connection found first.
    """
    _node(smap, other_node_id)
    matches = [
        c for c in iter_connections(smap, node_id, traveling_forward) if c.node_id == other_node_id
    ]
    if not matches:
        raise InvalidGraphState(
            f"no connection to node {other_node_id}", entity="node", index=node_id
        )
    if len(matches) == 1:
        best = matches[0]
    else:
        best = min(matches, key=lambda c: connection_cost(smap, c, cost_model))
    return best.road_id, best.point_index
